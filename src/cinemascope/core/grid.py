# -*- coding: utf-8 -*-
"""
core/grid.py

这个文件做什么：
- 网格几何：把一张分镜页按 cols x rows 均匀切成若干格（行优先：左->右，上->下）。
- 裁切：用 Pillow 把每一格裁成独立的 PNG，编码成 data URI（给 hi-fi 当参考图）。
- 对位：第 i 格 -> page.shots_included[i] -> 完整 Shot。

几何约定（与像素尺寸无关）：
- 第 i 格在归一化坐标里覆盖 [(i % cols)/cols, (i // cols)/rows] 到
  [(i % cols + 1)/cols, (i // cols + 1)/rows]
- 像素边界用 floor(k * W / cols)：相邻格共享边界，无重叠、无缝隙，
  宽高不能整除时余数分摊到各格，而不是丢在最后一列/行

空格子：
- 页上 shot 少于格子数（scene 最后一页常见）时，多出来的格子照样裁，但直接丢弃，
  记到 dropped_panels，不算错误。
"""

from __future__ import annotations

import base64
import io
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from PIL import Image

from cinemascope.core.schemas import CroppedFrame, GeneratedPage, ParsedScript, Shot
from cinemascope.errors import ExtractionFailure, PlanningInvariantViolation


Box = Tuple[int, int, int, int]

# PNG 可以直接编码的模式
PNG_MODES = ("RGB", "RGBA", "L")


@dataclass(frozen=True)
class GridGeometry:
	cols: int = 2
	rows: int = 3

	def __post_init__(self) -> None:
		if self.cols < 1 or self.rows < 1:
			raise ValueError(f"invalid grid {self.cols}x{self.rows}")

	@property
	def cells(self) -> int:
		return self.cols * self.rows

	@property
	def label(self) -> str:
		return f"{self.cols}x{self.rows}"

	def _check_index(self, index: int) -> None:
		if index < 0 or index >= self.cells:
			raise IndexError(f"cell index {index} out of range for {self.label} grid")

	def normalized_cell(self, index: int) -> Tuple[float, float, float, float]:
		self._check_index(index)
		col, row = index % self.cols, index // self.cols
		return (
			col / self.cols,
			row / self.rows,
			(col + 1) / self.cols,
			(row + 1) / self.rows,
		)

	def cell_box(self, index: int, width: int, height: int) -> Box:
		"""像素框 (left, upper, right, lower)，right/lower 为开区间，与 PIL.Image.crop 一致。"""
		self._check_index(index)
		col, row = index % self.cols, index // self.cols
		return (
			col * width // self.cols,
			row * height // self.rows,
			(col + 1) * width // self.cols,
			(row + 1) * height // self.rows,
		)

	def cell_boxes(self, width: int, height: int) -> List[Box]:
		return [self.cell_box(i, width, height) for i in range(self.cells)]


@dataclass(frozen=True)
class CroppedCell:
	frame_index: int
	box: Box
	base64: str


def to_data_uri(img: Image.Image, fmt: str = "PNG") -> str:
	buf = io.BytesIO()
	img.save(buf, format=fmt)
	mime = "image/png" if fmt.upper() == "PNG" else f"image/{fmt.lower()}"
	return f"data:{mime};base64," + base64.b64encode(buf.getvalue()).decode("ascii")


def crop_grid(raster: bytes, geometry: GridGeometry) -> List[CroppedCell]:
	"""
	原图字节 -> cols*rows 个格子（行优先）。
	图像解码失败直接抛出（由上层包成 ExtractionFailure）。
	"""
	with Image.open(io.BytesIO(raster)) as src:
		src.load()
		if src.mode in PNG_MODES:
			img = src.copy()
		else:
			# CMYK/YCbCr/16 位灰度等 PNG 存不了：先统一转换
			img = src.convert("RGBA" if src.mode in ("P", "LA", "PA") else "RGB")

	width, height = img.size
	if width < geometry.cols or height < geometry.rows:
		raise ValueError(f"image {width}x{height} too small for {geometry.label} grid")

	cells = []
	for i, box in enumerate(geometry.cell_boxes(width, height)):
		cells.append(CroppedCell(frame_index=i, box=box, base64=to_data_uri(img.crop(box))))
	return cells


@dataclass
class ExtractionResult:
	page_number: int
	frames: List[CroppedFrame] = field(default_factory=list)
	dropped_panels: List[int] = field(default_factory=list)
	cells: int = 0


RasterLoader = Callable[[str], bytes]
ShotLookup = Callable[[int], Optional[Shot]]


def shot_lookup_from_script(script: ParsedScript) -> ShotLookup:
	index = {s.shot_number: s for s in script.iter_shots()}
	return index.get


def associate_cells(
	page: GeneratedPage,
	cells: List[CroppedCell],
	lookup: ShotLookup,
) -> ExtractionResult:
	"""
	第 i 格 -> shots_included[i]。
	- 该位置没有 shot（空格子）：丢弃
	- shot_number 在剧本里找不到：同样丢弃，记入 dropped_panels
	"""
	result = ExtractionResult(page_number=page.page_number, cells=len(cells))

	for cell in cells:
		i = cell.frame_index
		if i >= len(page.shots_included):
			result.dropped_panels.append(i)
			continue

		shot_number = page.shots_included[i]
		shot = lookup(shot_number)
		if shot is None:
			result.dropped_panels.append(i)
			continue

		result.frames.append(
			CroppedFrame(
				frame_index=i,
				page_number=page.page_number,
				shot_number=shot_number,
				base64=cell.base64,
				shot_data=shot,
			)
		)

	return result


class GridFrameExtractor:
	"""
	一页 GeneratedPage -> CroppedFrame 列表。

	loader：image_url -> 原图字节（data URI / http / 本地路径，见 providers/image/fetch.py）
	"""

	def __init__(self, loader: RasterLoader, geometry: Optional[GridGeometry] = None):
		self.loader = loader
		self.geometry = geometry or GridGeometry()

	def extract(self, page: GeneratedPage, lookup: ShotLookup) -> ExtractionResult:
		# 页上的 shot 比格子多：分页与网格的契约已经坏了，不能静默裁切
		if len(page.shots_included) > self.geometry.cells:
			raise PlanningInvariantViolation(
				f"page {page.page_number}: {len(page.shots_included)} shots do not fit a {self.geometry.label} grid"
			)

		try:
			raster = self.loader(page.image_url)
			cells = crop_grid(raster, self.geometry)
		except Exception as e:
			raise ExtractionFailure(page.page_number, cause=e) from e

		return associate_cells(page, cells, lookup)
