# -*- coding: utf-8 -*-
"""
scripts/debug_crop_page.py

这个脚本做什么：
- 读取一张分镜页（本地路径 / URL / data URI）
- 按流水线同一套网格几何（默认 2 列 x 3 行）裁成格子
- 每格存成 PNG，并打印像素框，便于肉眼检查“第 i 格 = 第 i 个 shot”是否对得上
- 可选 --shots 11,12,13,14：模拟 shotsIncluded，打印哪几格会被当成空格子丢弃

使用方式：
   python scripts/debug_crop_page.py --image page_002.png --out_dir debug/page_002 --shots 7,8
"""

from __future__ import annotations

import argparse
import base64
from pathlib import Path

from cinemascope.core.grid import GridGeometry, associate_cells, crop_grid
from cinemascope.core.schemas import GeneratedPage, Shot
from cinemascope.providers.image.fetch import RasterFetcher


def build_argparser() -> argparse.ArgumentParser:
	p = argparse.ArgumentParser()
	p.add_argument("--image", required=True, help="分镜页：本地路径 / http(s) URL / data URI")
	p.add_argument("--out_dir", required=True, help="输出目录（保存每格 PNG）")
	p.add_argument("--cols", type=int, default=2)
	p.add_argument("--rows", type=int, default=3)
	p.add_argument("--shots", default="", help="逗号分隔的 shotNumber（模拟 shotsIncluded）")
	return p


def main() -> None:
	args = build_argparser().parse_args()

	geometry = GridGeometry(args.cols, args.rows)
	out_dir = Path(args.out_dir)
	out_dir.mkdir(parents=True, exist_ok=True)

	fetch = RasterFetcher()
	try:
		raster = fetch(args.image)
	finally:
		fetch.close()

	cells = crop_grid(raster, geometry)
	for cell in cells:
		png = base64.b64decode(cell.base64.split(",", 1)[1])
		path = out_dir / f"frame_{cell.frame_index}.png"
		path.write_bytes(png)
		print(f"[cell {cell.frame_index}] box={cell.box} -> {path}")

	if args.shots:
		numbers = tuple(int(s) for s in args.shots.split(",") if s.strip())
		page = GeneratedPage(
			page_number=0,
			scene_number=0,
			image_url=args.image,
			shots_included=numbers,
			generation_prompt="",
		)

		def lookup(n: int) -> Shot:
			return Shot(n, "", "", "", "", "")

		result = associate_cells(page, cells, lookup)
		for f in result.frames:
			print(f"[frame {f.frame_index}] -> shot {f.shot_number}")
		print(f"[dropped] panels={result.dropped_panels}")


if __name__ == "__main__":
	main()
