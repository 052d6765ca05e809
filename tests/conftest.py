# -*- coding: utf-8 -*-
"""测试共用的假实现：假时钟、假生成服务、假 LLM、内存里画出来的分镜页。"""

from __future__ import annotations

import base64
import io
from typing import Any, Dict, List, Optional

import pytest
from PIL import Image, ImageDraw


# 每格一个颜色，行优先：裁出来的第 i 格应该是 PANEL_COLORS[i]
PANEL_COLORS = [
	(255, 0, 0),
	(0, 255, 0),
	(0, 0, 255),
	(255, 255, 0),
	(0, 255, 255),
	(255, 0, 255),
]


class FakeClock:
	def __init__(self, start: float = 100.0):
		self.now = start
		self.sleeps: List[float] = []

	def __call__(self) -> float:
		return self.now

	def sleep(self, seconds: float) -> None:
		self.sleeps.append(seconds)
		self.now += seconds


class FakeService:
	"""
	submit 返回 result_for(prompt)；fail_on 里的调用序号（从 1 开始）抛错，
	每个序号只失败一次，模拟“重试后成功”。
	"""

	def __init__(self, clock: Optional[FakeClock] = None, fail_on=(), result_for=None, work_s: float = 0.0):
		self.clock = clock
		self.fail_on = set(fail_on)
		self.result_for = result_for or (lambda prompt: f"https://img.example/{len(self.calls)}.png")
		self.work_s = work_s
		self.calls: List[Dict[str, Any]] = []

	def submit(self, prompt: str, reference_image: Optional[str] = None) -> str:
		n = len(self.calls) + 1
		self.calls.append({
			"prompt": prompt,
			"reference_image": reference_image,
			"at": self.clock() if self.clock else None,
		})
		if n in self.fail_on:
			self.fail_on.discard(n)
			raise RuntimeError(f"remote error on call {n}")
		if self.clock and self.work_s:
			self.clock.now += self.work_s
		return self.result_for(prompt)


class FakeLLM:
	def __init__(self, response: Any = None, error: Optional[Exception] = None):
		self.response = response
		self.error = error
		self.prompts: List[tuple] = []

	def chat_json(self, system_prompt: str, user_prompt: str) -> Any:
		self.prompts.append((system_prompt, user_prompt))
		if self.error is not None:
			raise self.error
		return self.response


def raw_shot(action: str, shot_type: str = "wide") -> Dict[str, Any]:
	return {
		"shotType": shot_type,
		"cameraMovement": "static",
		"composition": f"{action} in frame",
		"lighting": "soft daylight",
		"action": action,
		"styleNotes": "muted palette",
	}


def raw_script(*shot_counts: int, title: str = "Test Script") -> Dict[str, Any]:
	scenes = []
	for si, count in enumerate(shot_counts):
		scenes.append({
			"location": f"LOCATION {si + 1}",
			"sceneDescription": f"scene {si + 1} description",
			"shots": [raw_shot(f"scene {si + 1} beat {k + 1}") for k in range(count)],
		})
	return {"title": title, "scenes": scenes}


def make_page_png(width: int = 200, height: int = 300, cols: int = 2, rows: int = 3) -> bytes:
	"""按和 GridGeometry 相同的整数边界，给每格涂一个颜色。"""
	img = Image.new("RGB", (width, height), (0, 0, 0))
	draw = ImageDraw.Draw(img)
	for i in range(cols * rows):
		col, row = i % cols, i // cols
		box = (
			col * width // cols,
			row * height // rows,
			(col + 1) * width // cols - 1,
			(row + 1) * height // rows - 1,
		)
		draw.rectangle(box, fill=PANEL_COLORS[i % len(PANEL_COLORS)])
	buf = io.BytesIO()
	img.save(buf, format="PNG")
	return buf.getvalue()


def png_data_uri(png: bytes) -> str:
	return "data:image/png;base64," + base64.b64encode(png).decode("ascii")


def decode_cell(data_uri: str) -> Image.Image:
	png = base64.b64decode(data_uri.split(",", 1)[1])
	return Image.open(io.BytesIO(png)).convert("RGB")


@pytest.fixture
def clock() -> FakeClock:
	return FakeClock()


@pytest.fixture
def page_png() -> bytes:
	return make_page_png()
