# -*- coding: utf-8 -*-
"""
core/planner.py

这个文件做什么：
- 把每个 scene 的 shots 按固定容量（默认 6）切成若干页（PageSpec）。
- 给每一页拼一段 lo-fi 分镜页的生成 prompt。
- 纯函数：输入 ParsedScript -> 输出 PageSpec 列表，不会失败。

分页规则：
- 按 scene 顺序，每个 scene 的 shots 连续切块，块不跨 scene
- page_number 来自一个跨 scene 共享的计数器，从 1 开始，每块 +1

与 core/grid.py 的契约：
- prompt 里让生成器画成什么网格，裁切时就必须按同一个网格切，
  否则“第 i 格 = 第 i 个 shot”的对应关系会被悄悄打乱。
"""

from __future__ import annotations

from typing import List, Optional

from cinemascope.core.grid import GridGeometry
from cinemascope.core.schemas import PageSpec, ParsedScript, Shot
from cinemascope.core.sequence import Sequence
from cinemascope.errors import PlanningInvariantViolation


PAGE_CAPACITY = 6

# 9:16 竖版页面；面板数 <= 2 时给一个更宽松的布局提示
COMPACT_LAYOUT_HINT = "1x2 or 2x1 layout"

PAGE_PROMPT_TEMPLATE = (
	"Professional storyboard page, pencil sketch art style, hand-drawn aesthetic, "
	"9:16 vertical layout with {count} panels arranged in a {layout}. "
	"Scene: {scene}. "
	"Panels: {frames}. "
	"Style: Clean pencil line art, professional storyboard quality, consistent character faces, "
	"consistent environment and lighting, clear panel borders, subtle shading, cinematic composition. "
	"4K resolution, highly detailed pencil artwork."
)


def layout_hint(shot_count: int, grid: GridGeometry) -> str:
	if shot_count <= 2:
		return COMPACT_LAYOUT_HINT
	return f"{grid.label} grid layout"


def frame_fragment(k: int, shot: Shot) -> str:
	return f"Frame {k}: {shot.composition}. {shot.action}. {shot.shot_type} shot."


def build_page_prompt(spec: PageSpec, grid: Optional[GridGeometry] = None) -> str:
	grid = grid or GridGeometry()
	frames = " | ".join(frame_fragment(i + 1, s) for i, s in enumerate(spec.shots))
	return PAGE_PROMPT_TEMPLATE.format(
		count=len(spec.shots),
		layout=layout_hint(len(spec.shots), grid),
		scene=spec.scene_description,
		frames=frames,
	)


def chunk_shots(shots: List[Shot], capacity: int) -> List[List[Shot]]:
	return [shots[i:i + capacity] for i in range(0, len(shots), capacity)]


class PagePlanner:
	def __init__(self, grid: Optional[GridGeometry] = None, capacity: int = PAGE_CAPACITY):
		self.grid = grid or GridGeometry()
		self.capacity = capacity

		if capacity < 1 or capacity > self.grid.cells:
			raise PlanningInvariantViolation(
				f"page capacity {capacity} does not fit a {self.grid.label} grid"
			)

	def plan(self, script: ParsedScript, page_seq: Optional[Sequence] = None) -> List[PageSpec]:
		page_seq = page_seq or Sequence(start=1)
		specs: List[PageSpec] = []

		for scene in script.scenes:
			for chunk in chunk_shots(list(scene.shots), self.capacity):
				specs.append(
					PageSpec(
						page_number=page_seq.next(),
						scene_number=scene.scene_number,
						scene_description=scene.scene_description,
						shots=tuple(chunk),
					)
				)

		check_plan(script, specs, self.capacity)
		return specs

	def prompt_for(self, spec: PageSpec) -> str:
		return build_page_prompt(spec, self.grid)


def check_plan(script: ParsedScript, specs: List[PageSpec], capacity: int = PAGE_CAPACITY) -> None:
	"""
	分页不变量（失败即程序缺陷）：
	- 每页 1..capacity 个 shot
	- 一页内的 shot 全部属于该页的 scene
	- 按 page_number 拼回所有 shot == 剧本原 shot 序列（不丢、不重、不乱序）
	- page_number 连续
	"""
	scene_of = {}
	for scene in script.scenes:
		for shot in scene.shots:
			scene_of[shot.shot_number] = scene.scene_number

	for prev, cur in zip(specs, specs[1:]):
		if cur.page_number != prev.page_number + 1:
			raise PlanningInvariantViolation(
				f"page numbers not contiguous: {prev.page_number} -> {cur.page_number}"
			)

	for spec in specs:
		if not 1 <= len(spec.shots) <= capacity:
			raise PlanningInvariantViolation(
				f"page {spec.page_number} has {len(spec.shots)} shots (allowed 1..{capacity})"
			)
		for shot in spec.shots:
			if scene_of.get(shot.shot_number) != spec.scene_number:
				raise PlanningInvariantViolation(
					f"page {spec.page_number} (scene {spec.scene_number}) contains shot "
					f"{shot.shot_number} from scene {scene_of.get(shot.shot_number)}"
				)

	planned = [s.shot_number for spec in specs for s in spec.shots]
	expected = [s.shot_number for s in script.iter_shots()]
	if planned != expected:
		raise PlanningInvariantViolation("planned pages do not reproduce the script's shot sequence")
