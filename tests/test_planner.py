# -*- coding: utf-8 -*-
"""分页规划测试：完整性、顺序、scene 边界、容量、prompt 布局提示。"""

from __future__ import annotations

import pytest

from conftest import raw_script

from cinemascope.core.grid import GridGeometry
from cinemascope.core.planner import (
	COMPACT_LAYOUT_HINT,
	PagePlanner,
	build_page_prompt,
	check_plan,
	layout_hint,
)
from cinemascope.core.schemas import PageSpec
from cinemascope.core.structurer import normalize_script
from cinemascope.errors import PlanningInvariantViolation


@pytest.mark.parametrize("counts", [(1,), (6,), (7,), (8, 3), (12, 1, 13), (5, 6, 7, 2)])
def test_pages_reproduce_shot_sequence(counts):
	script = normalize_script(raw_script(*counts))
	specs = PagePlanner().plan(script)

	planned = [s.shot_number for spec in specs for s in spec.shots]
	assert planned == [s.shot_number for s in script.iter_shots()]
	assert [spec.page_number for spec in specs] == list(range(1, len(specs) + 1))


@pytest.mark.parametrize("counts", [(8, 3), (12, 1, 13), (5, 6, 7, 2)])
def test_pages_never_cross_scene_boundary(counts):
	script = normalize_script(raw_script(*counts))
	scene_of = {shot.shot_number: scene.scene_number for scene in script.scenes for shot in scene.shots}

	for spec in PagePlanner().plan(script):
		assert {scene_of[s.shot_number] for s in spec.shots} == {spec.scene_number}
		assert 1 <= len(spec.shots) <= 6


def test_two_scenes_eight_and_three_shots():
	script = normalize_script(raw_script(8, 3))
	specs = PagePlanner().plan(script)

	assert [spec.page_number for spec in specs] == [1, 2, 3]
	assert [spec.scene_number for spec in specs] == [1, 1, 2]
	assert [spec.shot_numbers for spec in specs] == [[1, 2, 3, 4, 5, 6], [7, 8], [9, 10, 11]]
	assert specs[0].scene_description == "scene 1 description"


def test_smaller_capacity():
	script = normalize_script(raw_script(5))
	specs = PagePlanner(capacity=2).plan(script)
	assert [len(s.shots) for s in specs] == [2, 2, 1]


def test_capacity_must_fit_grid():
	with pytest.raises(PlanningInvariantViolation):
		PagePlanner(grid=GridGeometry(2, 2), capacity=6)


def test_check_plan_catches_cross_scene_page():
	script = normalize_script(raw_script(2, 2))
	scene1, scene2 = script.scenes
	bad = [
		PageSpec(1, 1, "", (scene1.shots[0],)),
		PageSpec(2, 1, "", (scene1.shots[1], scene2.shots[0])),
		PageSpec(3, 2, "", (scene2.shots[1],)),
	]
	with pytest.raises(PlanningInvariantViolation, match="contains shot"):
		check_plan(script, bad)


def test_check_plan_catches_dropped_shot():
	script = normalize_script(raw_script(3))
	shots = script.scenes[0].shots
	with pytest.raises(PlanningInvariantViolation):
		check_plan(script, [PageSpec(1, 1, "", shots[:2])])


class TestPagePrompt:
	def test_layout_hint(self):
		grid = GridGeometry(2, 3)
		assert layout_hint(1, grid) == COMPACT_LAYOUT_HINT
		assert layout_hint(2, grid) == "1x2 or 2x1 layout"
		assert layout_hint(3, grid) == "2x3 grid layout"
		assert layout_hint(6, grid) == "2x3 grid layout"

	def test_prompt_lists_frames_in_order(self):
		script = normalize_script(raw_script(8))
		spec = PagePlanner().plan(script)[0]
		prompt = build_page_prompt(spec)

		assert "pencil sketch" in prompt
		assert "with 6 panels arranged in a 2x3 grid layout" in prompt
		assert "Scene: scene 1 description." in prompt
		assert "Frame 1: scene 1 beat 1 in frame. scene 1 beat 1. wide shot." in prompt
		assert prompt.index("Frame 1:") < prompt.index("Frame 6:")
		assert " | Frame 2:" in prompt

	def test_short_page_prompt(self):
		script = normalize_script(raw_script(8))
		spec = PagePlanner().plan(script)[1]
		prompt = PagePlanner().prompt_for(spec)
		assert "with 2 panels arranged in a 1x2 or 2x1 layout" in prompt
		assert "Frame 3:" not in prompt
