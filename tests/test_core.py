# -*- coding: utf-8 -*-
"""Core 模块单元测试：schemas / sequence / structurer / manifest / config。"""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from conftest import raw_script, raw_shot

from cinemascope.core.config import PipelineConfig, load_pipeline_config
from cinemascope.core.manifest import load_manifest, new_manifest, save_manifest
from cinemascope.core.schemas import CroppedFrame, ParsedScript, Shot
from cinemascope.core.sequence import Sequence
from cinemascope.core.structurer import normalize_script, normalize_shot_type
from cinemascope.errors import ParseFailure, PlanningInvariantViolation


class TestSchemas:
	def test_shot_camel_case_keys(self):
		s = Shot(3, "close-up", "static", "face", "low key", "she turns", dialogue="Hello")
		d = s.to_dict()
		assert d["shotNumber"] == 3
		assert d["shotType"] == "close-up"
		assert d["dialogue"] == "Hello"
		assert Shot.from_dict(d) == s

	def test_shot_without_dialogue_omits_key(self):
		s = Shot(1, "wide", "", "", "", "walks")
		assert "dialogue" not in s.to_dict()

	def test_parsed_script_total_scenes(self):
		script = normalize_script(raw_script(2, 3))
		d = script.to_dict()
		assert d["totalScenes"] == 2
		loaded = ParsedScript.from_dict(d)
		assert loaded == script
		assert loaded.total_shots == 5

	def test_cropped_frame_keeps_shot_data(self):
		shot = Shot(7, "medium", "pan left", "two people", "dusk", "they argue")
		f = CroppedFrame(frame_index=1, page_number=2, shot_number=7, base64="data:image/png;base64,AAAA", shot_data=shot)
		assert CroppedFrame.from_dict(f.to_dict()).shot_data == shot


class TestSequence:
	def test_counts_from_start(self):
		seq = Sequence(start=1)
		assert [seq.next() for _ in range(3)] == [1, 2, 3]
		assert seq.peek() == 4
		assert seq.issued == 3

	def test_cursor_is_not_a_constructor_argument(self):
		with pytest.raises(TypeError):
			Sequence(1, 5)
		assert Sequence(start=5).next() == 5


class TestStructurer:
	def test_numbering_is_global_and_in_document_order(self):
		script = normalize_script(raw_script(3, 2, 4))
		assert [s.scene_number for s in script.scenes] == [1, 2, 3]
		assert [s.shot_number for s in script.iter_shots()] == list(range(1, 10))
		assert script.total_scenes == 3

	def test_ignores_numbers_from_llm(self):
		raw = raw_script(2)
		raw["scenes"][0]["sceneNumber"] = 9
		raw["scenes"][0]["shots"][0]["shotNumber"] = 42
		raw["scenes"][0]["shots"][1]["shotNumber"] = 42
		script = normalize_script(raw)
		assert script.scenes[0].scene_number == 1
		assert [s.shot_number for s in script.iter_shots()] == [1, 2]

	def test_continues_from_given_sequences(self):
		script = normalize_script(raw_script(2), scene_seq=Sequence(5), shot_seq=Sequence(100))
		assert script.scenes[0].scene_number == 5
		assert [s.shot_number for s in script.iter_shots()] == [100, 101]

	def test_zero_scenes_fails(self):
		with pytest.raises(ParseFailure, match="zero scenes"):
			normalize_script({"title": "x", "scenes": []})

	def test_missing_scenes_fails(self):
		with pytest.raises(ParseFailure):
			normalize_script({"title": "x"})

	def test_scene_without_shots_fails(self):
		raw = raw_script(2, 1)
		raw["scenes"][1]["shots"] = []
		with pytest.raises(ParseFailure, match="no shots"):
			normalize_script(raw)

	def test_shot_without_content_fails(self):
		raw = {"scenes": [{"location": "X", "shots": [{"shotType": "wide"}]}]}
		with pytest.raises(ParseFailure, match="no action"):
			normalize_script(raw)

	def test_nested_value_is_malformed(self):
		raw = {"scenes": [{"location": "X", "shots": [{"action": {"text": "run"}}]}]}
		with pytest.raises(ParseFailure):
			normalize_script(raw)

	def test_default_title_and_empty_dialogue(self):
		raw = {"scenes": [{"shots": [dict(raw_shot("runs"), dialogue="  ")]}]}
		script = normalize_script(raw, default_title="Draft")
		assert script.title == "Draft"
		assert script.scenes[0].shots[0].dialogue is None

	def test_shot_types_normalized(self):
		assert normalize_shot_type("CU") == "close-up"
		assert normalize_shot_type("Extreme Close-Up") == "extreme close-up"
		assert normalize_shot_type("wide shot") == "wide"
		assert normalize_shot_type("over the shoulder") == "over-the-shoulder"
		assert normalize_shot_type("Dutch Angle") == "dutch angle"
		assert normalize_shot_type("") == ""


class TestManifest:
	def test_new_and_save_load(self):
		with tempfile.TemporaryDirectory() as d:
			p = Path(d) / "manifest.json"
			m = new_manifest("short_01", "Night Run")
			m.set_queue_progress("lofi", {"state": "stopped", "current_index": 3})
			save_manifest(p, m)
			loaded = load_manifest(p)
			assert loaded.meta["project_id"] == "short_01"
			assert loaded.stage == "empty"
			assert loaded.queue_progress("lofi")["current_index"] == 3

	def test_invalid_stage(self):
		m = new_manifest("p")
		with pytest.raises(ValueError):
			m.set_stage("segmented")

	def test_mark_done_clears_failure(self):
		m = new_manifest("p")
		m.mark_failed("lofi", "boom")
		assert "lofi" in m.status["failed"]
		m.mark_done("lofi")
		assert "lofi" not in m.status["failed"]
		assert "lofi" in m.status["done"]


class TestConfig:
	def test_defaults(self):
		cfg = PipelineConfig().validate()
		assert cfg.cooldown_s == 1.0
		assert (cfg.grid_cols, cfg.grid_rows, cfg.page_capacity) == (2, 3, 6)

	def test_capacity_larger_than_grid(self):
		with pytest.raises(PlanningInvariantViolation):
			PipelineConfig(page_capacity=7).validate()

	def test_env_overrides(self, tmp_path, monkeypatch):
		monkeypatch.setenv("CINEMASCOPE_COOLDOWN_S", "2.5")
		monkeypatch.delenv("CINEMASCOPE_PAGE_CAPACITY", raising=False)
		cfg = load_pipeline_config(project_root=str(tmp_path))
		assert cfg.cooldown_s == 2.5
		assert cfg.page_capacity == 6

	def test_explicit_argument_wins(self, tmp_path, monkeypatch):
		monkeypatch.setenv("CINEMASCOPE_COOLDOWN_S", "2.5")
		cfg = load_pipeline_config(project_root=str(tmp_path), cooldown_s=0)
		assert cfg.cooldown_s == 0
