# -*- coding: utf-8 -*-
"""
cinemascope/core/schemas/script.py

剧本树：ParsedScript -> Scene -> Shot。
- 由 structurer 一次性生成，之后只读（frozen）。
- 落盘/LLM 交互用 camelCase 键（shotNumber 等），Python 侧用 snake_case 属性。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Tuple


@dataclass(frozen=True)
class Shot:
	"""
	一个镜头（分镜最小单位）。

	shot_number：
	- 全剧本唯一、严格递增（文档顺序），下游所有阶段都用它做主键

	shot_type：
	- 规范化后的景别（close-up/wide/...），未识别的原样小写保留
	"""
	shot_number: int
	shot_type: str
	camera_movement: str
	composition: str
	lighting: str
	action: str
	dialogue: Optional[str] = None
	style_notes: str = ""
	frame_prompt: str = ""

	def to_dict(self) -> Dict[str, Any]:
		d: Dict[str, Any] = {
			"shotNumber": self.shot_number,
			"shotType": self.shot_type,
			"cameraMovement": self.camera_movement,
			"composition": self.composition,
			"lighting": self.lighting,
			"action": self.action,
			"styleNotes": self.style_notes,
			"framePrompt": self.frame_prompt,
		}
		if self.dialogue is not None:
			d["dialogue"] = self.dialogue
		return d

	@classmethod
	def from_dict(cls, d: Dict[str, Any]) -> "Shot":
		return cls(
			shot_number=int(d["shotNumber"]),
			shot_type=d.get("shotType", ""),
			camera_movement=d.get("cameraMovement", ""),
			composition=d.get("composition", ""),
			lighting=d.get("lighting", ""),
			action=d.get("action", ""),
			dialogue=d.get("dialogue"),
			style_notes=d.get("styleNotes", ""),
			frame_prompt=d.get("framePrompt", ""),
		)


@dataclass(frozen=True)
class Scene:
	"""shots 保持剧本顺序；这个顺序是“第 N 格是哪个 shot”的唯一依据。"""
	scene_number: int
	location: str
	scene_description: str
	shots: Tuple[Shot, ...]

	def to_dict(self) -> Dict[str, Any]:
		return {
			"sceneNumber": self.scene_number,
			"location": self.location,
			"sceneDescription": self.scene_description,
			"shots": [s.to_dict() for s in self.shots],
		}

	@classmethod
	def from_dict(cls, d: Dict[str, Any]) -> "Scene":
		return cls(
			scene_number=int(d["sceneNumber"]),
			location=d.get("location", ""),
			scene_description=d.get("sceneDescription", ""),
			shots=tuple(Shot.from_dict(s) for s in d.get("shots", [])),
		)


@dataclass(frozen=True)
class ParsedScript:
	title: str
	scenes: Tuple[Scene, ...]

	@property
	def total_scenes(self) -> int:
		return len(self.scenes)

	def iter_shots(self) -> Iterator[Shot]:
		for scene in self.scenes:
			yield from scene.shots

	@property
	def total_shots(self) -> int:
		return sum(len(s.shots) for s in self.scenes)

	def find_shot(self, shot_number: int) -> Optional[Shot]:
		for shot in self.iter_shots():
			if shot.shot_number == shot_number:
				return shot
		return None

	def to_dict(self) -> Dict[str, Any]:
		return {
			"title": self.title,
			"totalScenes": self.total_scenes,
			"scenes": [s.to_dict() for s in self.scenes],
		}

	@classmethod
	def from_dict(cls, d: Dict[str, Any]) -> "ParsedScript":
		return cls(
			title=d.get("title", ""),
			scenes=tuple(Scene.from_dict(s) for s in d.get("scenes", [])),
		)
