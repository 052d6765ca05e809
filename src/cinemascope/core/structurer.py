# -*- coding: utf-8 -*-
"""
core/structurer.py

这个文件做什么：
- 把“结构化原始结果”（LLM 返回的 dict）规范化成 ParsedScript。
- 这是纯函数：不调用模型、不读写文件。场景/镜头怎么从散文里推断出来，是 LLM 的事；
  这里只负责编号与规范化契约，必须独立可测。

契约：
- scene_number：全局唯一、严格递增（文档顺序）
- shot_number：全局唯一、严格递增（跨 scene 连续，文档顺序）
- total_scenes == len(scenes)
- 任何畸形输入：raise ParseFailure，绝不返回半棵树
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from cinemascope.core.schemas import ParsedScript, Scene, Shot
from cinemascope.core.sequence import Sequence
from cinemascope.errors import ParseFailure


SHOT_TYPES = [
	"extreme close-up",
	"close-up",
	"medium close-up",
	"medium",
	"medium wide",
	"wide",
	"extreme wide",
	"establishing",
	"over-the-shoulder",
	"point-of-view",
	"two-shot",
	"insert",
	"aerial",
]

_SHOT_TYPE_ALIASES = {
	"ecu": "extreme close-up",
	"xcu": "extreme close-up",
	"extreme closeup": "extreme close-up",
	"cu": "close-up",
	"closeup": "close-up",
	"close up": "close-up",
	"mcu": "medium close-up",
	"medium closeup": "medium close-up",
	"medium close up": "medium close-up",
	"ms": "medium",
	"mid": "medium",
	"mid shot": "medium",
	"medium shot": "medium",
	"mws": "medium wide",
	"medium long": "medium wide",
	"cowboy": "medium wide",
	"ws": "wide",
	"long": "wide",
	"ls": "wide",
	"full": "wide",
	"ews": "extreme wide",
	"els": "extreme wide",
	"extreme long": "extreme wide",
	"est": "establishing",
	"ots": "over-the-shoulder",
	"over the shoulder": "over-the-shoulder",
	"pov": "point-of-view",
	"point of view": "point-of-view",
	"two shot": "two-shot",
	"2-shot": "two-shot",
	"cutaway": "insert",
	"drone": "aerial",
	"bird's-eye": "aerial",
	"birds eye": "aerial",
	"bird's eye": "aerial",
	"bird’s-eye": "aerial",
}

_SHOT_FIELDS = ("shotType", "cameraMovement", "composition", "lighting", "action", "styleNotes", "framePrompt")


def normalize_shot_type(raw: str) -> str:
	"""
	景别规范化：别名映射到 SHOT_TYPES；识别不了的保留小写原文（不拒绝）。
	"""
	t = re.sub(r"[\s_]+", " ", (raw or "").strip().lower())
	t = re.sub(r"\s+shot$", "", t).strip()
	if not t:
		return ""

	if t in SHOT_TYPES:
		return t

	if t in _SHOT_TYPE_ALIASES:
		return _SHOT_TYPE_ALIASES[t]

	hyphenated = t.replace(" ", "-")
	if hyphenated in SHOT_TYPES:
		return hyphenated

	return t


def _text(value: Any, where: str) -> str:
	if value is None:
		return ""
	if isinstance(value, (dict, list)):
		raise ParseFailure(f"{where}: expected text, got {type(value).__name__}")
	return str(value).strip()


def _normalize_shot(raw: Any, shot_number: int, where: str) -> Shot:
	if not isinstance(raw, dict):
		raise ParseFailure(f"{where}: shot must be an object")

	values = {k: _text(raw.get(k), f"{where}.{k}") for k in _SHOT_FIELDS}

	if not (values["action"] or values["composition"] or values["framePrompt"]):
		raise ParseFailure(f"{where}: shot has no action/composition")

	dialogue: Optional[str] = _text(raw.get("dialogue"), f"{where}.dialogue") or None

	return Shot(
		shot_number=shot_number,
		shot_type=normalize_shot_type(values["shotType"]),
		camera_movement=values["cameraMovement"],
		composition=values["composition"],
		lighting=values["lighting"],
		action=values["action"],
		dialogue=dialogue,
		style_notes=values["styleNotes"],
		frame_prompt=values["framePrompt"],
	)


def normalize_script(
	raw: Dict[str, Any],
	scene_seq: Optional[Sequence] = None,
	shot_seq: Optional[Sequence] = None,
	default_title: str = "Untitled",
) -> ParsedScript:
	"""
	raw -> ParsedScript。

	raw 里自带的 sceneNumber/shotNumber 一律忽略，按文档顺序重新编号。
	scene_seq/shot_seq 由调用方传入时，从它们当前位置继续发号。
	"""
	if not isinstance(raw, dict):
		raise ParseFailure("structured script must be a JSON object")

	raw_scenes = raw.get("scenes")
	if not isinstance(raw_scenes, list):
		raise ParseFailure("structured script has no 'scenes' list")
	if not raw_scenes:
		raise ParseFailure("structured script has zero scenes")

	scene_seq = scene_seq or Sequence(start=1)
	shot_seq = shot_seq or Sequence(start=1)

	scenes: List[Scene] = []
	for si, raw_scene in enumerate(raw_scenes):
		where = f"scenes[{si}]"
		if not isinstance(raw_scene, dict):
			raise ParseFailure(f"{where}: scene must be an object")

		raw_shots = raw_scene.get("shots")
		if not isinstance(raw_shots, list) or not raw_shots:
			raise ParseFailure(f"{where}: scene has no shots")

		shots = tuple(
			_normalize_shot(rs, shot_seq.next(), f"{where}.shots[{i}]")
			for i, rs in enumerate(raw_shots)
		)

		scenes.append(
			Scene(
				scene_number=scene_seq.next(),
				location=_text(raw_scene.get("location"), f"{where}.location"),
				scene_description=_text(raw_scene.get("sceneDescription"), f"{where}.sceneDescription"),
				shots=shots,
			)
		)

	title = _text(raw.get("title"), "title") or default_title
	return ParsedScript(title=title, scenes=tuple(scenes))
