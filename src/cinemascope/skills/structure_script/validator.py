# -*- coding: utf-8 -*-
"""
structure_script/validator.py

这个文件做什么：
- 对 LLM 输出做形状校验（只看结构，不看内容质量）。
- 任何不合规：直接 raise ParseFailure。字段级规范化在 core/structurer.py。

为什么单独校验：
- LLM 偶尔会把 JSON 包在别的键下面、或者给出 schema_version 之外的东西。
"""

from __future__ import annotations

from typing import Any, Dict

from cinemascope.errors import ParseFailure

from .prompt import SCHEMA_VERSION


def unwrap_payload(data: Any) -> Dict[str, Any]:
	"""
	有些模型会返回 {"script": {...}} 或 {"data": {...}}：剥一层。
	"""
	if not isinstance(data, dict):
		raise ParseFailure("LLM output must be a JSON object")

	if "scenes" in data:
		return data

	for k in ("script", "data", "result", "storyboard"):
		inner = data.get(k)
		if isinstance(inner, dict) and "scenes" in inner:
			return inner

	raise ParseFailure("LLM output has no 'scenes'")


def validate_structure_shape(data: Dict[str, Any]) -> None:
	version = data.get("schema_version")
	if version is not None and version != SCHEMA_VERSION:
		raise ParseFailure(f"unsupported schema_version: {version}")

	scenes = data.get("scenes")
	if not isinstance(scenes, list):
		raise ParseFailure("scenes must be a list")
	if not scenes:
		raise ParseFailure("LLM found zero scenes")

	for i, scene in enumerate(scenes):
		if not isinstance(scene, dict):
			raise ParseFailure(f"scenes[{i}] must be an object")
		if not isinstance(scene.get("shots"), list):
			raise ParseFailure(f"scenes[{i}].shots must be a list")
