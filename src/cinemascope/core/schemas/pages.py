# -*- coding: utf-8 -*-
"""
cinemascope/core/schemas/pages.py

分页与渲染产物：
- PageSpec：规划产物（一页最多 6 个 shot），可丢弃，不依赖远程调用
- GeneratedPage：lo-fi 渲染结果，shots_included[i] 就是网格第 i 格的 shot
- CroppedFrame：从页图裁出来的一格，base64 是自包含的 data URI（给 hi-fi 当参考图）
- HiFiFrame：最终产物，按 shot_number 做键
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from .script import Shot


@dataclass(frozen=True)
class PageSpec:
	page_number: int
	scene_number: int
	scene_description: str
	shots: Tuple[Shot, ...]

	@property
	def shot_numbers(self) -> List[int]:
		return [s.shot_number for s in self.shots]

	def to_dict(self) -> Dict[str, Any]:
		return {
			"pageNumber": self.page_number,
			"sceneNumber": self.scene_number,
			"sceneDescription": self.scene_description,
			"shots": [s.to_dict() for s in self.shots],
		}

	@classmethod
	def from_dict(cls, d: Dict[str, Any]) -> "PageSpec":
		return cls(
			page_number=int(d["pageNumber"]),
			scene_number=int(d["sceneNumber"]),
			scene_description=d.get("sceneDescription", ""),
			shots=tuple(Shot.from_dict(s) for s in d.get("shots", [])),
		)


@dataclass(frozen=True)
class GeneratedPage:
	page_number: int
	scene_number: int
	image_url: str
	shots_included: Tuple[int, ...]
	generation_prompt: str

	def to_dict(self) -> Dict[str, Any]:
		return {
			"pageNumber": self.page_number,
			"sceneNumber": self.scene_number,
			"imageUrl": self.image_url,
			"shotsIncluded": list(self.shots_included),
			"generationPrompt": self.generation_prompt,
		}

	@classmethod
	def from_dict(cls, d: Dict[str, Any]) -> "GeneratedPage":
		return cls(
			page_number=int(d["pageNumber"]),
			scene_number=int(d["sceneNumber"]),
			image_url=d["imageUrl"],
			shots_included=tuple(int(n) for n in d.get("shotsIncluded", [])),
			generation_prompt=d.get("generationPrompt", ""),
		)


@dataclass(frozen=True)
class CroppedFrame:
	frame_index: int
	page_number: int
	shot_number: int
	base64: str
	shot_data: Shot

	def to_dict(self) -> Dict[str, Any]:
		return {
			"frameIndex": self.frame_index,
			"pageNumber": self.page_number,
			"shotNumber": self.shot_number,
			"base64": self.base64,
			"shotData": self.shot_data.to_dict(),
		}

	@classmethod
	def from_dict(cls, d: Dict[str, Any]) -> "CroppedFrame":
		return cls(
			frame_index=int(d["frameIndex"]),
			page_number=int(d["pageNumber"]),
			shot_number=int(d["shotNumber"]),
			base64=d["base64"],
			shot_data=Shot.from_dict(d["shotData"]),
		)


@dataclass(frozen=True)
class HiFiFrame:
	shot_number: int
	image_url: str
	generation_prompt: str

	def to_dict(self) -> Dict[str, Any]:
		return {
			"shotNumber": self.shot_number,
			"imageUrl": self.image_url,
			"generationPrompt": self.generation_prompt,
		}

	@classmethod
	def from_dict(cls, d: Dict[str, Any]) -> "HiFiFrame":
		return cls(
			shot_number=int(d["shotNumber"]),
			image_url=d["imageUrl"],
			generation_prompt=d.get("generationPrompt", ""),
		)
