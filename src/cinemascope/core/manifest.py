# -*- coding: utf-8 -*-
"""
cinemascope/core/manifest.py

目的：
- 定义 manifest.json 的数据结构与读写方法。
- 维护项目的“状态机”：每个 stage 跑完更新一次。
- 记录每个渲染队列（lofi/hifi）的进度，支持断点续跑。

manifest 的核心字段：
- status.stage      : 当前阶段（empty/ingested/structured/...）
- status.done       : 已完成阶段的标记
- status.failed     : 失败阶段标记
- status.last_error : 最近一次错误信息
- queues.<name>     : {state, current_index, total, completed, last_error}
- extraction        : {failed_pages, dropped_panels}
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict


STAGES = [
	"empty",
	"ingested",
	"structured",
	"planned",
	"lofi_rendered",
	"cropped",
	"hifi_rendered",
]


@dataclass
class Manifest:
	schema_version: str
	meta: Dict[str, Any]
	status: Dict[str, Any]
	counts: Dict[str, Any]
	providers: Dict[str, Any]
	queues: Dict[str, Any] = field(default_factory=dict)
	extraction: Dict[str, Any] = field(default_factory=dict)

	@property
	def stage(self) -> str:
		return self.status.get("stage", "empty")

	def set_stage(self, stage: str) -> None:
		if stage not in STAGES:
			raise ValueError(f"invalid stage: {stage}")

		self.status["stage"] = stage

	def mark_done(self, key: str) -> None:
		done = self.status.setdefault("done", [])
		if key not in done:
			done.append(key)

		# 重跑成功后清掉该阶段的失败标记
		failed = self.status.setdefault("failed", [])
		if key in failed:
			failed.remove(key)

	def mark_failed(self, key: str, err: str) -> None:
		failed = self.status.setdefault("failed", [])
		if key not in failed:
			failed.append(key)

		self.status["last_error"] = err

	def queue_progress(self, name: str) -> Dict[str, Any]:
		return self.queues.get(name, {})

	def set_queue_progress(self, name: str, progress: Dict[str, Any]) -> None:
		self.queues[name] = dict(progress)


def new_manifest(project_id: str, title: str = "") -> Manifest:
	return Manifest(
		schema_version="cinemascope.v0.1",
		meta={
			"project_id": project_id,
			"title": title,
			"created_at": "",
		},
		status={
			"stage": "empty",
			"done": [],
			"failed": [],
			"last_error": "",
		},
		counts={
			"scenes": 0,
			"shots": 0,
			"pages": 0,
			"frames": 0,
			"hifi_frames": 0,
		},
		providers={
			"llm": {},
			"lofi": {"provider": "replicate"},
			"hifi": {"provider": "replicate"},
		},
	)


def load_manifest(path: Path) -> Manifest:
	"""
	容错：缺字段就用空 dict，避免旧 manifest 轻易崩。
	"""
	data = json.loads(path.read_text(encoding="utf-8"))

	return Manifest(
		schema_version=data.get("schema_version", ""),
		meta=data.get("meta", {}),
		status=data.get("status", {}),
		counts=data.get("counts", {}),
		providers=data.get("providers", {}),
		queues=data.get("queues", {}),
		extraction=data.get("extraction", {}),
	)


def save_manifest(path: Path, m: Manifest) -> None:
	data = {
		"schema_version": m.schema_version,
		"meta": m.meta,
		"status": m.status,
		"counts": m.counts,
		"providers": m.providers,
		"queues": m.queues,
		"extraction": m.extraction,
	}

	path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
