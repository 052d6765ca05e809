# -*- coding: utf-8 -*-
"""
cinemascope/core/io.py

目的：
- 统一管理项目目录（一个剧本一个目录）的路径约定。
- 统一创建目录骨架（ensure_dirs）和 JSON/JSONL 读写。

项目目录约定核心路径：
- manifest.json          : 状态机与断点续跑信息（含每个渲染队列的进度）
- text/script_raw.txt    : 剧本原文（structure 输入）
- parsed_script.json     : ParsedScript
- pages_plan.json        : PageSpec 列表
- lofi_pages.json        : GeneratedPage 列表（按 pageNumber 追加）
- frames.json            : CroppedFrame 列表（含 base64）
- hifi_frames.json       : HiFiFrame 列表（按 shotNumber 追加）
- logs/generation.jsonl  : 每次远程生成调用一行
"""

from __future__ import annotations

import hashlib
import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict


@dataclass(frozen=True)
class ProjectPaths:
	"""
	注意：
	- 只存路径，不做读写。
	- ensure_dirs() 负责创建目录骨架。
	"""
	root: Path
	manifest: Path
	script_raw: Path
	parsed_script: Path
	pages_plan: Path
	lofi_pages: Path
	frames: Path
	hifi_frames: Path
	logs_dir: Path
	generation_log: Path

	def ensure_dirs(self) -> None:
		# 重复执行必须安全（exist_ok=True）
		for d in (self.root / "text", self.logs_dir):
			d.mkdir(parents=True, exist_ok=True)


def project_paths(project_dir: str | Path) -> ProjectPaths:
	root = Path(project_dir)

	return ProjectPaths(
		root=root,
		manifest=root / "manifest.json",
		script_raw=root / "text" / "script_raw.txt",
		parsed_script=root / "parsed_script.json",
		pages_plan=root / "pages_plan.json",
		lofi_pages=root / "lofi_pages.json",
		frames=root / "frames.json",
		hifi_frames=root / "hifi_frames.json",
		logs_dir=root / "logs",
		generation_log=root / "logs" / "generation.jsonl",
	)


def read_json(path: Path, default: Any = None) -> Any:
	if not path.exists():
		return default
	return json.loads(path.read_text(encoding="utf-8"))


def write_json(path: Path, data: Any) -> None:
	# 先写临时文件再替换：进程中途被杀也不会留下半个 JSON
	tmp = path.with_name(path.name + ".tmp")
	tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
	tmp.replace(path)


def append_jsonl(path: Path, record: Dict[str, Any]) -> None:
	path.parent.mkdir(parents=True, exist_ok=True)
	row = {"ts": round(time.time(), 3), **record}
	with path.open("a", encoding="utf-8") as f:
		f.write(json.dumps(row, ensure_ascii=False) + "\n")


def digest(data: Any) -> str:
	"""内容指纹：字符串直接算；其他对象按排序后的 JSON 算。"""
	if not isinstance(data, str):
		data = json.dumps(data, ensure_ascii=False, sort_keys=True)
	return hashlib.sha256(data.encode("utf-8")).hexdigest()
