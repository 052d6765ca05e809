# -*- coding: utf-8 -*-
"""
cinemascope/stages/ingest.py

目的：
- “输入准备阶段”：确保项目目录与 manifest 存在，剧本原文就位，并把 manifest 置为 ingested。

输入：
- text/script_raw.txt（必须存在；由 `cinemascope prepare` 或 IngestStage(source=...) 放进去）

注意：
- PDF/DOCX 的文字抽取不在这里做：请先转成纯文本。
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from cinemascope.core.io import ProjectPaths
from cinemascope.core.manifest import load_manifest, new_manifest, save_manifest
from cinemascope.stages.base import StageContext


TEXT_SUFFIXES = (".txt", ".md", ".fountain")
DOCUMENT_SUFFIXES = (".pdf", ".docx", ".doc")


def read_script_file(path: Path) -> str:
	suffix = path.suffix.lower()
	if suffix in DOCUMENT_SUFFIXES:
		raise ValueError(f"{path.name}: extract the text first (pdf/docx are not read here)")
	if suffix and suffix not in TEXT_SUFFIXES:
		raise ValueError(f"{path.name}: unsupported script file type {suffix}")
	return path.read_text(encoding="utf-8")


class IngestStage:
	name = "ingest"

	def __init__(self, source: Optional[str] = None):
		self.source = source

	def run(self, paths: ProjectPaths, ctx: StageContext) -> None:
		paths.ensure_dirs()

		if not paths.manifest.exists():
			save_manifest(paths.manifest, new_manifest(ctx.project_id, ctx.title))

		if self.source:
			text = read_script_file(Path(self.source))
			paths.script_raw.write_text(text, encoding="utf-8")

		if not paths.script_raw.exists():
			raise FileNotFoundError(
				f"missing {paths.script_raw} "
				"(run `cinemascope prepare --script <file>` first)"
			)

		if not paths.script_raw.read_text(encoding="utf-8").strip():
			raise ValueError(f"{paths.script_raw} is empty")

		m = load_manifest(paths.manifest)
		m.set_stage("ingested")
		m.mark_done("ingest")
		save_manifest(paths.manifest, m)
