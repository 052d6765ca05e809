# -*- coding: utf-8 -*-
"""
cinemascope/stages/structure.py

目的：
- “剧本结构化阶段”：script_raw.txt -> parsed_script.json（ParsedScript）。

只结构化一次：
- manifest.meta.script_digest 记下结构化时剧本原文的指纹。
- 原文没变且 parsed_script.json 已存在：直接跳过，不再调用 LLM。
  续跑时后面的页/帧都引用这份 ParsedScript 的 shotNumber，重排编号会让它们对不上。
- 原文变了或 ctx.force：重新结构化；下游产物由 plan 阶段判断是否作废。

失败：
- ParseFailure 对本次运行是致命的：记进 manifest 后直接抛出，不写半成品。
"""

from __future__ import annotations

from cinemascope.core.io import ProjectPaths, digest, write_json
from cinemascope.core.manifest import load_manifest, save_manifest
from cinemascope.errors import ParseFailure
from cinemascope.skills.structure_script.skill import ScriptStructurer
from cinemascope.stages.base import StageContext


class StructureStage:
	name = "structure"

	def run(self, paths: ProjectPaths, ctx: StageContext) -> None:
		if not paths.script_raw.exists():
			raise FileNotFoundError(f"missing {paths.script_raw}")

		raw_text = paths.script_raw.read_text(encoding="utf-8")
		script_digest = digest(raw_text)

		m = load_manifest(paths.manifest)
		up_to_date = paths.parsed_script.exists() and m.meta.get("script_digest") == script_digest
		if up_to_date and not ctx.force:
			print(f"[SKIP] structure: {paths.parsed_script.name} is up to date")
			m.set_stage("structured")
			m.mark_done("structure")
			save_manifest(paths.manifest, m)
			return

		llm = ctx.llm_client
		owned = llm is None
		if owned:
			from cinemascope.providers.llm.chat_client import load_chat_client

			llm = load_chat_client(project_root=ctx.project_root)

		try:
			script = ScriptStructurer(llm, default_title=ctx.title or "Untitled").parse(raw_text)
		except ParseFailure as e:
			m.mark_failed("structure", str(e))
			save_manifest(paths.manifest, m)
			raise
		finally:
			if owned:
				llm.close()

		write_json(paths.parsed_script, script.to_dict())

		model = getattr(getattr(llm, "cfg", None), "model", "")
		if model:
			m.providers["llm"] = {"model": model}
		m.meta["title"] = script.title
		m.meta["script_digest"] = script_digest
		m.counts["scenes"] = script.total_scenes
		m.counts["shots"] = script.total_shots
		m.set_stage("structured")
		m.mark_done("structure")
		save_manifest(paths.manifest, m)
