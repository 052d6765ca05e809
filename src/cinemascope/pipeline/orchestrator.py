# -*- coding: utf-8 -*-
"""
cinemascope/pipeline/orchestrator.py

目的：
- 作为“阶段调度器”：按固定顺序执行各个 stage。
- 支持 `run_until(..., until="lofi")`：跑到指定阶段停止。
- CLI 不直接调用 stage，统一走 orchestrator。

注意：
- orchestrator 不关心任何具体业务（如何分页、如何调用模型）。
- 重试与否由调用者决定：渲染失败时 RenderFailure 原样抛出，再次 run_until 即从停下的位置续跑。
- 每次都从 ingest 开始走，但 structure/plan 在输入没变时直接跳过（见各自的 stage）。
"""

from __future__ import annotations

from typing import Optional

from cinemascope.core.io import project_paths
from cinemascope.core.manifest import load_manifest
from cinemascope.stages.base import StageContext
from cinemascope.stages.crop import CropStage
from cinemascope.stages.hifi import HiFiStage
from cinemascope.stages.ingest import IngestStage
from cinemascope.stages.lofi import LoFiStage
from cinemascope.stages.plan import PlanStage
from cinemascope.stages.structure import StructureStage


STAGE_ORDER = [
	"ingest",
	"structure",
	"plan",
	"lofi",
	"crop",
	"hifi",
]


def run_until(project_dir: str, ctx: StageContext, until: str = "hifi", script: Optional[str] = None) -> None:
	if until not in STAGE_ORDER:
		raise ValueError(f"unknown stage: {until}")

	paths = project_paths(project_dir)
	paths.ensure_dirs()

	stages = {
		"ingest": IngestStage(source=script),
		"structure": StructureStage(),
		"plan": PlanStage(),
		"lofi": LoFiStage(),
		"crop": CropStage(),
		"hifi": HiFiStage(),
	}

	for name in STAGE_ORDER:
		print(f"[RUN] stage={name}")
		stages[name].run(paths, ctx)

		if name == until:
			break

	# 打印当前 stage，便于确认断点续跑的“锚点”。
	if paths.manifest.exists():
		m = load_manifest(paths.manifest)
		print(f"[OK] current stage = {m.stage}")
