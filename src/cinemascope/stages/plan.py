# -*- coding: utf-8 -*-
"""
cinemascope/stages/plan.py

目的：
- “分页规划阶段”：parsed_script.json -> pages_plan.json（PageSpec + 每页 prompt）。
- 纯确定性：同一个剧本永远得到同样的分页。
- pages_plan.json 带 source_digest（剧本 + 网格 + 容量的指纹）：没变就跳过；
  变了就重排，并作废旧分页下的 lofi_pages / frames / hifi_frames。
"""

from __future__ import annotations

from typing import List, Tuple

from cinemascope.core.grid import GridGeometry
from cinemascope.core.io import ProjectPaths, digest, read_json, write_json
from cinemascope.core.manifest import Manifest, load_manifest, save_manifest
from cinemascope.core.planner import PagePlanner
from cinemascope.core.schemas import PageSpec, ParsedScript
from cinemascope.stages.base import StageContext


# 依赖分页结果的阶段（manifest.status 里的键）
RENDER_STAGES = ("lofi", "crop", "hifi")


def load_script(paths: ProjectPaths) -> ParsedScript:
	data = read_json(paths.parsed_script)
	if data is None:
		raise FileNotFoundError(f"missing {paths.parsed_script}")
	return ParsedScript.from_dict(data)


def load_plan(paths: ProjectPaths) -> List[Tuple[PageSpec, str]]:
	"""返回 [(PageSpec, prompt)]，按 pageNumber 排序。"""
	data = read_json(paths.pages_plan)
	if data is None:
		raise FileNotFoundError(f"missing {paths.pages_plan}")
	items = [(PageSpec.from_dict(d), d.get("generationPrompt", "")) for d in data.get("pages", [])]
	return sorted(items, key=lambda it: it[0].page_number)


def planner_for(ctx: StageContext) -> PagePlanner:
	cfg = ctx.config
	return PagePlanner(GridGeometry(cfg.grid_cols, cfg.grid_rows), capacity=cfg.page_capacity)


def invalidate_renders(paths: ProjectPaths, m: Manifest) -> None:
	"""分页变了：旧分页下渲出的页/裁出的帧/高清帧全部作废（它们的 shotsIncluded 指向旧分页）。"""
	for p in (paths.lofi_pages, paths.frames, paths.hifi_frames):
		if p.exists():
			p.unlink()

	m.queues = {}
	m.extraction = {}
	for key in ("pages_rendered", "frames", "hifi_frames"):
		m.counts[key] = 0
	for key in ("done", "failed"):
		m.status[key] = [s for s in m.status.get(key, []) if s not in RENDER_STAGES]


class PlanStage:
	name = "plan"

	def run(self, paths: ProjectPaths, ctx: StageContext) -> None:
		script = load_script(paths)
		planner = planner_for(ctx)

		plan_digest = digest({
			"script": read_json(paths.parsed_script),
			"grid": [planner.grid.cols, planner.grid.rows],
			"capacity": planner.capacity,
		})
		previous = read_json(paths.pages_plan)

		m = load_manifest(paths.manifest)
		if previous is not None and previous.get("source_digest") == plan_digest:
			print(f"[SKIP] plan: {paths.pages_plan.name} is up to date")
			m.set_stage("planned")
			m.mark_done("plan")
			save_manifest(paths.manifest, m)
			return

		specs = planner.plan(script)

		pages = []
		for spec in specs:
			d = spec.to_dict()
			d["generationPrompt"] = planner.prompt_for(spec)
			pages.append(d)

		if previous is not None or paths.lofi_pages.exists():
			invalidate_renders(paths, m)
			print("[WARN] plan: page layout changed, previous renders dropped")

		write_json(
			paths.pages_plan,
			{
				"source_digest": plan_digest,
				"grid": {"cols": planner.grid.cols, "rows": planner.grid.rows},
				"capacity": planner.capacity,
				"pages": pages,
			},
		)

		m.counts["pages"] = len(specs)
		m.set_stage("planned")
		m.mark_done("plan")
		save_manifest(paths.manifest, m)
