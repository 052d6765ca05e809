# -*- coding: utf-8 -*-
"""
cinemascope/stages/lofi.py

目的：
- “lo-fi 分镜页渲染阶段”：pages_plan.json -> lofi_pages.json（GeneratedPage，按 pageNumber 做键）。
- 一页一个请求，顺序执行、固定节流；失败停在当前页，重跑即续跑。

输入：
- pages_plan.json
- lofi_pages.json（如已存在：已有的页直接跳过，不重复调用）

输出：
- lofi_pages.json（每成功一页立即落盘）
- manifest.json：queues.lofi、stage -> lofi_rendered
"""

from __future__ import annotations

from typing import Dict, List

from cinemascope.core.io import ProjectPaths, read_json, write_json
from cinemascope.core.render_queue import RenderQueue, RenderRequest
from cinemascope.core.schemas import GeneratedPage
from cinemascope.stages.base import StageContext
from cinemascope.stages.plan import load_plan, planner_for
from cinemascope.stages.render_common import finish_queue, make_listener, resume_index


QUEUE_NAME = "lofi"


def load_pages(paths: ProjectPaths) -> List[GeneratedPage]:
	data = read_json(paths.lofi_pages, default={"pages": []})
	pages = [GeneratedPage.from_dict(d) for d in data.get("pages", [])]
	return sorted(pages, key=lambda p: p.page_number)


def save_pages(paths: ProjectPaths, pages: Dict[int, GeneratedPage]) -> None:
	ordered = [pages[k] for k in sorted(pages)]
	write_json(paths.lofi_pages, {"pages": [p.to_dict() for p in ordered]})


class LoFiStage:
	name = "lofi"

	def run(self, paths: ProjectPaths, ctx: StageContext) -> None:
		plan = load_plan(paths)
		planner = planner_for(ctx)
		specs = {spec.page_number: spec for spec, _ in plan}

		requests = [
			RenderRequest(key=spec.page_number, prompt=prompt or planner.prompt_for(spec))
			for spec, prompt in plan
		]

		def make_output(req: RenderRequest, url: str) -> GeneratedPage:
			spec = specs[req.key]
			return GeneratedPage(
				page_number=spec.page_number,
				scene_number=spec.scene_number,
				image_url=url,
				shots_included=tuple(spec.shot_numbers),
				generation_prompt=req.prompt,
			)

		existing = {p.page_number: p for p in load_pages(paths)}

		service = ctx.lofi_service
		owned = service is None
		if owned:
			from cinemascope.providers.image.replicate_client import load_replicate_service

			service = load_replicate_service(
				"lofi",
				project_root=ctx.project_root,
				timeout_s=ctx.config.request_timeout_s,
			)

		queue = RenderQueue(
			service,
			requests,
			make_output,
			name=QUEUE_NAME,
			cooldown_s=ctx.config.cooldown_s,
			outputs=existing,
			sleep=ctx.sleep,
			clock=ctx.clock,
		)
		queue.listener = make_listener(
			paths.generation_log,
			QUEUE_NAME,
			lambda: save_pages(paths, queue.outputs),
		)

		try:
			report = queue.run(start=resume_index(paths, QUEUE_NAME))
		finally:
			if owned:
				service.close()

		finish_queue(paths, QUEUE_NAME, report, done_stage="lofi_rendered", count_key="pages_rendered")
