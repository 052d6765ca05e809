# -*- coding: utf-8 -*-
"""
cinemascope/stages/hifi.py

目的：
- “hi-fi 渲染阶段”：frames.json 的每一格 -> 以铅笔格子为参考图的写实单镜 -> hifi_frames.json。
- 以 shotNumber 做键：同一个 shot 只渲一次；两格指向同一个 shot 时，第二格直接跳过。
- 与 lofi 同一个队列：顺序、节流、失败即停、重跑续跑。
"""

from __future__ import annotations

from typing import Dict, List

from cinemascope.core.io import ProjectPaths, read_json, write_json
from cinemascope.core.render_queue import RenderQueue, RenderRequest
from cinemascope.core.schemas import HiFiFrame
from cinemascope.skills.hifi_prompt import build_hifi_prompt
from cinemascope.stages.base import StageContext
from cinemascope.stages.crop import load_frames
from cinemascope.stages.render_common import finish_queue, make_listener, resume_index


QUEUE_NAME = "hifi"


def load_hifi_frames(paths: ProjectPaths) -> List[HiFiFrame]:
	data = read_json(paths.hifi_frames, default={"frames": []})
	return [HiFiFrame.from_dict(d) for d in data.get("frames", [])]


def save_hifi_frames(paths: ProjectPaths, frames: Dict[int, HiFiFrame]) -> None:
	ordered = [frames[k] for k in sorted(frames)]
	write_json(paths.hifi_frames, {"frames": [f.to_dict() for f in ordered]})


class HiFiStage:
	name = "hifi"

	def run(self, paths: ProjectPaths, ctx: StageContext) -> None:
		frames = load_frames(paths)
		if not frames:
			raise FileNotFoundError(f"no cropped frames in {paths.frames}")

		requests = [
			RenderRequest(
				key=f.shot_number,
				prompt=build_hifi_prompt(f.shot_data),
				reference_image=f.base64,
			)
			for f in frames
		]

		def make_output(req: RenderRequest, url: str) -> HiFiFrame:
			return HiFiFrame(shot_number=req.key, image_url=url, generation_prompt=req.prompt)

		existing = {f.shot_number: f for f in load_hifi_frames(paths)}

		service = ctx.hifi_service
		owned = service is None
		if owned:
			from cinemascope.providers.image.replicate_client import load_replicate_service

			service = load_replicate_service(
				"hifi",
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
			lambda: save_hifi_frames(paths, queue.outputs),
		)

		try:
			report = queue.run(start=resume_index(paths, QUEUE_NAME))
		finally:
			if owned:
				service.close()

		finish_queue(paths, QUEUE_NAME, report, done_stage="hifi_rendered", count_key="hifi_frames")
