# -*- coding: utf-8 -*-
"""
cinemascope/stages/crop.py

目的：
- “裁切阶段”：lofi_pages.json 的每一页 -> 按规划时的网格裁成格子 -> frames.json（CroppedFrame）。

失败隔离：
- 某一页拿不到/解不开原图（ExtractionFailure）：只记这一页，其余页照常裁。
- 分页与网格契约被破坏（PlanningInvariantViolation）：直接抛出，不吞。

续跑：
- 已经裁过的页（manifest.extraction.pages_done）不再重复下载/裁切；
  上次失败的页在重跑时会再试一次。
"""

from __future__ import annotations

from typing import Dict, List

from cinemascope.core.grid import GridFrameExtractor, GridGeometry, shot_lookup_from_script
from cinemascope.core.io import ProjectPaths, read_json, write_json
from cinemascope.core.manifest import load_manifest, save_manifest
from cinemascope.core.schemas import CroppedFrame
from cinemascope.errors import ExtractionFailure
from cinemascope.stages.base import StageContext
from cinemascope.stages.lofi import load_pages
from cinemascope.stages.plan import load_script


def load_frames(paths: ProjectPaths) -> List[CroppedFrame]:
	data = read_json(paths.frames, default={"frames": []})
	frames = [CroppedFrame.from_dict(d) for d in data.get("frames", [])]
	return sorted(frames, key=lambda f: (f.page_number, f.frame_index))


def save_frames(paths: ProjectPaths, frames: List[CroppedFrame]) -> None:
	ordered = sorted(frames, key=lambda f: (f.page_number, f.frame_index))
	write_json(paths.frames, {"frames": [f.to_dict() for f in ordered]})


def plan_grid(paths: ProjectPaths, ctx: StageContext) -> GridGeometry:
	"""裁切必须用规划时写进 prompt 的那个网格。"""
	data = read_json(paths.pages_plan, default={}) or {}
	grid = data.get("grid")
	if grid:
		return GridGeometry(int(grid["cols"]), int(grid["rows"]))
	return GridGeometry(ctx.config.grid_cols, ctx.config.grid_rows)


class CropStage:
	name = "crop"

	def run(self, paths: ProjectPaths, ctx: StageContext) -> None:
		script = load_script(paths)
		lookup = shot_lookup_from_script(script)
		pages = load_pages(paths)

		m = load_manifest(paths.manifest)
		extraction = m.extraction
		pages_done = set(extraction.get("pages_done", []))
		dropped = {int(k): v for k, v in extraction.get("dropped_panels", {}).items()}
		failed: Dict[int, str] = {}

		frames = [f for f in load_frames(paths) if f.page_number in pages_done]

		loader = ctx.raster_loader
		owned = loader is None
		if owned:
			from cinemascope.providers.image.fetch import RasterFetcher

			loader = RasterFetcher(timeout_s=ctx.config.request_timeout_s)

		extractor = GridFrameExtractor(loader, plan_grid(paths, ctx))
		try:
			for page in pages:
				if page.page_number in pages_done:
					continue

				try:
					result = extractor.extract(page, lookup)
				except ExtractionFailure as e:
					failed[page.page_number] = str(e)
					print(f"[WARN] {e}")
					continue

				frames.extend(result.frames)
				pages_done.add(page.page_number)
				if result.dropped_panels:
					dropped[page.page_number] = result.dropped_panels
		finally:
			if owned:
				loader.close()

		save_frames(paths, frames)

		m.extraction = {
			"grid": extractor.geometry.label,
			"pages_done": sorted(pages_done),
			"failed_pages": {str(k): v for k, v in sorted(failed.items())},
			"dropped_panels": {str(k): v for k, v in sorted(dropped.items())},
		}
		m.counts["frames"] = len(frames)

		if failed:
			m.mark_failed("crop", f"{len(failed)} page(s) failed: {sorted(failed)}")
			print(f"[WARN] crop: {len(pages_done)}/{len(pages)} pages extracted, failed pages {sorted(failed)}")
		else:
			m.set_stage("cropped")
			m.mark_done("crop")
		save_manifest(paths.manifest, m)
