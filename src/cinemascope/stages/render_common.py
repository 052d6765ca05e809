# -*- coding: utf-8 -*-
"""
cinemascope/stages/render_common.py

lofi/hifi 两个渲染阶段共用的部分：
- 队列事件 -> logs/generation.jsonl（每次远程调用一行；base64 不写进日志）
- 每次成功后立刻落盘输出文件，进程被杀也能从磁盘恢复 skip-list
- 队列结束 -> manifest.queues.<name>；停下时记失败并抛出 RenderFailure
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Optional

from cinemascope.core.io import ProjectPaths, append_jsonl
from cinemascope.core.manifest import load_manifest, save_manifest
from cinemascope.core.render_queue import QueueListener, QueueReport, RenderRequest


def _loggable(value: Any) -> Any:
	if isinstance(value, str) and value.startswith("data:"):
		return value[:32] + "...(inline)"
	return value


def make_listener(
	log_path: Path,
	queue_name: str,
	persist: Callable[[], None],
) -> QueueListener:
	def on_event(
		event: str,
		index: int,
		req: RenderRequest,
		output: Any,
		error: Optional[BaseException],
	) -> None:
		if event == "succeeded":
			persist()

		record = {
			"queue": queue_name,
			"index": index,
			"key": req.key,
			"status": event,
			"has_reference": bool(req.reference_image),
		}
		if event != "skipped":
			record["prompt"] = req.prompt
		if output is not None:
			record["output"] = _loggable(getattr(output, "image_url", None))
		if error is not None:
			record["error"] = str(error)
		append_jsonl(log_path, record)

	return on_event


def resume_index(paths: ProjectPaths, queue_name: str) -> int:
	"""
	上次停下时的 current_index；其他情况从 0 开始（已有输出会被跳过）。
	请求列表可能在两次运行之间变了（crop 补上了失败页），
	RenderQueue.run 会再退回到第一个没有输出的项。
	"""
	if not paths.manifest.exists():
		return 0
	progress = load_manifest(paths.manifest).queue_progress(queue_name)
	if progress.get("state") == "stopped":
		return int(progress.get("current_index", 0))
	return 0


def finish_queue(
	paths: ProjectPaths,
	queue_name: str,
	report: QueueReport,
	done_stage: str,
	count_key: str,
) -> None:
	m = load_manifest(paths.manifest)
	m.set_queue_progress(queue_name, report.to_dict())
	m.counts[count_key] = report.completed

	if report.state == "stopped":
		m.mark_failed(queue_name, report.summary())
		save_manifest(paths.manifest, m)
		print(f"[FAIL] {queue_name}: {report.summary()}")
		raise report.error

	# 队列说 completed 但还有项没有输出：不能把阶段标成完成
	if report.completed < report.total:
		msg = f"{report.summary()}, {report.total - report.completed} item(s) have no output"
		m.mark_failed(queue_name, msg)
		save_manifest(paths.manifest, m)
		print(f"[FAIL] {queue_name}: {msg}")
		raise RuntimeError(f"{queue_name}: {msg}")

	m.set_stage(done_stage)
	m.mark_done(queue_name)
	save_manifest(paths.manifest, m)
	print(f"[OK] {queue_name}: {report.summary()}")
