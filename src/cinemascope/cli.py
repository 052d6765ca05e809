# -*- coding: utf-8 -*-
"""
cinemascope/cli.py

目的：
- 提供项目的命令行入口。
- init：创建项目目录骨架与空 manifest。
- prepare：把剧本文件放进项目（text/script_raw.txt）。
- run：调用 pipeline/orchestrator.py 运行若干 stage（支持 --until）。
- status：打印当前阶段与各渲染队列进度（"X/Y items completed, stopped at item Z due to: ..."）。

注意：
- CLI 不做业务细节：不解析剧本、不调用模型。
- CLI 只负责参数解析 + 把任务交给 orchestrator。
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from cinemascope.errors import ExtractionFailure, ParseFailure, RenderFailure

STAGES = [
	"ingest",
	"structure",
	"plan",
	"lofi",
	"crop",
	"hifi",
]


def build_parser() -> argparse.ArgumentParser:
	p = argparse.ArgumentParser(
		prog="cinemascope",
		description="Script -> storyboard pages -> cropped frames -> hi-fi shots",
	)

	sub = p.add_subparsers(dest="cmd", required=True)

	initp = sub.add_parser("init", help="Create an empty project directory")
	initp.add_argument("--project_dir", required=True, help="e.g. output/my_short")
	initp.add_argument("--title", default="", help="project title (optional)")

	prepp = sub.add_parser("prepare", help="Copy a script file (.txt/.md/.fountain) into the project")
	prepp.add_argument("--project_dir", required=True)
	prepp.add_argument("--script", required=True, help="path to the script text file")

	runp = sub.add_parser("run", help="Run the pipeline for an existing project")
	runp.add_argument("--project_dir", required=True)
	runp.add_argument("--until", default="hifi", choices=STAGES)
	runp.add_argument("--script", default=None, help="optional script file to ingest first")
	runp.add_argument("--cooldown_s", type=float, default=None, help="delay between successful remote calls")
	runp.add_argument("--force", action="store_true", help="re-structure the script even if it is unchanged")

	statp = sub.add_parser("status", help="Show stage and render queue progress")
	statp.add_argument("--project_dir", required=True)

	return p


def cmd_init(project_dir: str, title: str = "") -> None:
	from cinemascope.core.io import project_paths
	from cinemascope.core.manifest import new_manifest, save_manifest

	paths = project_paths(project_dir)
	paths.ensure_dirs()

	if not paths.manifest.exists():
		save_manifest(paths.manifest, new_manifest(Path(project_dir).name, title))

	print(f"[OK] project skeleton created: {paths.root}")


def cmd_prepare(project_dir: str, script: str) -> None:
	from cinemascope.core.io import project_paths
	from cinemascope.stages.ingest import read_script_file

	src = Path(script)
	if not src.exists():
		raise FileNotFoundError(f"script not found: {src}")

	paths = project_paths(project_dir)
	paths.ensure_dirs()
	paths.script_raw.write_text(read_script_file(src), encoding="utf-8")
	print(f"[OK] {src.name} -> {paths.script_raw}")


def cmd_run(
	project_dir: str,
	until: str,
	script: str | None = None,
	cooldown_s: float | None = None,
	force: bool = False,
) -> None:
	from cinemascope.core.config import load_pipeline_config
	from cinemascope.pipeline.orchestrator import run_until
	from cinemascope.stages.base import StageContext

	ctx = StageContext(
		project_id=Path(project_dir).name,
		config=load_pipeline_config(cooldown_s=cooldown_s),
		force=force,
	)

	run_until(project_dir=project_dir, ctx=ctx, until=until, script=script)


def cmd_status(project_dir: str) -> None:
	from cinemascope.core.io import project_paths
	from cinemascope.core.manifest import load_manifest

	paths = project_paths(project_dir)
	if not paths.manifest.exists():
		raise FileNotFoundError(f"missing {paths.manifest} (run `cinemascope init` first)")

	m = load_manifest(paths.manifest)
	print(f"stage: {m.stage}")
	for key in ("scenes", "shots", "pages", "frames"):
		print(f"{key}: {m.counts.get(key, 0)}")

	for name in ("lofi", "hifi"):
		progress = m.queue_progress(name)
		if progress:
			print(f"{name}: {progress.get('summary', '')}")

	failed_pages = m.extraction.get("failed_pages") or {}
	if failed_pages:
		print(f"crop: failed pages {', '.join(failed_pages)}")
	dropped = m.extraction.get("dropped_panels") or {}
	if dropped:
		n = sum(len(v) for v in dropped.values())
		print(f"crop: {n} empty panel(s) dropped")

	if m.status.get("last_error"):
		print(f"last error: {m.status['last_error']}")


def main(argv=None) -> None:
	args = build_parser().parse_args(argv)

	# PlanningInvariantViolation 是程序缺陷：不在这里拦，保留完整 traceback
	try:
		if args.cmd == "init":
			cmd_init(args.project_dir, args.title)
			return

		if args.cmd == "prepare":
			cmd_prepare(args.project_dir, args.script)
			return

		if args.cmd == "run":
			cmd_run(args.project_dir, args.until, script=args.script, cooldown_s=args.cooldown_s, force=args.force)
			return

		if args.cmd == "status":
			cmd_status(args.project_dir)
			return
	except (ParseFailure, RenderFailure, ExtractionFailure, FileNotFoundError, ValueError) as e:
		print(f"[FAIL] {e}", file=sys.stderr)
		sys.exit(1)
