# -*- coding: utf-8 -*-
"""
cinemascope/stages/base.py

目的：
- 定义 Stage 的“接口形状”和运行上下文 StageContext。
- 让每个阶段都遵循同一种调用方式：run(paths, ctx)。

为什么需要：
- pipeline/orchestrator 只负责按顺序调度 stage，
  它不应该知道 stage 的内部细节。
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol

from cinemascope.core.config import PipelineConfig
from cinemascope.core.io import ProjectPaths


@dataclass
class StageContext:
	"""
	运行上下文：
	- project_id/title：写进 manifest/meta
	- config：节流间隔、网格、每页容量、超时
	- llm_client/lofi_service/hifi_service/raster_loader：外部能力。
	  为 None 时由对应 stage 从 .env 加载真实客户端；测试里注入假的。
	- sleep/clock：渲染队列节流用，测试里注入假时钟
	- project_root：查找 .env 的目录（缺省为当前工作目录）
	- force：剧本没变也重新结构化（重新调用 LLM）
	"""
	project_id: str
	title: str = ""
	config: PipelineConfig = field(default_factory=PipelineConfig)
	llm_client: Any = None
	lofi_service: Any = None
	hifi_service: Any = None
	raster_loader: Optional[Callable[[str], bytes]] = None
	sleep: Callable[[float], None] = time.sleep
	clock: Callable[[], float] = time.monotonic
	project_root: Optional[str] = None
	force: bool = False


class Stage(Protocol):
	name: str

	def run(self, paths: ProjectPaths, ctx: StageContext) -> None:
		...
