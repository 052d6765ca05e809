# -*- coding: utf-8 -*-
"""
core/config.py

流水线参数（与具体模型/供应商无关的部分）。

配置来源优先级（从高到低）：
1) 显式传参
2) 项目根目录 .env
3) 系统环境变量

字段：
- cooldown_s：两次成功的远程调用之间的固定间隔（参考流程 1 秒）
- page_capacity：一页最多放几个 shot（参考流程 6）
- grid_cols/grid_rows：裁切时假定的网格（参考流程 2 列 x 3 行）
- request_timeout_s：单次远程调用超时，交给 HTTP client 执行
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from cinemascope.errors import PlanningInvariantViolation


@dataclass(frozen=True)
class PipelineConfig:
	cooldown_s: float = 1.0
	page_capacity: int = 6
	grid_cols: int = 2
	grid_rows: int = 3
	request_timeout_s: float = 120.0

	def validate(self) -> "PipelineConfig":
		if self.cooldown_s < 0:
			raise ValueError("cooldown_s must be >= 0")
		if self.grid_cols < 1 or self.grid_rows < 1:
			raise ValueError("grid must have at least one column and one row")
		if self.page_capacity < 1:
			raise ValueError("page_capacity must be >= 1")

		# 一页的 shot 数超过格子数，多出来的 shot 永远裁不到
		if self.page_capacity > self.grid_cols * self.grid_rows:
			raise PlanningInvariantViolation(
				f"page_capacity={self.page_capacity} exceeds grid cells "
				f"{self.grid_cols}x{self.grid_rows}"
			)
		return self


def load_dotenv_if_present(project_root: Path) -> None:
	env_path = project_root / ".env"
	if env_path.exists():
		load_dotenv(dotenv_path=str(env_path), override=False)


def _env_number(name: str, default: float) -> float:
	raw = os.environ.get(name, "").strip()
	return float(raw) if raw else default


def load_pipeline_config(
	project_root: Optional[str] = None,
	cooldown_s: Optional[float] = None,
	page_capacity: Optional[int] = None,
	grid_cols: Optional[int] = None,
	grid_rows: Optional[int] = None,
	request_timeout_s: Optional[float] = None,
) -> PipelineConfig:
	root = Path(project_root or os.getcwd()).resolve()
	load_dotenv_if_present(root)

	cfg = PipelineConfig(
		cooldown_s=cooldown_s if cooldown_s is not None else _env_number("CINEMASCOPE_COOLDOWN_S", 1.0),
		page_capacity=page_capacity or int(_env_number("CINEMASCOPE_PAGE_CAPACITY", 6)),
		grid_cols=grid_cols or int(_env_number("CINEMASCOPE_GRID_COLS", 2)),
		grid_rows=grid_rows or int(_env_number("CINEMASCOPE_GRID_ROWS", 3)),
		request_timeout_s=request_timeout_s or _env_number("CINEMASCOPE_TIMEOUT_S", 120.0),
	)
	return cfg.validate()
