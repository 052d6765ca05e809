# -*- coding: utf-8 -*-
"""
cinemascope/errors.py

流水线的错误分类：

- ParseFailure：剧本结构化失败（0 个 scene / 内容畸形）。对本次运行是致命的，不自动重试。
- PlanningInvariantViolation：分页/网格的内部契约被破坏。属于程序缺陷，必须大声失败。
- RenderFailure(index, key, cause)：一次远程生成调用失败。队列停在 index，可续跑。
- ExtractionFailure(page_number, cause)：某一页的原图拿不到/解不开。只影响这一页。

注意：
- “空格子”（页上 shot 少于网格格子数）不是错误，见 core/grid.py 的 dropped_panels。
"""

from __future__ import annotations

from typing import Any, Optional


class CinemaScopeError(Exception):
	pass


class ParseFailure(CinemaScopeError, ValueError):
	pass


class PlanningInvariantViolation(CinemaScopeError, AssertionError):
	pass


class RenderFailure(CinemaScopeError, RuntimeError):
	def __init__(self, index: int, key: Any, cause: BaseException):
		self.index = index
		self.key = key
		self.cause = cause
		super().__init__(f"render failed at item {index} (key={key}): {cause}")


class ExtractionFailure(CinemaScopeError, RuntimeError):
	def __init__(self, page_number: int, cause: Optional[BaseException] = None, reason: str = ""):
		self.page_number = page_number
		self.cause = cause
		msg = reason or (str(cause) if cause is not None else "unknown error")
		super().__init__(f"extraction failed for page {page_number}: {msg}")
