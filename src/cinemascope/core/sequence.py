# -*- coding: utf-8 -*-
"""
core/sequence.py

显式的序号发生器：scene/shot 编号、全局 page 计数都用它。
- 由调用方创建并作为参数传进 structurer/planner，不用模块级全局变量。
- 一个发生器跨 scene 共享，就得到“全局连续编号”。
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Sequence:
	start: int = 1
	_next: int = field(init=False, default=0)

	def __post_init__(self) -> None:
		self._next = self.start

	def next(self) -> int:
		n = self._next
		self._next += 1
		return n

	def peek(self) -> int:
		return self._next

	@property
	def issued(self) -> int:
		return self._next - self.start
