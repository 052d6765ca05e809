# -*- coding: utf-8 -*-
"""
core/render_queue.py

这个文件做什么：
- 顺序驱动一个远程生成服务（慢、贵、会失败、可能限流），一次只有一个请求在飞。
- lo-fi（按 pageNumber 做键）和 hi-fi（按 shotNumber 做键）共用同一个队列，
  区别只在请求怎么构造、输出怎么包装。

状态机：
  idle -> running(current_index) -> completed
                                 -> stopped(error, current_index)
  stopped 之后 run()/resume() 从 current_index 继续，而不是从 0。

规则：
1) 严格按顺序处理
2) 该项的 key 已有输出：跳过，不调用远程服务
3) 每次成功调用后，下一次调用前至少间隔 cooldown_s（固定节流，不是自适应退避）
4) run(start) 从 min(start, 第一个没有输出的项) 开始，不会在身后留下缺口
5) 第 i 项失败：记录错误，停在 i，不继续 i+1；0..i-1 的输出保持不动
6) 队列内部绝不自动重试，重试与否由调用方决定

注意：
- sleep/clock 可注入，测试里用假时钟验证节流间隔。
- 输出表只在当前这一个请求完成后写入，没有并发写者，不需要锁。
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol

from cinemascope.errors import RenderFailure


QUEUE_STATES = ["idle", "running", "completed", "stopped"]


class GenerationService(Protocol):
	"""
	远程生成能力：submit 返回媒体 URL（或 data URI）；失败直接 raise。
	"""

	def submit(self, prompt: str, reference_image: Optional[str] = None) -> str:
		...


@dataclass(frozen=True)
class RenderRequest:
	key: int
	prompt: str
	reference_image: Optional[str] = None


@dataclass
class QueueReport:
	name: str
	state: str
	total: int
	completed: int
	current_index: int
	error: Optional[RenderFailure] = None

	def summary(self) -> str:
		head = f"{self.completed}/{self.total} items completed"
		if self.state == "stopped" and self.error is not None:
			return f"{head}, stopped at item {self.error.index} due to: {self.error.cause}"
		return head

	def to_dict(self) -> Dict[str, Any]:
		return {
			"state": self.state,
			"total": self.total,
			"completed": self.completed,
			"current_index": self.current_index,
			"last_error": str(self.error.cause) if self.error is not None else "",
			"summary": self.summary(),
		}


# event 取值：skipped / succeeded / failed
QueueListener = Callable[[str, int, RenderRequest, Any, Optional[BaseException]], None]


class RenderQueue:
	def __init__(
		self,
		service: GenerationService,
		requests: List[RenderRequest],
		make_output: Callable[[RenderRequest, str], Any],
		name: str = "render",
		cooldown_s: float = 1.0,
		outputs: Optional[Dict[int, Any]] = None,
		sleep: Callable[[float], None] = time.sleep,
		clock: Callable[[], float] = time.monotonic,
		listener: Optional[QueueListener] = None,
	):
		self.service = service
		self.requests = list(requests)
		self.make_output = make_output
		self.name = name
		self.cooldown_s = cooldown_s
		self.outputs: Dict[int, Any] = dict(outputs or {})
		self.sleep = sleep
		self.clock = clock
		self.listener = listener

		self.state = "idle"
		self.current_index = 0
		self.error: Optional[RenderFailure] = None
		self._last_success_at: Optional[float] = None

	def has_output(self, index: int) -> bool:
		return self.requests[index].key in self.outputs

	def first_pending(self) -> int:
		"""第一个还没有输出的下标；全部完成时为 len(requests)。"""
		for i, r in enumerate(self.requests):
			if r.key not in self.outputs:
				return i
		return len(self.requests)

	def _emit(
		self,
		event: str,
		index: int,
		req: RenderRequest,
		output: Any = None,
		error: Optional[BaseException] = None,
	) -> None:
		if self.listener is not None:
			self.listener(event, index, req, output, error)

	def _wait_cooldown(self) -> None:
		if self._last_success_at is None or self.cooldown_s <= 0:
			return

		remaining = self.cooldown_s - (self.clock() - self._last_success_at)
		if remaining > 0:
			self.sleep(remaining)

	def render_next(self, index: int) -> Any:
		"""
		处理第 index 项并返回它的输出。
		已有输出：直接返回，不发远程请求。
		失败：raise RenderFailure（不改 state，由 run() 决定停在哪）。
		"""
		if index < 0 or index >= len(self.requests):
			raise IndexError(f"{self.name}: index {index} out of range (0..{len(self.requests) - 1})")

		req = self.requests[index]
		if req.key in self.outputs:
			self._emit("skipped", index, req, self.outputs[req.key])
			return self.outputs[req.key]

		self._wait_cooldown()

		try:
			result = self.service.submit(req.prompt, req.reference_image)
			if not result:
				raise ValueError("generation service returned no output")
		except Exception as e:
			failure = RenderFailure(index, req.key, e)
			self._emit("failed", index, req, None, e)
			raise failure from e

		self._last_success_at = self.clock()

		output = self.make_output(req, result)
		self.outputs[req.key] = output
		self._emit("succeeded", index, req, output)
		return output

	def run(self, start: Optional[int] = None) -> QueueReport:
		"""
		从 start（缺省为 current_index）一直跑到结束或第一个失败。
		start 之前还有没输出的项（例如请求列表在两次运行之间变长了）时，
		从第一个缺口开始：completed 必须意味着每一项都有输出。
		"""
		i = self.current_index if start is None else start
		i = min(i, self.first_pending())
		self.state = "running"
		self.error = None

		while i < len(self.requests):
			self.current_index = i
			try:
				self.render_next(i)
			except RenderFailure as e:
				self.state = "stopped"
				self.error = e
				return self.report()
			i += 1

		self.current_index = len(self.requests)
		self.state = "completed"
		return self.report()

	def resume(self) -> QueueReport:
		return self.run(self.current_index)

	def completed_count(self) -> int:
		return sum(1 for r in self.requests if r.key in self.outputs)

	def report(self) -> QueueReport:
		return QueueReport(
			name=self.name,
			state=self.state,
			total=len(self.requests),
			completed=self.completed_count(),
			current_index=self.current_index,
			error=self.error,
		)

	def ordered_outputs(self) -> List[Any]:
		"""按请求顺序给出输出；同一个 key 只出现一次。"""
		seen = set()
		out = []
		for r in self.requests:
			if r.key in self.outputs and r.key not in seen:
				seen.add(r.key)
				out.append(self.outputs[r.key])
		return out
