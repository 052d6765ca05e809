# -*- coding: utf-8 -*-
"""渲染队列测试：顺序、失败即停、续跑幂等、跳过已有输出、固定节流。"""

from __future__ import annotations

import pytest

from conftest import FakeClock, FakeService

from cinemascope.core.render_queue import RenderQueue, RenderRequest
from cinemascope.errors import RenderFailure


def _requests(n, start_key=1):
	return [RenderRequest(key=start_key + i, prompt=f"prompt {start_key + i}") for i in range(n)]


def _queue(service, requests, clock, **kw):
	return RenderQueue(
		service,
		requests,
		make_output=lambda req, url: (req.key, url),
		cooldown_s=kw.pop("cooldown_s", 1.0),
		sleep=clock.sleep,
		clock=clock,
		**kw,
	)


class TestRun:
	def test_completes_in_order(self, clock):
		service = FakeService(clock)
		q = _queue(service, _requests(3), clock)
		report = q.run()

		assert report.state == "completed"
		assert report.completed == 3
		assert [c["prompt"] for c in service.calls] == ["prompt 1", "prompt 2", "prompt 3"]
		assert [k for k, _ in q.ordered_outputs()] == [1, 2, 3]
		assert report.summary() == "3/3 items completed"

	def test_failure_halts_at_index(self, clock):
		service = FakeService(clock, fail_on={4})
		q = _queue(service, _requests(5), clock)
		report = q.run()

		assert report.state == "stopped"
		assert report.current_index == 3
		assert report.completed == 3
		assert isinstance(report.error, RenderFailure)
		assert report.error.index == 3
		assert report.error.key == 4
		# 不继续 i+1，也不自动重试
		assert len(service.calls) == 4
		assert [k for k, _ in q.ordered_outputs()] == [1, 2, 3]
		assert report.summary() == "3/5 items completed, stopped at item 3 due to: remote error on call 4"

	def test_resume_renders_only_remaining(self, clock):
		service = FakeService(clock, fail_on={4})
		q = _queue(service, _requests(5), clock)
		q.run()
		calls_before = len(service.calls)

		report = q.resume()

		assert report.state == "completed"
		resumed_prompts = [c["prompt"] for c in service.calls[calls_before:]]
		assert resumed_prompts == ["prompt 4", "prompt 5"]

		# 和一次不中断的运行结果一致（顺序敏感）
		clean_clock = FakeClock()
		clean = _queue(FakeService(clean_clock, result_for=lambda p: f"url:{p}"), _requests(5), clean_clock)
		clean.run()
		retry_clock = FakeClock()
		retry = _queue(FakeService(retry_clock, fail_on={4}, result_for=lambda p: f"url:{p}"), _requests(5), retry_clock)
		retry.run()
		retry.resume()
		assert retry.ordered_outputs() == clean.ordered_outputs()

	def test_run_from_explicit_index(self, clock):
		service = FakeService(clock)
		q = _queue(service, _requests(4), clock, outputs={1: (1, "a"), 2: (2, "b")})
		q.run(start=2)
		assert [c["prompt"] for c in service.calls] == ["prompt 3", "prompt 4"]

	def test_start_past_a_gap_falls_back_to_the_gap(self, clock):
		# 请求列表在两次运行之间变长：新项排在上次停下的位置之前
		service = FakeService(clock)
		q = _queue(service, _requests(5), clock, outputs={3: (3, "x"), 4: (4, "y")})
		report = q.run(start=3)

		assert [c["prompt"] for c in service.calls] == ["prompt 1", "prompt 2", "prompt 5"]
		assert report.state == "completed"
		assert report.completed == report.total == 5
		assert q.first_pending() == 5


class TestSkip:
	def test_existing_outputs_are_not_rerendered(self, clock):
		service = FakeService(clock)
		q = _queue(service, _requests(3), clock, outputs={2: (2, "already")})
		q.run()

		assert [c["prompt"] for c in service.calls] == ["prompt 1", "prompt 3"]
		assert q.outputs[2] == (2, "already")

	def test_render_next_twice_calls_once(self, clock):
		service = FakeService(clock)
		q = _queue(service, _requests(2), clock)
		first = q.render_next(0)
		second = q.render_next(0)
		assert first == second
		assert len(service.calls) == 1

	def test_duplicate_keys_render_once(self, clock):
		service = FakeService(clock)
		reqs = [RenderRequest(7, "a"), RenderRequest(7, "b"), RenderRequest(8, "c")]
		q = _queue(service, reqs, clock)
		report = q.run()

		assert [c["prompt"] for c in service.calls] == ["a", "c"]
		assert report.completed == 3
		assert [k for k, _ in q.ordered_outputs()] == [7, 8]

	def test_listener_sees_every_item(self, clock):
		events = []
		service = FakeService(clock, fail_on={2})
		q = _queue(
			service,
			_requests(3),
			clock,
			outputs={1: (1, "x")},
			listener=lambda ev, i, req, out, err: events.append((ev, i)),
		)
		q.run()
		assert events == [("skipped", 0), ("succeeded", 1), ("failed", 2)]


class TestThrottle:
	def test_successful_calls_are_spaced(self, clock):
		service = FakeService(clock, work_s=0.2)
		q = _queue(service, _requests(4), clock, cooldown_s=1.0)
		q.run()

		times = [c["at"] for c in service.calls]
		gaps = [b - a for a, b in zip(times, times[1:])]
		assert all(g >= 1.0 for g in gaps)
		# 第一次调用前不等待
		assert times[0] == 100.0
		assert clock.sleeps == [pytest.approx(1.0)] * 3

	def test_no_wait_after_skip_or_before_first_call(self, clock):
		service = FakeService(clock)
		q = _queue(service, _requests(2), clock, outputs={1: (1, "x")})
		q.run()
		assert clock.sleeps == []

	def test_slow_call_does_not_double_wait(self):
		clock = FakeClock()
		service = FakeService(clock)
		q = _queue(service, _requests(2), clock, cooldown_s=1.0)
		q.render_next(0)
		clock.now += 5.0
		q.render_next(1)
		assert clock.sleeps == []

	def test_zero_cooldown(self, clock):
		service = FakeService(clock)
		_queue(service, _requests(3), clock, cooldown_s=0).run()
		assert clock.sleeps == []


def test_empty_result_is_a_failure(clock):
	service = FakeService(clock, result_for=lambda p: "")
	report = _queue(service, _requests(2), clock).run()
	assert report.state == "stopped"
	assert report.current_index == 0


def test_index_out_of_range(clock):
	q = _queue(FakeService(clock), _requests(1), clock)
	with pytest.raises(IndexError):
		q.render_next(1)
