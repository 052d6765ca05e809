# -*- coding: utf-8 -*-
"""
providers/image/replicate_client.py

这个文件做什么：
- 用 Replicate HTTP API 实现 GenerationService：submit(prompt, reference_image) -> 图片 URL。
- lo-fi（铅笔分镜页，9:16）和 hi-fi（单镜写实，16:9）各建一个实例，只是 model/aspect_ratio 不同。

调用流程：
1) POST /models/{owner}/{name}/predictions（带 Prefer: wait，能同步拿到结果最好）
2) 若 status 还没结束：轮询 urls.get，直到 succeeded/failed/canceled 或超时
3) 从 output 里取第一个 URL

注意：
- 这里不做重试。失败直接 raise，由 RenderQueue 停在当前项、交给调用方决定。
- 超时：单次 HTTP 请求用 timeout_s，整个预测用 max_wait_s。
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import httpx

from cinemascope.core.config import load_dotenv_if_present


TERMINAL_STATES = ("succeeded", "failed", "canceled")

DEFAULT_MODEL = "google/nano-banana-pro"


@dataclass
class ReplicateConfig:
	api_token: str
	model: str = DEFAULT_MODEL
	aspect_ratio: str = "16:9"
	resolution: str = "2K"
	base_url: str = "https://api.replicate.com/v1"
	timeout_s: float = 120.0
	poll_interval_s: float = 2.0
	max_wait_s: float = 600.0


def _snip(text: str, limit: int = 1000) -> str:
	if len(text) > limit:
		return text[:limit] + "...(truncated)"
	return text


def extract_output_url(output: Any) -> str:
	"""
	Replicate 的 output 可能是：字符串 / 字符串列表 / {"url": ...}。
	"""
	if isinstance(output, str) and output:
		return output
	if isinstance(output, list) and output:
		return extract_output_url(output[0])
	if isinstance(output, dict) and output.get("url"):
		return str(output["url"])
	raise ValueError(f"Unexpected prediction output: {_snip(repr(output))}")


class ReplicateImageService:
	def __init__(
		self,
		cfg: ReplicateConfig,
		transport: Optional[httpx.BaseTransport] = None,
		sleep: Callable[[float], None] = time.sleep,
	):
		self.cfg = cfg
		self.sleep = sleep
		self._client = httpx.Client(
			base_url=cfg.base_url,
			timeout=httpx.Timeout(cfg.timeout_s),
			headers={
				"Authorization": f"Bearer {cfg.api_token}",
				"Content-Type": "application/json",
			},
			transport=transport,
		)

	def close(self) -> None:
		self._client.close()

	def build_input(self, prompt: str, reference_image: Optional[str] = None) -> Dict[str, Any]:
		inp: Dict[str, Any] = {
			"prompt": prompt,
			"aspect_ratio": self.cfg.aspect_ratio,
			"resolution": self.cfg.resolution,
			"output_format": "png",
			"safety_filter_level": "block_only_high",
		}
		if reference_image:
			inp["image_input"] = [reference_image]
		return inp

	def _check(self, r: httpx.Response) -> Dict[str, Any]:
		if r.status_code < 200 or r.status_code >= 300:
			raise ValueError(f"Replicate HTTP {r.status_code}: {_snip(r.text)}")
		return r.json()

	def submit(self, prompt: str, reference_image: Optional[str] = None) -> str:
		r = self._client.post(
			f"/models/{self.cfg.model}/predictions",
			json={"input": self.build_input(prompt, reference_image)},
			headers={"Prefer": "wait"},
		)
		prediction = self._check(r)

		deadline = time.monotonic() + self.cfg.max_wait_s
		while prediction.get("status") not in TERMINAL_STATES:
			if time.monotonic() > deadline:
				raise TimeoutError(f"prediction {prediction.get('id')} not finished after {self.cfg.max_wait_s}s")

			get_url = (prediction.get("urls") or {}).get("get")
			if not get_url:
				raise ValueError(f"prediction has no poll url: {_snip(repr(prediction))}")

			self.sleep(self.cfg.poll_interval_s)
			prediction = self._check(self._client.get(get_url))

		if prediction["status"] != "succeeded":
			raise ValueError(f"prediction {prediction['status']}: {prediction.get('error') or 'no error message'}")

		return extract_output_url(prediction.get("output"))


def load_replicate_service(
	kind: str,
	project_root: Optional[str] = None,
	api_token: Optional[str] = None,
	model: Optional[str] = None,
	timeout_s: Optional[float] = None,
) -> ReplicateImageService:
	"""
	kind：lofi（铅笔分镜页，9:16）/ hifi（单镜写实，16:9）
	"""
	if kind not in ("lofi", "hifi"):
		raise ValueError(f"unknown service kind: {kind}")

	root = Path(project_root or os.getcwd()).resolve()
	load_dotenv_if_present(root)

	token = (
		api_token
		or os.environ.get("REPLICATE_API_TOKEN", "")
		or os.environ.get("REPLICATE_API_KEY", "")
	).strip()
	if not token:
		raise ValueError("Missing REPLICATE_API_TOKEN (from .env or env)")

	env_model = os.environ.get(f"CINEMASCOPE_{kind.upper()}_MODEL", "").strip()
	t = float(timeout_s or os.environ.get("CINEMASCOPE_TIMEOUT_S", "120").strip() or 120)

	cfg = ReplicateConfig(
		api_token=token,
		model=model or env_model or DEFAULT_MODEL,
		aspect_ratio="9:16" if kind == "lofi" else "16:9",
		timeout_s=t,
	)
	return ReplicateImageService(cfg)
