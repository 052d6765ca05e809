# -*- coding: utf-8 -*-
"""
providers/image/fetch.py

把“可寻址的图片”变成原始字节，给 core/grid.py 裁切用：
- data:image/...;base64,... -> 解码
- http(s)://...            -> httpx GET
- 其他                     -> 当作本地文件路径
"""

from __future__ import annotations

import base64
import binascii
from pathlib import Path
from typing import Optional

import httpx


def decode_data_uri(uri: str) -> bytes:
	header, sep, body = uri.partition(",")
	if not sep or ";base64" not in header:
		raise ValueError("only base64 data URIs are supported")
	try:
		return base64.b64decode(body, validate=True)
	except binascii.Error as e:
		raise ValueError(f"invalid base64 payload: {e}") from e


class RasterFetcher:
	def __init__(self, timeout_s: float = 60.0, transport: Optional[httpx.BaseTransport] = None):
		self._client = httpx.Client(
			timeout=httpx.Timeout(timeout_s),
			follow_redirects=True,
			transport=transport,
		)

	def close(self) -> None:
		self._client.close()

	def __call__(self, source: str) -> bytes:
		if source.startswith("data:"):
			return decode_data_uri(source)

		if source.startswith(("http://", "https://")):
			r = self._client.get(source)
			if r.status_code < 200 or r.status_code >= 300:
				raise ValueError(f"image fetch HTTP {r.status_code}: {source}")
			return r.content

		path = Path(source)
		if not path.exists():
			raise FileNotFoundError(f"image not found: {source}")
		return path.read_bytes()
