# -*- coding: utf-8 -*-
"""
providers/llm/chat_client.py

这个文件做什么：
- 提供一个极薄的 OpenAI 兼容 Chat Client，供 structure_script skill 调用。
- 支持从项目根目录的 .env 读取配置（推荐）。
- 对外只暴露一个方法：chat_json(system_prompt, user_prompt) -> dict

配置来源优先级（从高到低）：
1) 显式传参（model/base_url/api_key）
2) .env 文件
3) 系统环境变量

环境变量：
- CINEMASCOPE_LLM_API_KEY
- CINEMASCOPE_LLM_BASE_URL（默认 https://api.openai.com/v1）
- CINEMASCOPE_LLM_MODEL（默认 gpt-4o-mini）
- CINEMASCOPE_LLM_TIMEOUT_S

安全约定：
- .env 必须写进 .gitignore
- 不要把 key 写进任何代码文件
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import httpx

from cinemascope.core.config import load_dotenv_if_present


@dataclass
class ChatConfig:
	api_key: str
	base_url: str
	model: str
	timeout_s: float = 120.0


def _snip(text: str, limit: int = 1000) -> str:
	if len(text) > limit:
		return text[:limit] + "...(truncated)"
	return text


def strip_code_fence(content: str) -> str:
	"""模型偶尔仍会包一层 ```json ... ```：剥掉。"""
	s = content.strip()
	if s.startswith("```"):
		s = s.split("\n", 1)[1] if "\n" in s else ""
		if s.rstrip().endswith("```"):
			s = s.rstrip()[:-3]
	return s.strip()


class ChatLLMClient:
	def __init__(self, cfg: ChatConfig, transport: Optional[httpx.BaseTransport] = None):
		self.cfg = cfg
		self._client = httpx.Client(
			base_url=cfg.base_url,
			timeout=httpx.Timeout(cfg.timeout_s),
			headers={
				"Authorization": f"Bearer {cfg.api_key}",
				"Content-Type": "application/json",
			},
			transport=transport,
		)

	def close(self) -> None:
		self._client.close()

	def chat_json(self, system_prompt: str, user_prompt: str) -> Dict[str, Any]:
		payload: Dict[str, Any] = {
			"model": self.cfg.model,
			"messages": [
				{"role": "system", "content": system_prompt},
				{"role": "user", "content": user_prompt},
			],
			"temperature": 0.2,
			"top_p": 0.9,
			# JSON mode：显著减少 Markdown/废话
			"response_format": {"type": "json_object"},
		}

		r = self._client.post("/chat/completions", json=payload)

		if r.status_code < 200 or r.status_code >= 300:
			raise ValueError(f"LLM HTTP {r.status_code}: {_snip(r.text)}")

		data = r.json()

		try:
			content = data["choices"][0]["message"]["content"]
		except (KeyError, IndexError, TypeError):
			raise ValueError(f"Unexpected response shape: {_snip(json.dumps(data, ensure_ascii=False))}")

		try:
			return json.loads(strip_code_fence(content))
		except json.JSONDecodeError:
			raise ValueError(f"LLM output is not valid JSON. content_snip={_snip(content)}")


def load_chat_client(
	project_root: Optional[str] = None,
	api_key: Optional[str] = None,
	base_url: Optional[str] = None,
	model: Optional[str] = None,
	timeout_s: Optional[float] = None,
) -> ChatLLMClient:
	root = Path(project_root or os.getcwd()).resolve()
	load_dotenv_if_present(root)

	key = (api_key or os.environ.get("CINEMASCOPE_LLM_API_KEY", "")).strip()
	if not key:
		raise ValueError("Missing CINEMASCOPE_LLM_API_KEY (from .env or env)")

	url = (base_url or os.environ.get("CINEMASCOPE_LLM_BASE_URL", "")).strip() or "https://api.openai.com/v1"
	m = (model or os.environ.get("CINEMASCOPE_LLM_MODEL", "")).strip() or "gpt-4o-mini"
	t = float(timeout_s or os.environ.get("CINEMASCOPE_LLM_TIMEOUT_S", "120").strip() or 120)

	return ChatLLMClient(ChatConfig(api_key=key, base_url=url, model=m, timeout_s=t))
