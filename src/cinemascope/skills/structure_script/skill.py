# -*- coding: utf-8 -*-
"""
structure_script/skill.py

这个文件做什么：
- 把“剧本 -> ParsedScript”封装成一个 skill：
  1) build prompt
  2) 调用 LLM 得到结构 JSON
  3) validate 形状
  4) normalize：编号、规范化（core/structurer.py）

注意：
- 这里不关心用哪家 LLM，只依赖一个 llm_client 接口：
  llm_client.chat_json(system_prompt: str, user_prompt: str) -> dict
- 与 refine 类 skill 不同：这里没有 baseline 可以回退，失败就 raise ParseFailure。
"""

from __future__ import annotations

from typing import Any

from cinemascope.core.schemas import ParsedScript
from cinemascope.core.structurer import normalize_script
from cinemascope.errors import ParseFailure

from .prompt import SYSTEM_PROMPT, build_user_prompt
from .validator import unwrap_payload, validate_structure_shape


class ScriptStructurer:
	def __init__(self, llm_client: Any, default_title: str = "Untitled"):
		self.llm_client = llm_client
		self.default_title = default_title

	def parse(self, raw_text: str) -> ParsedScript:
		if not raw_text or not raw_text.strip():
			raise ParseFailure("script text is empty")

		user_prompt = build_user_prompt(raw_text)

		try:
			data = self.llm_client.chat_json(SYSTEM_PROMPT, user_prompt)
		except ParseFailure:
			raise
		except Exception as e:
			raise ParseFailure(f"script structuring call failed: {e}") from e

		payload = unwrap_payload(data)
		validate_structure_shape(payload)
		return normalize_script(payload, default_title=self.default_title)
