# -*- coding: utf-8 -*-
"""
structure_script/prompt.py

这个文件做什么：
- 把剧本原文拼成一个“受约束的任务描述”，让 LLM 输出剧本结构 JSON。
- 这里不调用模型，只做 prompt 组装。

关键点：
- 强调：只能输出 JSON，不能 Markdown。
- 不让 LLM 编号：sceneNumber/shotNumber 一律由 core/structurer.py 按文档顺序重新发号。
"""

from __future__ import annotations

import json

from cinemascope.core.structurer import SHOT_TYPES


SCHEMA_VERSION = "script_structure.v0.1"

SYSTEM_PROMPT = (
	"You are a film director's storyboard assistant.\n"
	"Break the script into scenes and shots for a storyboard artist.\n"
	"Output exactly one JSON object. No explanations, no Markdown, no code fences.\n"
	"Keep scenes and shots in the order they happen in the script.\n"
)


def build_user_prompt(script_text: str, max_chars: int = 60000) -> str:
	text = script_text.strip()
	if len(text) > max_chars:
		text = text[:max_chars]

	shape = {
		"schema_version": SCHEMA_VERSION,
		"title": "...",
		"scenes": [
			{
				"location": "INT./EXT. PLACE - TIME",
				"sceneDescription": "one or two sentences: setting, mood, characters present",
				"shots": [
					{
						"shotType": "close-up",
						"cameraMovement": "static / pan left / dolly in / ...",
						"composition": "what is in frame and where",
						"lighting": "key light, mood, time of day",
						"action": "what happens in this shot",
						"dialogue": "spoken line, or omit",
						"styleNotes": "visual style, palette, lens feel",
						"framePrompt": "single-sentence image prompt for this frame",
					}
				],
			}
		],
	}

	rules = (
		"Task: turn the script below into a storyboard structure.\n"
		"Output format (JSON):\n"
		+ json.dumps(shape, ensure_ascii=False, indent=2)
		+ "\n\n"
		"Rules:\n"
		"- Output JSON only\n"
		"- Every scene has at least one shot\n"
		"- One shot = one camera setup / one action beat\n"
		f"- shotType should be one of: {', '.join(SHOT_TYPES)}\n"
		"- Do not number scenes or shots\n"
	)

	return rules + "\nScript:\n" + text
