# -*- coding: utf-8 -*-
"""
skills/hifi_prompt.py

hi-fi 单镜 prompt：写实电影感模板 + 该 shot 的镜头信息。
参考图（裁出来的铅笔格子）不在 prompt 里，由渲染请求单独带上。
"""

from __future__ import annotations

from cinemascope.core.schemas import Shot


HIFI_PROMPT_TEMPLATE = """extreme high resolution, ultra realistic, photorealistic, cinematic lighting, film grain, ARRI Alexa quality, professional cinematography.

Scene: {scene}
Action: {action}
Composition: {composition}
Camera: {shot_type} shot. {camera_movement}.
Lighting: {lighting}.

Style: Highly detailed, volumetric lighting, 8k resolution, cinematic color grading."""


def build_hifi_prompt(shot: Shot) -> str:
	return HIFI_PROMPT_TEMPLATE.format(
		scene=shot.style_notes or "Cinematic scene",
		action=shot.action,
		composition=shot.composition,
		shot_type=shot.shot_type,
		camera_movement=shot.camera_movement,
		lighting=shot.lighting,
	)
