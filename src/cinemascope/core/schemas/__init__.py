# -*- coding: utf-8 -*-
from .script import Shot, Scene, ParsedScript
from .pages import PageSpec, GeneratedPage, CroppedFrame, HiFiFrame

__all__ = [
	"Shot",
	"Scene",
	"ParsedScript",
	"PageSpec",
	"GeneratedPage",
	"CroppedFrame",
	"HiFiFrame",
]
