# -*- coding: utf-8 -*-
"""
cinemascope：剧本 -> 分镜页 -> 裁切分镜帧 -> 高清单镜 的流水线。
"""

__version__ = "0.1.0"
