"""NelaAGI 任务模块。

nela-agi/tasks v0.1.0

按模态分组的任务封装，每个任务对应一个固定的 API 端点。
"""

from __future__ import annotations

from .audio import Audio, MusicSeparation, SpeechEnhancement, SpeechToText, TextToSpeech
from .base import Task, TaskGroup
from .image import Image, ImageGeneration, ImageInpainting, ImageToImage
from .text import ChatCompletion, Text

__all__ = [
    "Task",
    "TaskGroup",
    # Text
    "Text",
    "ChatCompletion",
    # Image
    "Image",
    "ImageGeneration",
    "ImageToImage",
    "ImageInpainting",
    # Audio
    "Audio",
    "TextToSpeech",
    "SpeechToText",
    "SpeechEnhancement",
    "MusicSeparation",
]
