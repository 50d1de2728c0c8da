"""音频任务。

nela-agi v0.1.0
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..assembler import json_request, multipart_request
from ..config import Endpoint
from ..types import ApiResponse
from ..validation import (
    AUDIO_RULE,
    MUSIC_SEPARATION_RULES,
    TEXT_TO_SPEECH_RULES,
    check_rules,
)
from .base import Task, TaskGroup

if TYPE_CHECKING:
    from ..client import NelaAGI

__all__ = [
    "Audio",
    "MusicSeparation",
    "SpeechEnhancement",
    "SpeechToText",
    "TextToSpeech",
]


class TextToSpeech(Task):
    """文本转语音。"""

    endpoint = Endpoint.TEXT_TO_SPEECH

    async def fetch(
        self,
        text: str,
        speaker_id: int | None = None,
        speaker_gender: str | None = None,
    ) -> ApiResponse:
        """将文本合成为语音。

        Args:
            text: 文本（2-5000 字符）
            speaker_id: 说话人 ID（可选，1-110 的整数）
            speaker_gender: 说话人性别（可选，MALE/FEMALE）

        Returns:
            ApiResponse，output 为 audio_base64
        """
        fields = {
            "text": text,
            "speaker_id": speaker_id,
            "speaker_gender": speaker_gender,
        }
        check_rules(TEXT_TO_SPEECH_RULES, fields).raise_if_invalid()
        return await self._send(json_request(self.url, fields))


class SpeechToText(Task):
    """语音转文本。"""

    endpoint = Endpoint.SPEECH_TO_TEXT

    async def fetch(self, audio: Any) -> ApiResponse:
        """转写语音（MP3/MPEG/WAV）。"""
        audio_payload = await self._resolve(audio, AUDIO_RULE)
        return await self._send(multipart_request(self.url, [("audio", audio_payload)]))


class SpeechEnhancement(Task):
    """语音增强。"""

    endpoint = Endpoint.SPEECH_ENHANCEMENT

    async def fetch(self, audio: Any) -> ApiResponse:
        audio_payload = await self._resolve(audio, AUDIO_RULE)
        return await self._send(multipart_request(self.url, [("audio", audio_payload)]))


class MusicSeparation(Task):
    """音乐分轨。"""

    endpoint = Endpoint.MUSIC_SEPARATION

    async def fetch(self, audio: Any, split: str) -> ApiResponse:
        """分离音乐中的各个声部。

        Args:
            audio: 音频（MP3/MPEG/WAV）
            split: 分离模式，大小写不敏感
                - ALL: vocals/drums/bass/piano/guitar/other 全部分离
                - KARAOKE: 仅分离人声与伴奏

        Returns:
            ApiResponse，output 包含 text 与 audio_base64
        """
        audio_payload = await self._resolve(audio, AUDIO_RULE)
        check_rules(MUSIC_SEPARATION_RULES, {"split": split}).raise_if_invalid()

        request = multipart_request(self.url, [("audio", audio_payload), ("split", split)])
        return await self._send(request)


class Audio(TaskGroup):
    """音频任务集合。"""

    def __init__(self, client: NelaAGI) -> None:
        super().__init__(client)
        self.text_to_speech = TextToSpeech(client)
        self.speech_to_text = SpeechToText(client)
        self.speech_enhancement = SpeechEnhancement(client)
        self.music_separation = MusicSeparation(client)
