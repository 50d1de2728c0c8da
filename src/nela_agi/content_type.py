"""内容类型嗅探。

nela-agi v0.1.0

通过文件头魔数识别图片（PNG/JPEG）和音频（MP3/WAV）。
"""

from __future__ import annotations

from pathlib import PurePath

__all__ = [
    "UNKNOWN",
    "extension_to_mime",
    "guess_from_path",
    "sniff",
]

UNKNOWN = "unknown"

JPEG_SIGNATURE = b"\xff\xd8\xff"
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
ID3_SIGNATURE = b"ID3"
# MPEG 1/2/2.5 Layer 3 帧同步的第二个字节
MP3_FRAME_SYNC = frozenset({0xFA, 0xFB, 0xF2, 0xF3, 0xE2, 0xE3})
RIFF_SIGNATURE = b"RIFF"
WAVE_SIGNATURE = b"WAVE"

EXTENSION_MAP = {
    "jpg": "image/jpeg",
    "png": "image/png",
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
}


def sniff(data: bytes | bytearray | memoryview) -> str:
    """根据文件头判断 MIME 类型。

    按 JPEG、PNG、MP3(ID3)、MP3(帧同步)、WAV 的顺序匹配，先命中者返回。

    Args:
        data: 原始字节

    Returns:
        MIME 类型，无法识别时返回 "unknown"
    """
    head = bytes(data[:12])

    if head.startswith(JPEG_SIGNATURE):
        return "image/jpeg"
    if head.startswith(PNG_SIGNATURE):
        return "image/png"
    if head.startswith(ID3_SIGNATURE):
        return "audio/mpeg"
    if len(head) >= 2 and head[0] == 0xFF and head[1] in MP3_FRAME_SYNC:
        return "audio/mpeg"
    if head.startswith(RIFF_SIGNATURE) and head[8:12] == WAVE_SIGNATURE:
        return "audio/wav"

    return UNKNOWN


def extension_to_mime(extension: str) -> str:
    """扩展名映射到 MIME 类型（大小写不敏感）。

    未知扩展名原样（小写）返回；空或过短时返回 "unknown"。
    """
    if not isinstance(extension, str):
        return UNKNOWN
    ext = extension.lower()
    if ext.startswith("."):
        ext = ext[1:]
    if len(ext) <= 1:
        return UNKNOWN
    return EXTENSION_MAP.get(ext, ext)


def guess_from_path(path: str | PurePath, data: bytes) -> str:
    """本地文件的类型判断：先嗅探，失败再看扩展名。"""
    content_type = sniff(data)
    suffix = PurePath(path).suffix
    if content_type == UNKNOWN and suffix:
        return extension_to_mime(suffix)
    return content_type
