"""二进制输入解析。

nela-agi v0.1.0

将多种输入形式统一为 BinaryPayload：
1. URL 字符串：GET 下载，优先使用响应声明的 Content-Type
2. BinaryPayload：已带类型，原样使用
3. bytes / bytearray / memoryview：嗅探文件头
4. 本地文件（路径或二进制文件对象）：读取后嗅探，失败再看扩展名
"""

from __future__ import annotations

import asyncio
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Collection

import aiohttp

from .content_type import guess_from_path, sniff
from .debug_utils import EventCallback
from .errors import NelaAGIError
from .types import BinaryPayload

__all__ = [
    "ALL_KINDS",
    "SourceKind",
    "classify_source",
    "describe_accepted",
    "read_local_file",
    "resolve_source",
]

logger = logging.getLogger(__name__)


class SourceKind(str, Enum):
    """输入形式标签。"""
    URL = "url"
    BLOB = "blob"
    BUFFER = "buffer"
    FILE = "file"
    UNSUPPORTED = "unsupported"


ALL_KINDS: tuple[SourceKind, ...] = (
    SourceKind.URL,
    SourceKind.BLOB,
    SourceKind.BUFFER,
    SourceKind.FILE,
)

# 不携带具体类型信息的声明，按未声明处理
_GENERIC_TYPES = frozenset({"application/octet-stream", "binary/octet-stream"})

_SHAPE_NAMES = {
    SourceKind.URL: "url string",
    SourceKind.BLOB: "BinaryPayload",
    SourceKind.BUFFER: "bytes",
    SourceKind.FILE: "file path or binary file object",
}


def classify_source(value: Any) -> SourceKind:
    """判断输入形式，不做任何 I/O。"""
    if isinstance(value, str):
        return SourceKind.URL
    if isinstance(value, BinaryPayload):
        return SourceKind.BLOB
    if isinstance(value, (bytes, bytearray, memoryview)):
        return SourceKind.BUFFER
    if isinstance(value, os.PathLike) or callable(getattr(value, "read", None)):
        return SourceKind.FILE
    return SourceKind.UNSUPPORTED


def describe_accepted(accepted: Collection[SourceKind]) -> str:
    """生成可接受输入形式的描述，如 "url string, bytes or BinaryPayload"。"""
    names = [_SHAPE_NAMES[kind] for kind in ALL_KINDS if kind in accepted]
    if len(names) == 1:
        return names[0]
    return ", ".join(names[:-1]) + " or " + names[-1]


def read_local_file(path: str | os.PathLike[str]) -> BinaryPayload:
    """读取本地文件为 BinaryPayload。

    Raises:
        FileNotFoundError: 文件不存在
        OSError: 读取失败
    """
    file_path = Path(path)
    data = file_path.read_bytes()
    return BinaryPayload(
        data=data,
        content_type=guess_from_path(file_path, data),
        filename=file_path.name,
    )


def _read_file_object(fileobj: Any) -> BinaryPayload:
    data = fileobj.read()
    if not isinstance(data, (bytes, bytearray)):
        raise TypeError("file object must be opened in binary mode")
    name = os.path.basename(str(getattr(fileobj, "name", "") or ""))
    data = bytes(data)
    return BinaryPayload(
        data=data,
        content_type=guess_from_path(name, data) if name else sniff(data),
        filename=name or None,
    )


async def _fetch_url(
    url: str,
    field: str,
    session: aiohttp.ClientSession,
    event_callback: EventCallback | None,
) -> BinaryPayload:
    logger.debug(f"Fetching {field} from {url}")
    try:
        async with session.get(url) as resp:
            resp.raise_for_status()
            data = await resp.read()
            declared = resp.headers.get("Content-Type", "")
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        raise NelaAGIError(
            422, f"{field} should be a valid url string failed due to {e}"
        ) from e

    content_type = declared.split(";")[0].strip().lower()
    if not content_type or content_type in _GENERIC_TYPES:
        content_type = sniff(data)

    if event_callback:
        event_callback({
            "type": "source_fetch",
            "field": field,
            "url": url,
            "bytes": len(data),
            "content_type": content_type,
        })

    # 上传文件名按 MIME 类型生成
    return BinaryPayload(data=data, content_type=content_type)


async def resolve_source(
    value: Any,
    field: str,
    session: aiohttp.ClientSession,
    accepted: Collection[SourceKind] = ALL_KINDS,
    event_callback: EventCallback | None = None,
) -> BinaryPayload:
    """将输入统一为 BinaryPayload。

    Args:
        value: 输入（URL / BinaryPayload / bytes / 本地文件）
        field: 字段名（用于错误信息）
        session: 下载 URL 时使用的 HTTP 会话
        accepted: 允许的输入形式
        event_callback: 事件回调

    Returns:
        BinaryPayload

    Raises:
        NelaAGIError: 输入形式不支持、URL 无效或文件无法读取（422）
    """
    kind = classify_source(value)
    if kind is SourceKind.UNSUPPORTED or kind not in accepted:
        raise NelaAGIError(422, f"{field} should be {describe_accepted(accepted)}")

    if kind is SourceKind.URL:
        return await _fetch_url(value, field, session, event_callback)

    if kind is SourceKind.BLOB:
        return value

    if kind is SourceKind.BUFFER:
        data = bytes(value)
        return BinaryPayload(data=data, content_type=sniff(data))

    try:
        if isinstance(value, os.PathLike):
            return await asyncio.to_thread(read_local_file, value)
        return await asyncio.to_thread(_read_file_object, value)
    except (OSError, TypeError) as e:
        raise NelaAGIError(422, f"{field} file could not be read: {e}") from e
