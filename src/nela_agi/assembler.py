"""请求组装。

nela-agi v0.1.0

- JSON 任务：所有声明字段都出现在请求体中，未传的可选参数为 None（序列化为 null）
- multipart 任务：未传的可选参数不出现，标量转为字符串，二进制字段保留 BinaryPayload
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

import aiohttp

from .content_type import sniff
from .types import BinaryPayload, ContentKind, MultipartField, RequestSpec

__all__ = [
    "build_form_data",
    "json_request",
    "multipart_request",
    "stringify",
]

_MIME_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/wav": "wav",
    "audio/wave": "wav",
}


def stringify(value: Any) -> str:
    """标量转为表单字符串。

    bool 转为小写 true/false，整数值的浮点数去掉小数部分（5.0 -> "5"）。
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def json_request(url: str, fields: Mapping[str, Any]) -> RequestSpec:
    """组装 JSON 请求，保留值为 None 的字段。"""
    return RequestSpec(url=url, body=dict(fields), content_kind=ContentKind.JSON)


def multipart_request(url: str, fields: Iterable[tuple[str, Any]]) -> RequestSpec:
    """组装 multipart 请求，跳过值为 None 的字段。

    bytes / bytearray / memoryview 按文件头嗅探后作为二进制字段上传。
    """
    parts: list[MultipartField] = []
    for name, value in fields:
        if value is None:
            continue
        if isinstance(value, (bytes, bytearray, memoryview)):
            data = bytes(value)
            value = BinaryPayload(data=data, content_type=sniff(data))
        elif not isinstance(value, BinaryPayload):
            value = stringify(value)
        parts.append(MultipartField(name=name, value=value))
    return RequestSpec(url=url, body=tuple(parts), content_kind=ContentKind.MULTIPART)


def _filename_for(name: str, payload: BinaryPayload) -> str:
    if payload.filename:
        return payload.filename
    ext = _MIME_EXTENSIONS.get(payload.content_type)
    return f"{name}.{ext}" if ext else name


def build_form_data(fields: Iterable[MultipartField]) -> aiohttp.MultipartWriter:
    """将 multipart 字段转为 multipart/form-data 请求体。

    只有文本字段时也保持 multipart 编码。
    """
    writer = aiohttp.MultipartWriter("form-data")
    for part in fields:
        if isinstance(part.value, BinaryPayload):
            payload = writer.append(part.value.data, {"Content-Type": part.value.content_type})
            payload.set_content_disposition(
                "form-data", name=part.name, filename=_filename_for(part.name, part.value)
            )
        else:
            payload = writer.append(part.value)
            payload.set_content_disposition("form-data", name=part.name)
    return writer
