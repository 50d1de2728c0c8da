"""NelaAGI 类型定义。

nela-agi v0.1.0
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Union

__all__ = [
    "ApiResponse",
    "BinaryPayload",
    "ContentKind",
    "ConversationTurn",
    "MultipartField",
    "OutputItem",
    "RequestSpec",
    "Role",
]


class Role(str, Enum):
    """对话角色。"""
    SYSTEM = "system"
    USER = "user"
    AI = "ai"


class ContentKind(str, Enum):
    """请求体编码方式。"""
    JSON = "json"
    MULTIPART = "multipart"


@dataclass(frozen=True)
class BinaryPayload:
    """已解析的二进制输入。

    Attributes:
        data: 原始字节
        content_type: MIME 类型（无法识别时为 "unknown"）
        filename: 可选文件名（multipart 上传时使用）
    """
    data: bytes
    content_type: str
    filename: str | None = None

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return (
            f"BinaryPayload(<{len(self.data)} bytes>, "
            f"content_type={self.content_type!r}, filename={self.filename!r})"
        )


@dataclass
class ConversationTurn:
    """对话中的一轮。

    Attributes:
        role: 角色（system/user/ai）
        content: 内容（至少 2 个字符）
    """
    role: Role | str
    content: str

    def to_dict(self) -> dict[str, str]:
        role = self.role.value if isinstance(self.role, Role) else self.role
        return {"role": role, "content": self.content}


@dataclass(frozen=True)
class MultipartField:
    """multipart 表单字段。"""
    name: str
    value: Union[str, BinaryPayload]


@dataclass(frozen=True)
class RequestSpec:
    """组装完成的请求。

    Attributes:
        url: 完整 URL
        method: HTTP 方法
        body: JSON 对象或 multipart 字段列表
        content_kind: 请求体编码方式
    """
    url: str
    body: dict[str, Any] | tuple[MultipartField, ...]
    content_kind: ContentKind = ContentKind.JSON
    method: str = "POST"

    @property
    def is_multipart(self) -> bool:
        return self.content_kind is ContentKind.MULTIPART


@dataclass
class OutputItem:
    """响应中的单个输出。

    Attributes:
        type: 输出类型（text/image_base64/audio_base64）
        data: 输出内容
    """
    type: str
    data: Any

    @property
    def is_base64(self) -> bool:
        return self.type.endswith("_base64")

    def decode(self) -> bytes:
        """解码 *_base64 类型的输出。"""
        if not self.is_base64:
            raise ValueError(f"Output of type {self.type!r} is not base64 encoded")
        return base64.b64decode(self.data)


# 所有响应共有的字段
_ENVELOPE_KEYS = ("output", "model_time_taken")


@dataclass
class ApiResponse:
    """API 响应。

    Attributes:
        status: HTTP 状态码
        reason: HTTP 状态描述
        headers: 响应头
        data: 解析后的响应体（JSON 为 dict，否则为文本）
    """
    status: int
    reason: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    data: Any = None

    @property
    def output(self) -> list[OutputItem]:
        if not isinstance(self.data, Mapping):
            return []
        return [
            OutputItem(type=item.get("type", ""), data=item.get("data"))
            for item in self.data.get("output") or []
            if isinstance(item, Mapping)
        ]

    @property
    def model_time_taken(self) -> float | None:
        if not isinstance(self.data, Mapping):
            return None
        return self.data.get("model_time_taken")

    @property
    def extras(self) -> dict[str, Any]:
        """任务特有字段（如 chat completion 的 token 统计）。"""
        if not isinstance(self.data, Mapping):
            return {}
        return {k: v for k, v in self.data.items() if k not in _ENVELOPE_KEYS}
