"""任务基类。

nela-agi v0.1.0
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from ..config import Endpoint
from ..types import ApiResponse, BinaryPayload, RequestSpec
from ..validation import Rule, check_rules

if TYPE_CHECKING:
    from ..client import NelaAGI

__all__ = ["Task", "TaskGroup"]


class TaskGroup:
    """按模态分组的任务集合（text / image / audio）。"""

    def __init__(self, client: NelaAGI) -> None:
        self._client = client

    def get_client(self) -> NelaAGI:
        return self._client


class Task(TaskGroup):
    """单个任务。

    子类声明 endpoint，并实现 fetch()：校验参数、组装请求、调度一次。
    """

    endpoint: ClassVar[Endpoint]

    @property
    def url(self) -> str:
        return self._client.endpoint_url(self.endpoint)

    async def _resolve(self, value: Any, rule: Rule) -> BinaryPayload:
        """解析二进制输入并立即校验其 MIME 类型。"""
        payload = await self._client.resolve(value, rule.field)
        check_rules((rule,), {rule.field: payload}).raise_if_invalid()
        return payload

    async def _send(self, request: RequestSpec) -> ApiResponse:
        return await self._client.send(request)
