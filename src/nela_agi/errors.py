"""NelaAGI 异常类。

nela-agi v0.1.0
"""

from __future__ import annotations

__all__ = [
    "NelaAGIError",
]


class NelaAGIError(Exception):
    """NelaAGI 统一异常。

    参数校验（422）、凭证/调度参数错误（400）以及远端/传输错误
    都以此异常抛出。

    Attributes:
        status_code: HTTP 状态码
        detail: 错误详情
    """

    def __init__(self, status_code: int, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(detail)

    def __repr__(self) -> str:
        return f"NelaAGIError({self.status_code}, {self.detail!r})"
