"""HTTP 调度。

nela-agi v0.1.0

所有任务请求的唯一出口：附加认证头、按方法放置请求体、
将远端/传输错误统一映射为 NelaAGIError。每次调用只发出一次请求，不重试。
"""

from __future__ import annotations

import asyncio
import errno
import json
import logging
import socket
import time
from typing import Any, Awaitable, Callable, Mapping

import aiohttp

from .assembler import build_form_data, multipart_request, stringify
from .config import ClientConfig
from .debug_utils import EventCallback, sanitize_for_debug, sanitize_headers
from .errors import NelaAGIError
from .types import ApiResponse, RequestSpec

__all__ = [
    "ALLOWED_METHODS",
    "SERVER_BUG_MESSAGE",
    "Transport",
    "classify_remote_error",
    "classify_transport_error",
]

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ("GET", "POST", "PUT", "DELETE")

SERVER_BUG_MESSAGE = (
    "This may be a bug on our side. Please contact us at contact@eliteappmakers.com"
)
CONNECT_ERROR_PREFIX = "Unable to connect to the server at this moment due to"
DEFAULT_ERROR_CODE = "501 Not Implemented"

SessionGetter = Callable[[], Awaitable[aiohttp.ClientSession]]


def classify_remote_error(response: ApiResponse) -> NelaAGIError:
    """将非 2xx 响应映射为 NelaAGIError。"""
    status = response.status
    detail = response.data.get("detail") if isinstance(response.data, Mapping) else None

    if detail:
        if not isinstance(detail, str):
            detail = json.dumps(detail)
        return NelaAGIError(status, detail)

    if status == 500:
        return NelaAGIError(500, SERVER_BUG_MESSAGE)

    if status in (502, 503):
        return NelaAGIError(status, f"{CONNECT_ERROR_PREFIX} {response.reason}")

    code = "ERR_BAD_RESPONSE" if status >= 500 else "ERR_BAD_REQUEST"
    return NelaAGIError(
        501,
        f"{CONNECT_ERROR_PREFIX} {code}, reason: Request failed with status code {status}",
    )


def _error_code(exc: BaseException) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return "ETIMEDOUT"
    os_error = getattr(exc, "os_error", exc)
    if isinstance(os_error, socket.gaierror):
        return "ENOTFOUND"
    code = getattr(os_error, "errno", None)
    if isinstance(code, int) and code in errno.errorcode:
        return errno.errorcode[code]
    return DEFAULT_ERROR_CODE


def classify_transport_error(exc: BaseException, timeout_ms: int | None = None) -> NelaAGIError:
    """没有远端响应的失败（DNS、拒绝连接、超时等）映射为 501。"""
    if isinstance(exc, asyncio.TimeoutError) and not str(exc):
        message = f"timeout of {timeout_ms}ms exceeded" if timeout_ms else "timeout exceeded"
    else:
        message = str(exc) or type(exc).__name__
    return NelaAGIError(501, f"{CONNECT_ERROR_PREFIX} {_error_code(exc)}, reason: {message}")


def _query_params(body: Any) -> dict[str, str] | None:
    if body is None:
        return None
    if not isinstance(body, Mapping):
        raise NelaAGIError(400, "GET request data should be a mapping of query parameters")
    return {k: stringify(v) for k, v in body.items() if v is not None}


async def _read_body(resp: aiohttp.ClientResponse) -> Any:
    raw = await resp.read()
    try:
        text = raw.decode(resp.charset or "utf-8", errors="replace")
    except LookupError:
        logger.debug(f"Unknown response charset {resp.charset!r}, decoding as utf-8")
        text = raw.decode("utf-8", errors="replace")
    if "json" in resp.content_type and text:
        try:
            return json.loads(text)
        except ValueError:
            logger.debug(f"Response declared JSON but body is not valid JSON ({len(text)} chars)")
    return text


class Transport:
    """HTTP 调度器。

    Example:
        transport = Transport(config, get_session)
        response = await transport.dispatch(url, "POST", {"text": "hello"}, False)
    """

    def __init__(
        self,
        config: ClientConfig,
        get_session: SessionGetter,
        event_callback: EventCallback | None = None,
    ) -> None:
        self._config = config
        self._get_session = get_session
        self._event_callback = event_callback

    def _emit_event(self, event: dict[str, Any]) -> None:
        """发送事件到回调。"""
        if self._event_callback:
            self._event_callback(event)

    def build_headers(self, is_multipart: bool) -> dict[str, str]:
        """构建固定请求头。"""
        return {
            "Auth-Key": f"api-key {self._config.auth_key}",
            "Account-Id": self._config.account_id,
            "Content-Type": "multipart/form-data" if is_multipart else "application/json",
        }

    async def send(self, request: RequestSpec) -> ApiResponse:
        """发送组装好的请求。"""
        return await self.dispatch(request.url, request.method, request.body, request.is_multipart)

    async def dispatch(
        self,
        url: str,
        method: str,
        body: Any,
        is_multipart: bool = False,
    ) -> ApiResponse:
        """发出一次 HTTP 请求。

        Args:
            url: 完整 URL
            method: GET/POST/PUT/DELETE（大小写不敏感）
            body: GET 时作为查询参数，其余方法作为请求体
            is_multipart: 是否为 multipart 请求

        Returns:
            ApiResponse（2xx 响应原样返回）

        Raises:
            NelaAGIError: 参数错误（400）或远端/传输错误
        """
        if not isinstance(url, str) or not url:
            raise NelaAGIError(400, "url should not be empty")
        if not isinstance(method, str) or method.upper() not in ALLOWED_METHODS:
            raise NelaAGIError(400, "Allowed HttpMethods are 'GET','POST','PUT','DELETE'")

        method = method.upper()
        headers = self.build_headers(is_multipart)
        kwargs: dict[str, Any] = {}

        if method == "GET":
            kwargs["params"] = _query_params(body)
        elif is_multipart:
            if isinstance(body, Mapping):
                body = multipart_request(url, body.items()).body
            kwargs["data"] = build_form_data(body or ())
            # aiohttp 生成带 boundary 的 multipart/form-data
            headers.pop("Content-Type")
        else:
            kwargs["json"] = body

        self._emit_event({
            "type": "api_request",
            "url": url,
            "method": method,
            "headers": sanitize_headers(self.build_headers(is_multipart)),
            "body": sanitize_for_debug(body),
        })
        logger.debug(f"{method} {url}")

        session = await self._get_session()
        timeout = aiohttp.ClientTimeout(total=self._config.timeout_seconds)

        start_time = time.time()
        try:
            async with session.request(
                method, url, headers=headers, timeout=timeout, **kwargs
            ) as resp:
                response = ApiResponse(
                    status=resp.status,
                    reason=resp.reason or "",
                    headers=dict(resp.headers),
                    data=await _read_body(resp),
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            error = classify_transport_error(e, self._config.timeout)
            logger.warning(f"{method} {url} failed: {error.detail}")
            self._emit_event({
                "type": "api_error",
                "url": url,
                "status_code": error.status_code,
                "error": error.detail,
            })
            raise error from e

        duration_ms = int((time.time() - start_time) * 1000)
        self._emit_event({
            "type": "api_response",
            "url": url,
            "status_code": response.status,
            "duration_ms": duration_ms,
            "headers": response.headers,
            "body": sanitize_for_debug(response.data),
        })
        logger.debug(f"{method} {url} -> {response.status} in {duration_ms}ms")

        if response.status >= 400:
            error = classify_remote_error(response)
            logger.warning(f"{method} {url} returned {response.status}: {error.detail[:200]}")
            self._emit_event({
                "type": "api_error",
                "url": url,
                "status_code": error.status_code,
                "error": error.detail,
            })
            raise error

        return response
