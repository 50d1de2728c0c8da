"""NelaAGI API 客户端。

nela-agi v0.1.0

提供文本、图像、音频三类 AI 任务：
1. text: chat_completion
2. image: image_generation / image_to_image / image_inpainting
3. audio: text_to_speech / speech_to_text / speech_enhancement / music_separation
"""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from .config import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT_MS,
    ClientConfig,
    Endpoint,
    load_client_config,
)
from .debug_utils import EventCallback, mask_token
from .sources import resolve_source
from .tasks import Audio, Image, Text
from .transport import Transport
from .types import ApiResponse, BinaryPayload, RequestSpec

__all__ = ["NelaAGI"]

logger = logging.getLogger(__name__)


class NelaAGI:
    """NelaAGI API 客户端。

    account_id / auth_key 未传入时从 NELA_ACCOUNTID / NELA_AUTHKEY 读取。
    凭证在构造后只读，同一实例可被多个并发调用共享。

    Example:
        async with NelaAGI("123456789012", "my-auth-key") as client:
            result = await client.text.chat_completion.fetch([
                {"role": "system", "content": "default"},
                {"role": "user", "content": "who is Elon Musk?"},
            ])
            print(result.output[0].data)
    """

    def __init__(
        self,
        account_id: str | None = None,
        auth_key: str | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        timeout: int = DEFAULT_TIMEOUT_MS,
        *,
        base_url: str | None = None,
        session: aiohttp.ClientSession | None = None,
        event_callback: EventCallback | None = None,
    ) -> None:
        """初始化客户端。

        Args:
            account_id: 账户 ID（12 个字符）
            auth_key: API 认证 key（至少 8 个字符）
            max_retries: 最大重试次数（仅记录，客户端不会重试）
            timeout: 单次请求的最长等待时间（毫秒）
            base_url: API 基础 URL（可选，默认读取 NELA_BASE_URL）
            session: 外部 HTTP 会话（可选，客户端不会关闭它）
            event_callback: 事件回调函数（请求/响应/错误）

        Raises:
            NelaAGIError: 凭证缺失或长度不合法（400）
        """
        self._config = load_client_config(
            account_id=account_id,
            auth_key=auth_key,
            max_retries=max_retries,
            timeout=timeout,
            base_url=base_url,
        )
        self._event_callback = event_callback
        self._session = session
        self._owns_session = session is None
        self._transport = Transport(self._config, self._get_session, event_callback)

        self.text = Text(self)
        self.image = Image(self)
        self.audio = Audio(self)

        logger.debug(
            f"NelaAGI client ready: base_url={self._config.base_url} "
            f"account_id={self._config.account_id} auth_key={mask_token(self._config.auth_key)}"
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def account_id(self) -> str:
        return self._config.account_id

    @property
    def max_retries(self) -> int:
        return self._config.max_retries

    @property
    def timeout(self) -> int:
        return self._config.timeout

    async def _get_session(self) -> aiohttp.ClientSession:
        """获取或创建 HTTP 会话。"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """关闭客户端自己创建的 HTTP 会话。"""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> NelaAGI:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def endpoint_url(self, endpoint: Endpoint) -> str:
        """任务端点的完整 URL。"""
        return self._config.endpoint_url(endpoint)

    async def resolve(self, value: Any, field: str) -> BinaryPayload:
        """将二进制输入解析为 BinaryPayload（URL 会被下载）。"""
        session = await self._get_session()
        return await resolve_source(value, field, session, event_callback=self._event_callback)

    async def send(self, request: RequestSpec) -> ApiResponse:
        """发送组装好的请求。"""
        return await self._transport.send(request)

    async def fetch(
        self,
        url: str,
        method: str,
        data: Any = None,
        is_multipart: bool = False,
    ) -> ApiResponse:
        """直接调用 API。

        Args:
            url: 完整 URL
            method: GET/POST/PUT/DELETE
            data: GET 时为查询参数，其余方法为请求体
            is_multipart: 是否以 multipart/form-data 发送

        Raises:
            NelaAGIError: 参数错误（400）或远端/传输错误
        """
        return await self._transport.dispatch(url, method, data, is_multipart)
