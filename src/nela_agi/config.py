"""NelaAGI 客户端配置。

nela-agi v0.1.0

环境变量:
    NELA_ACCOUNTID: 账户 ID（固定 12 个字符）
    NELA_AUTHKEY: API 认证 key（至少 8 个字符）
    NELA_BASE_URL: API 基础 URL（默认 beta-apis.eliteappmakers.in）
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum

from .errors import NelaAGIError

__all__ = [
    "ACCOUNT_ID_ENV",
    "AUTH_KEY_ENV",
    "BASE_URL_ENV",
    "DEFAULT_BASE_URL",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_TIMEOUT_MS",
    "ClientConfig",
    "Endpoint",
    "load_client_config",
    "read_env",
]

ACCOUNT_ID_ENV = "NELA_ACCOUNTID"
AUTH_KEY_ENV = "NELA_AUTHKEY"
BASE_URL_ENV = "NELA_BASE_URL"

# 默认 API 基础 URL
DEFAULT_BASE_URL = "https://beta-apis.eliteappmakers.in"

DEFAULT_MAX_RETRIES = 2
DEFAULT_TIMEOUT_MS = 600000

ACCOUNT_ID_LENGTH = 12
MIN_AUTH_KEY_LENGTH = 8

ACCOUNT_ID_ERROR = (
    f"The {ACCOUNT_ID_ENV} environment variable is missing or empty or length of the "
    "accountId provided is not equal to 12 characters; either provide it, or instantiate "
    "the NelaAGI client with an account_id option, like "
    "NelaAGI('123456789012', 'My API Key')."
)
AUTH_KEY_ERROR = (
    f"The {AUTH_KEY_ENV} environment variable is missing or empty; either provide it, "
    "or instantiate the NelaAGI client with an auth_key option, like "
    "NelaAGI('123456789012', 'My API Key')."
)


class Endpoint(str, Enum):
    """各任务的固定路径。"""
    CHAT_COMPLETION = "/llm_gpt_neox_3b/v0_2/chat_completion"
    IMAGE_GENERATION = "/im_sdxl_base_v1/v0_2/image_generation"
    IMAGE_TO_IMAGE = "/im_sdxl_base_v1/v0_2/image_to_image"
    IMAGE_INPAINTING = "/im_sdxl_base_v1/v0_2/image_inpainting"
    TEXT_TO_SPEECH = "/am_muspnet_v1/v0_2/text_to_speech_ms"
    SPEECH_TO_TEXT = "/am_muspnet_v1/v0_2/speech_to_text"
    SPEECH_ENHANCEMENT = "/am_muspnet_v1/v0_2/speech_enhancement"
    MUSIC_SEPARATION = "/am_muspnet_v1/v0_2/music_separation"


def read_env(name: str) -> str | None:
    """读取环境变量，去除首尾空白。

    变量不存在（或 name 为空）时返回 None。
    """
    if not name:
        return None
    value = os.environ.get(name)
    if value is None:
        return None
    return value.strip()


def _normalize_base_url(url: str) -> str:
    """规范化 BASE_URL，去掉末尾斜杠。"""
    return url.strip().rstrip("/")


@dataclass(frozen=True)
class ClientConfig:
    """客户端配置。

    Attributes:
        account_id: 账户 ID
        auth_key: API 认证 key
        max_retries: 最大重试次数（仅记录，客户端不会重试）
        timeout: 单次请求的最长等待时间（毫秒）
        base_url: API 基础 URL
    """
    account_id: str
    auth_key: str
    max_retries: int = DEFAULT_MAX_RETRIES
    timeout: int = DEFAULT_TIMEOUT_MS
    base_url: str = DEFAULT_BASE_URL

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000

    def endpoint_url(self, endpoint: Endpoint) -> str:
        """拼接任务的完整 URL。"""
        return f"{self.base_url}{endpoint.value}"


def load_client_config(
    account_id: str | None = None,
    auth_key: str | None = None,
    max_retries: int = DEFAULT_MAX_RETRIES,
    timeout: int = DEFAULT_TIMEOUT_MS,
    base_url: str | None = None,
) -> ClientConfig:
    """加载并校验客户端配置。

    未显式传入的 account_id / auth_key / base_url 从环境变量读取。

    Raises:
        NelaAGIError: 凭证缺失或长度不合法（400）
    """
    if account_id is None:
        account_id = read_env(ACCOUNT_ID_ENV)
    if auth_key is None:
        auth_key = read_env(AUTH_KEY_ENV)

    if not isinstance(account_id, str) or len(account_id) != ACCOUNT_ID_LENGTH:
        raise NelaAGIError(400, ACCOUNT_ID_ERROR)
    if not isinstance(auth_key, str) or len(auth_key) < MIN_AUTH_KEY_LENGTH:
        raise NelaAGIError(400, AUTH_KEY_ERROR)

    raw_url = base_url or read_env(BASE_URL_ENV) or DEFAULT_BASE_URL

    return ClientConfig(
        account_id=account_id,
        auth_key=auth_key,
        max_retries=max_retries,
        timeout=timeout,
        base_url=_normalize_base_url(raw_url),
    )
