"""NelaAGI Python 客户端。

nela-agi v0.1.0

提供文本、图像、音频 AI 任务的异步 API 封装。
"""

from __future__ import annotations

__version__ = "0.1.0"

from .client import NelaAGI
from .config import (
    ACCOUNT_ID_ENV,
    AUTH_KEY_ENV,
    BASE_URL_ENV,
    DEFAULT_BASE_URL,
    ClientConfig,
    Endpoint,
    load_client_config,
    read_env,
)
from .content_type import extension_to_mime, guess_from_path, sniff
from .errors import NelaAGIError
from .sources import SourceKind, classify_source, read_local_file, resolve_source
from .types import (
    ApiResponse,
    BinaryPayload,
    ContentKind,
    ConversationTurn,
    MultipartField,
    OutputItem,
    RequestSpec,
    Role,
)
from .validation import ValidationOutcome, validate_conversations

__all__ = [
    "__version__",
    # Client
    "NelaAGI",
    # Config
    "ACCOUNT_ID_ENV",
    "AUTH_KEY_ENV",
    "BASE_URL_ENV",
    "DEFAULT_BASE_URL",
    "ClientConfig",
    "Endpoint",
    "load_client_config",
    "read_env",
    # Errors
    "NelaAGIError",
    # Content type
    "sniff",
    "extension_to_mime",
    "guess_from_path",
    # Sources
    "SourceKind",
    "classify_source",
    "read_local_file",
    "resolve_source",
    # Types
    "ApiResponse",
    "BinaryPayload",
    "ContentKind",
    "ConversationTurn",
    "MultipartField",
    "OutputItem",
    "RequestSpec",
    "Role",
    # Validation
    "ValidationOutcome",
    "validate_conversations",
]
