"""Pytest 配置和 fixtures。"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestServer

# 项目根目录
PROJECT_ROOT = Path(__file__).parent.parent

# 添加 src 目录到 Python 路径
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from nela_agi import NelaAGI  # noqa: E402

from fixtures.fake_api import FakeNelaAPI  # noqa: E402
from fixtures.samples import ACCOUNT_ID, AUTH_KEY  # noqa: E402


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """隔离 NELA_* 环境变量。"""
    for name in ("NELA_ACCOUNTID", "NELA_AUTHKEY", "NELA_BASE_URL"):
        monkeypatch.delenv(name, raising=False)


@pytest_asyncio.fixture
async def fake_api():
    """启动本地假 API 服务。"""
    api = FakeNelaAPI()
    server = TestServer(api.app)
    await server.start_server()
    api.base_url = str(server.make_url("")).rstrip("/")
    yield api
    await server.close()


@pytest.fixture
def events() -> list[dict[str, Any]]:
    """收集客户端事件。"""
    return []


@pytest_asyncio.fixture
async def client(fake_api: FakeNelaAPI, events: list[dict[str, Any]]):
    """指向假 API 服务的客户端。"""
    nela = NelaAGI(
        ACCOUNT_ID,
        AUTH_KEY,
        base_url=fake_api.base_url,
        event_callback=events.append,
    )
    yield nela
    await nela.close()
