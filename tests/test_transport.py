"""HTTP 调度与错误映射测试。"""

from __future__ import annotations

import asyncio
import errno
import socket

import aiohttp
import pytest

from nela_agi import ApiResponse, BinaryPayload, NelaAGI, NelaAGIError
from nela_agi.transport import (
    SERVER_BUG_MESSAGE,
    classify_remote_error,
    classify_transport_error,
)

from fixtures.fake_api import FakeNelaAPI
from fixtures.samples import ACCOUNT_ID, AUTH_KEY, OK_BODY, PNG_BYTES, WAV_BYTES

PREFIX = "Unable to connect to the server at this moment due to"


class TestClassifyRemoteError:
    """非 2xx 响应映射。"""

    def test_detail_is_used_verbatim(self):
        error = classify_remote_error(ApiResponse(422, "Unprocessable", data={"detail": "bad"}))
        assert (error.status_code, error.detail) == (422, "bad")

    def test_structured_detail_is_serialized(self):
        detail = [{"loc": ["body", "text"], "msg": "field required"}]
        error = classify_remote_error(ApiResponse(422, data={"detail": detail}))
        assert error.status_code == 422
        assert '"field required"' in error.detail

    def test_detail_wins_over_500(self):
        error = classify_remote_error(ApiResponse(500, data={"detail": "model crashed"}))
        assert error.detail == "model crashed"

    def test_500_without_detail(self):
        error = classify_remote_error(ApiResponse(500, "Internal Server Error", data="oops"))
        assert (error.status_code, error.detail) == (500, SERVER_BUG_MESSAGE)

    @pytest.mark.parametrize("status, reason", [(502, "Bad Gateway"), (503, "Service Unavailable")])
    def test_gateway_errors(self, status, reason):
        error = classify_remote_error(ApiResponse(status, reason, data=""))
        assert error.status_code == status
        assert error.detail == f"{PREFIX} {reason}"

    def test_other_status_maps_to_501(self):
        error = classify_remote_error(ApiResponse(404, "Not Found", data={}))
        assert error.status_code == 501
        assert error.detail == (
            f"{PREFIX} ERR_BAD_REQUEST, reason: Request failed with status code 404"
        )

    def test_other_5xx_maps_to_bad_response(self):
        error = classify_remote_error(ApiResponse(504, "Gateway Timeout", data=""))
        assert error.status_code == 501
        assert error.detail == (
            f"{PREFIX} ERR_BAD_RESPONSE, reason: Request failed with status code 504"
        )


class TestClassifyTransportError:
    """无响应的失败映射。"""

    def test_connection_refused(self):
        exc = aiohttp.ClientOSError(errno.ECONNREFUSED, "Connection refused")
        error = classify_transport_error(exc)
        assert error.status_code == 501
        assert error.detail == f"{PREFIX} ECONNREFUSED, reason: {exc}"

    def test_dns_failure(self):
        exc = socket.gaierror(socket.EAI_NONAME, "Name or service not known")
        error = classify_transport_error(exc)
        assert error.detail.startswith(f"{PREFIX} ENOTFOUND, reason:")

    def test_timeout_without_message(self):
        error = classify_transport_error(asyncio.TimeoutError(), timeout_ms=1000)
        assert error.detail == f"{PREFIX} ETIMEDOUT, reason: timeout of 1000ms exceeded"

    def test_unknown_code(self):
        error = classify_transport_error(aiohttp.ClientPayloadError("truncated"))
        assert error.detail == f"{PREFIX} 501 Not Implemented, reason: truncated"


class TestDispatch:
    """client.fetch() 调度。"""

    @pytest.mark.asyncio
    async def test_post_json_with_auth_headers(self, client: NelaAGI, fake_api: FakeNelaAPI):
        response = await client.fetch(f"{fake_api.base_url}/echo", "post", {"text": "hello"})

        assert response.status == 200
        assert response.data == OK_BODY
        assert response.output[0].data == "ok"
        assert response.model_time_taken == 0.25

        request = fake_api.last
        assert request.method == "POST"
        assert request.path == "/echo"
        assert request.json == {"text": "hello"}
        assert request.headers["Auth-Key"] == f"api-key {AUTH_KEY}"
        assert request.headers["Account-Id"] == ACCOUNT_ID
        assert request.headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_get_sends_query_params(self, client: NelaAGI, fake_api: FakeNelaAPI):
        await client.fetch(f"{fake_api.base_url}/status", "GET", {"page": 2, "skip": None})
        assert fake_api.last.method == "GET"
        assert fake_api.last.query == {"page": "2"}
        assert fake_api.last.json is None

    @pytest.mark.asyncio
    async def test_get_rejects_non_mapping_data(self, client: NelaAGI, fake_api: FakeNelaAPI):
        with pytest.raises(NelaAGIError) as exc_info:
            await client.fetch(f"{fake_api.base_url}/status", "GET", ["a"])
        assert exc_info.value.status_code == 400
        assert fake_api.requests == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["PUT", "DELETE"])
    async def test_other_methods(self, client: NelaAGI, fake_api: FakeNelaAPI, method: str):
        await client.fetch(f"{fake_api.base_url}/item", method, {"id": 1})
        assert fake_api.last.method == method
        assert fake_api.last.json == {"id": 1}

    @pytest.mark.asyncio
    async def test_multipart_from_mapping(self, client: NelaAGI, fake_api: FakeNelaAPI):
        image = BinaryPayload(PNG_BYTES, "image/png")
        await client.fetch(
            f"{fake_api.base_url}/upload",
            "POST",
            {"image": image, "prompt": "a cat", "strength": 0.5, "negative_prompt": None},
            is_multipart=True,
        )

        request = fake_api.last
        assert request.headers["Content-Type"].startswith("multipart/form-data; boundary=")
        assert request.form == {"prompt": "a cat", "strength": "0.5"}
        assert request.files == {"image": ("image.png", "image/png", PNG_BYTES)}

    @pytest.mark.asyncio
    async def test_multipart_raw_bytes_uploaded_as_file(
        self, client: NelaAGI, fake_api: FakeNelaAPI
    ):
        """mapping 中的 bytes 作为文件上传，而不是其 repr 文本。"""
        await client.fetch(
            f"{fake_api.base_url}/upload",
            "POST",
            {"audio": WAV_BYTES, "split": "ALL"},
            is_multipart=True,
        )

        request = fake_api.last
        assert request.form == {"split": "ALL"}
        assert request.files == {"audio": ("audio.wav", "audio/wav", WAV_BYTES)}

    @pytest.mark.asyncio
    async def test_unknown_response_charset(self, client: NelaAGI, fake_api: FakeNelaAPI):
        """未知 charset 按 utf-8 解码，错误仍以 NelaAGIError 抛出。"""
        fake_api.respond(
            "/x",
            status=400,
            body=b'{"detail": "quota exceeded"}',
            content_type="application/json; charset=bogus-enc",
        )
        with pytest.raises(NelaAGIError) as exc_info:
            await client.fetch(f"{fake_api.base_url}/x", "POST", {})
        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "quota exceeded"

    @pytest.mark.asyncio
    async def test_unknown_charset_success_body(self, client: NelaAGI, fake_api: FakeNelaAPI):
        fake_api.respond(
            "/ok",
            body=b'{"output": [{"type": "text", "data": "hi"}]}',
            content_type="application/json; charset=bogus-enc",
        )
        response = await client.fetch(f"{fake_api.base_url}/ok", "POST", {})
        assert response.output[0].data == "hi"

    @pytest.mark.asyncio
    async def test_empty_url(self, client: NelaAGI, fake_api: FakeNelaAPI):
        with pytest.raises(NelaAGIError) as exc_info:
            await client.fetch("", "POST", {})
        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "url should not be empty"
        assert fake_api.requests == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["PATCH", "", None])
    async def test_bad_method(self, client: NelaAGI, fake_api: FakeNelaAPI, method):
        with pytest.raises(NelaAGIError) as exc_info:
            await client.fetch(f"{fake_api.base_url}/x", method, {})
        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "Allowed HttpMethods are 'GET','POST','PUT','DELETE'"
        assert fake_api.requests == []

    @pytest.mark.asyncio
    async def test_detail_error(self, client: NelaAGI, fake_api: FakeNelaAPI):
        fake_api.respond("/x", status=422, body={"detail": "text is too long"})
        with pytest.raises(NelaAGIError) as exc_info:
            await client.fetch(f"{fake_api.base_url}/x", "POST", {})
        assert exc_info.value.status_code == 422
        assert exc_info.value.detail == "text is too long"

    @pytest.mark.asyncio
    async def test_500(self, client: NelaAGI, fake_api: FakeNelaAPI):
        fake_api.respond("/x", status=500, body="Internal Server Error")
        with pytest.raises(NelaAGIError) as exc_info:
            await client.fetch(f"{fake_api.base_url}/x", "POST", {})
        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == SERVER_BUG_MESSAGE

    @pytest.mark.asyncio
    async def test_503(self, client: NelaAGI, fake_api: FakeNelaAPI):
        fake_api.respond("/x", status=503)
        with pytest.raises(NelaAGIError) as exc_info:
            await client.fetch(f"{fake_api.base_url}/x", "POST", {})
        assert exc_info.value.status_code == 503
        assert exc_info.value.detail == f"{PREFIX} Service Unavailable"

    @pytest.mark.asyncio
    async def test_404_maps_to_501(self, client: NelaAGI, fake_api: FakeNelaAPI):
        fake_api.respond("/x", status=404, body={"message": "missing"})
        with pytest.raises(NelaAGIError) as exc_info:
            await client.fetch(f"{fake_api.base_url}/x", "POST", {})
        assert exc_info.value.status_code == 501
        assert exc_info.value.detail == (
            f"{PREFIX} ERR_BAD_REQUEST, reason: Request failed with status code 404"
        )

    @pytest.mark.asyncio
    async def test_connection_refused(self):
        async with NelaAGI(ACCOUNT_ID, AUTH_KEY, base_url="http://127.0.0.1:1") as nela:
            with pytest.raises(NelaAGIError) as exc_info:
                await nela.fetch("http://127.0.0.1:1/x", "POST", {})
        assert exc_info.value.status_code == 501
        assert exc_info.value.detail.startswith(PREFIX)

    @pytest.mark.asyncio
    async def test_timeout(self, fake_api: FakeNelaAPI):
        fake_api.respond("/slow", delay=0.5)
        async with NelaAGI(ACCOUNT_ID, AUTH_KEY, timeout=50, base_url=fake_api.base_url) as nela:
            with pytest.raises(NelaAGIError) as exc_info:
                await nela.fetch(f"{fake_api.base_url}/slow", "POST", {})
        assert exc_info.value.status_code == 501
        assert exc_info.value.detail.startswith(f"{PREFIX} ETIMEDOUT, reason:")

    @pytest.mark.asyncio
    async def test_events(self, client: NelaAGI, fake_api: FakeNelaAPI, events: list[dict]):
        fake_api.respond("/x", status=503)
        await client.fetch(f"{fake_api.base_url}/ok", "POST", {"text": "hi"})
        with pytest.raises(NelaAGIError):
            await client.fetch(f"{fake_api.base_url}/x", "POST", {})

        assert [e["type"] for e in events] == [
            "api_request", "api_response", "api_request", "api_response", "api_error",
        ]
        assert events[0]["headers"]["Auth-Key"] == "***"
        assert events[0]["body"] == {"text": "hi"}
        assert events[1]["status_code"] == 200
        assert events[4]["status_code"] == 503
