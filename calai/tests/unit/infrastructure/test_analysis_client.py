"""
Unit tests for the chat-completion HTTP client.

Uses httpx.MockTransport; no network access.
"""

import json
from typing import Any, Callable, Dict, List

import httpx
import pytest

from calai.domain.analysis.models import AnalysisRequest, EncodedImage
from calai.domain.analysis.ports import IAnalysisClient
from calai.domain.analysis.request_builder import build_analysis_request
from calai.domain.shared.errors import ConfigurationError, TransportError
from calai.infrastructure.ai.analysis_client import AnalysisClient
from calai.tests.helpers import make_reply

Handler = Callable[[httpx.Request], httpx.Response]


def mock_http(handler: Handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def request_(encoded_photo: EncodedImage) -> AnalysisRequest:
    return build_analysis_request(encoded_photo, api_key="sk-test")


class TestAnalysisClient:
    """Test AnalysisClient.send()."""

    def test_implements_port(self) -> None:
        assert isinstance(AnalysisClient(), IAnalysisClient)

    def test_endpoint(self) -> None:
        client = AnalysisClient(base_url="https://llm.example.com/v1/")

        assert client.endpoint == "https://llm.example.com/v1/chat/completions"

    @pytest.mark.asyncio
    async def test_posts_payload_with_bearer(self, request_: AnalysisRequest) -> None:
        """Single POST with auth header and the rendered payload."""
        seen: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=make_reply('{"ok": true}'))

        async with AnalysisClient(client=mock_http(handler)) as client:
            await client.send(request_)

        assert len(seen) == 1
        sent = seen[0]
        assert sent.method == "POST"
        assert str(sent.url) == "https://api.openai.com/v1/chat/completions"
        assert sent.headers["Authorization"] == "Bearer sk-test"
        assert sent.headers["Content-Type"] == "application/json"
        assert json.loads(sent.content) == request_.to_payload()

    @pytest.mark.asyncio
    async def test_decodes_reply(self, request_: AnalysisRequest) -> None:
        body = make_reply("Here you go", id="chatcmpl-abc")

        async with AnalysisClient(client=mock_http(lambda r: httpx.Response(200, json=body))) as client:
            reply = await client.send(request_)

        assert reply.id == "chatcmpl-abc"
        assert reply.first_content == "Here you go"
        assert reply.choices[0].finish_reason == "stop"

    @pytest.mark.asyncio
    async def test_unknown_fields_ignored(self, request_: AnalysisRequest) -> None:
        body: Dict[str, Any] = make_reply("text", usage={"total_tokens": 12})

        async with AnalysisClient(client=mock_http(lambda r: httpx.Response(200, json=body))) as client:
            reply = await client.send(request_)

        assert reply.first_content == "text"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 401, 429, 500, 503])
    async def test_non_success_status(self, request_: AnalysisRequest, status: int) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, text='{"error": {"message": "nope"}}')

        async with AnalysisClient(client=mock_http(handler)) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.send(request_)

        assert exc_info.value.status_code == status
        assert "nope" in exc_info.value.body

    @pytest.mark.asyncio
    async def test_network_error(self, request_: AnalysisRequest) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with AnalysisClient(client=mock_http(handler)) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.send(request_)

        assert exc_info.value.status_code is None
        assert "connection refused" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_timeout(self, request_: AnalysisRequest) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with AnalysisClient(client=mock_http(handler)) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.send(request_)

        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["<html>gateway</html>", "[1, 2, 3]"])
    async def test_body_not_json_object(self, request_: AnalysisRequest, text: str) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text=text)

        async with AnalysisClient(client=mock_http(handler)) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.send(request_)

        assert exc_info.value.status_code == 200
        assert exc_info.value.body == text

    @pytest.mark.asyncio
    async def test_malformed_choices(self, request_: AnalysisRequest) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"choices": "none"})

        async with AnalysisClient(client=mock_http(handler)) as client:
            with pytest.raises(TransportError):
                await client.send(request_)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", ["", "   "])
    async def test_empty_key_rejected_before_io(
        self, encoded_photo: EncodedImage, key: str
    ) -> None:
        calls: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json=make_reply("x"))

        request = build_analysis_request(encoded_photo, api_key=key)
        async with AnalysisClient(client=mock_http(handler)) as client:
            with pytest.raises(ConfigurationError):
                await client.send(request)

        assert calls == []

    @pytest.mark.asyncio
    async def test_requires_context_manager(self, request_: AnalysisRequest) -> None:
        client = AnalysisClient()

        with pytest.raises(RuntimeError, match="Use async with"):
            await client.send(request_)

    @pytest.mark.asyncio
    async def test_injected_client_not_closed(self) -> None:
        http = mock_http(lambda r: httpx.Response(200, json=make_reply("x")))

        async with AnalysisClient(client=http):
            pass

        assert not http.is_closed
        await http.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_timeout(self) -> None:
        """Owned client waits 60 s for the model, one attempt."""
        async with AnalysisClient() as client:
            assert client._client is not None
            timeout = client._client.timeout

        assert timeout.read == AnalysisClient.DEFAULT_TIMEOUT_S == 60.0
        assert timeout.connect == 60.0

    @pytest.mark.asyncio
    async def test_owned_client_closed(self) -> None:
        client = AnalysisClient()

        async with client:
            assert client._client is not None

        assert client._client is None
