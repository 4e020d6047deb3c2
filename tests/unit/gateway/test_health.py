# pyright: reportAny=false
"""Tests for clawgate.gateway._health module."""

from collections.abc import Callable

import httpx
import orjson
import pytest

from clawgate.config import GatewayConfig
from clawgate.exceptions import GatewayAuthError, HealthProbeError
from clawgate.gateway import HealthProbeClient

Handler = Callable[[httpx.Request], httpx.Response]


def _client(handler: Handler, config: GatewayConfig | None = None) -> HealthProbeClient:
    transport = httpx.MockTransport(handler)
    return HealthProbeClient(
        config or GatewayConfig(port=18789),
        client=httpx.AsyncClient(transport=transport),
    )


def _json(status: int, body: object) -> Handler:
    def handler(request: httpx.Request) -> httpx.Response:  # noqa: ARG001
        return httpx.Response(status, content=orjson.dumps(body))

    return handler


class TestRequest:
    @pytest.mark.anyio
    async def test_posts_health_rpc(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"ok": True, "payload": {"channels": {}}})

        client = _client(handler, GatewayConfig(port=8080, token="s3cret"))

        payload = await client.probe(1.0)

        assert payload == {"channels": {}}
        request = seen[0]
        assert str(request.url) == "http://127.0.0.1:8080/rpc"
        assert request.method == "POST"
        assert request.headers["Authorization"] == "Bearer s3cret"
        body = orjson.loads(request.content)
        assert body["method"] == "health"
        assert body["params"] == {}

    @pytest.mark.anyio
    async def test_password_header_when_no_token(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        client = _client(handler, GatewayConfig(password="hunter2"))

        _ = await client.probe(1.0)

        assert seen[0].headers["X-OpenClaw-Password"] == "hunter2"
        assert "Authorization" not in seen[0].headers

    @pytest.mark.anyio
    async def test_request_ids_increase(self) -> None:
        ids: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            ids.append(orjson.loads(request.content)["id"])
            return httpx.Response(200, json={"ok": True})

        client = _client(handler)
        _ = await client.probe(1.0)
        _ = await client.probe(1.0)

        assert ids == ["1", "2"]

    @pytest.mark.anyio
    async def test_body_without_payload_is_returned(self) -> None:
        client = _client(_json(200, {"channels": {"whatsapp": {"linked": True}}}))

        assert await client.probe(1.0) == {"channels": {"whatsapp": {"linked": True}}}


class TestFailures:
    @pytest.mark.anyio
    async def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(HealthProbeError, match=r"timed out after 1\.5s"):
            _ = await _client(handler).probe(1.5)

    @pytest.mark.anyio
    async def test_connection_refused(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(HealthProbeError, match="connection refused") as exc_info:
            _ = await _client(handler).probe(1.0)

        assert exc_info.value.domain == "transport"

    @pytest.mark.anyio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_http_auth_rejection(self, status: int) -> None:
        with pytest.raises(GatewayAuthError, match=f"HTTP {status}"):
            _ = await _client(_json(status, {})).probe(1.0)

    @pytest.mark.anyio
    async def test_rpc_auth_rejection(self) -> None:
        body = {"ok": False, "error": {"code": 1008, "message": "token mismatch"}}

        with pytest.raises(GatewayAuthError) as exc_info:
            _ = await _client(_json(200, body)).probe(1.0)

        assert exc_info.value.code == 1008

    @pytest.mark.anyio
    async def test_rpc_error(self) -> None:
        body = {"ok": False, "error": {"code": "PROTOCOL", "message": "protocol mismatch"}}

        with pytest.raises(HealthProbeError, match="protocol mismatch") as exc_info:
            _ = await _client(_json(200, body)).probe(1.0)

        assert not isinstance(exc_info.value, GatewayAuthError)
        assert exc_info.value.domain == "rpc"

    @pytest.mark.anyio
    async def test_ok_false_without_error(self) -> None:
        with pytest.raises(HealthProbeError, match="gateway returned an error"):
            _ = await _client(_json(200, {"ok": False})).probe(1.0)

    @pytest.mark.anyio
    async def test_non_json_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:  # noqa: ARG001
            return httpx.Response(200, text="<html>hello</html>")

        with pytest.raises(HealthProbeError, match="invalid response from gateway"):
            _ = await _client(handler).probe(1.0)

    @pytest.mark.anyio
    async def test_non_object_body(self) -> None:
        with pytest.raises(HealthProbeError, match="invalid response"):
            _ = await _client(_json(200, [1, 2, 3])).probe(1.0)

    @pytest.mark.anyio
    async def test_non_object_payload(self) -> None:
        with pytest.raises(HealthProbeError, match="payload is not an object"):
            _ = await _client(_json(200, {"ok": True, "payload": "fine"})).probe(1.0)

    @pytest.mark.anyio
    async def test_unexpected_status(self) -> None:
        with pytest.raises(HealthProbeError, match=r"unexpected response from gateway \(HTTP 404\)"):
            _ = await _client(_json(404, {"detail": "Not Found"})).probe(1.0)


class TestClose:
    @pytest.mark.anyio
    async def test_shared_client_is_not_closed(self) -> None:
        shared = httpx.AsyncClient(transport=httpx.MockTransport(_json(200, {})))
        client = HealthProbeClient(GatewayConfig(), client=shared)

        await client.aclose()

        assert not shared.is_closed
        await shared.aclose()

    @pytest.mark.anyio
    async def test_owned_client_is_closed(self) -> None:
        client = HealthProbeClient(GatewayConfig())

        await client.aclose()

        assert client._client.is_closed  # pyright: ignore[reportPrivateUsage]
