# pyright: reportAny=false
"""Health probe RPC client.

Issues the gateway's ``health`` RPC over HTTP with a bounded timeout and
maps transport, HTTP and RPC failures onto ``HealthProbeError``.
"""

from __future__ import annotations

import itertools
from typing import TYPE_CHECKING, Any, final

import httpx
import orjson

from clawgate.exceptions import GatewayAuthError, HealthProbeError
from clawgate.utils import component_logger

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from clawgate.config import GatewayConfig

AUTH_REJECTED_CODE = 1008
PASSWORD_HEADER = "X-OpenClaw-Password"  # noqa: S105

_AUTH_HTTP_STATUSES = frozenset({401, 403})


def _is_auth_error(code: object, message: str) -> bool:
    if code == AUTH_REJECTED_CODE:
        return True
    if isinstance(code, str) and code.lower() == "unauthorized":
        return True
    return "unauthorized" in message.lower()


def _error_details(error: object) -> tuple[int | str | None, str]:
    if isinstance(error, dict):
        raw_code = error.get("code")
        code = raw_code if isinstance(raw_code, (int, str)) else None
        message = error.get("message")
        return code, str(message) if message else "gateway returned an error"
    if error is None:
        return None, "gateway returned an error"
    return None, str(error)


@final
class HealthProbeClient:
    """Issues ``health`` RPCs to a gateway.

    Callers are expected not to overlap probe loops; the client itself does
    not serialize requests.
    """

    __slots__ = ("_client", "_config", "_ids", "_logger", "_owns_client")

    def __init__(
        self,
        config: GatewayConfig,
        *,
        client: httpx.AsyncClient | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the probe client.

        Args:
            config: Gateway connection settings.
            client: HTTP client to reuse. A private client is created and
                owned by this instance when None.
            logger: Optional parent logger.
        """
        self._config: GatewayConfig = config
        self._owns_client: bool = client is None
        self._client: httpx.AsyncClient = client or httpx.AsyncClient()
        self._ids: itertools.count[int] = itertools.count(1)
        self._logger: FilteringBoundLogger = component_logger("gateway.health", logger)

    @property
    def url(self) -> str:
        """Return the RPC endpoint URL."""
        return f"{self._config.base_url}{self._config.rpc_path}"

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._config.token:
            headers["Authorization"] = f"Bearer {self._config.token}"
        elif self._config.password:
            headers[PASSWORD_HEADER] = self._config.password
        return headers

    async def probe(self, timeout: float) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        """Run one ``health`` RPC.

        Args:
            timeout: Overall request timeout in seconds.

        Returns:
            The RPC ``payload`` (or the whole body when it has none).

        Raises:
            GatewayAuthError: If the gateway rejects the credentials.
            HealthProbeError: On transport, HTTP, decode or RPC failure.
        """
        request_id = str(next(self._ids))
        body = {"id": request_id, "method": "health", "params": {}}

        try:
            response = await self._client.post(
                self.url,
                content=orjson.dumps(body),
                headers=self._headers(),
                timeout=timeout,
            )
        except httpx.TimeoutException as e:
            msg = f"health probe timed out after {timeout:.1f}s"
            raise HealthProbeError(msg, domain="transport") from e
        except httpx.HTTPError as e:
            msg = f"health probe failed: {e}"
            raise HealthProbeError(msg, domain="transport") from e

        if response.status_code in _AUTH_HTTP_STATUSES:
            msg = f"unauthorized (HTTP {response.status_code})"
            raise GatewayAuthError(msg, code=response.status_code, domain="http")

        try:
            data = orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            msg = f"invalid response from gateway (HTTP {response.status_code})"
            raise HealthProbeError(msg, code=response.status_code, domain="decode") from e

        if not isinstance(data, dict):
            msg = "invalid response from gateway: expected a JSON object"
            raise HealthProbeError(msg, domain="decode")

        if data.get("error") is not None or data.get("ok") is False:
            code, message = _error_details(data.get("error"))
            if _is_auth_error(code, message):
                raise GatewayAuthError(message, code=code, domain="rpc")
            raise HealthProbeError(message, code=code, domain="rpc")

        if response.status_code >= 400:  # noqa: PLR2004
            msg = f"unexpected response from gateway (HTTP {response.status_code})"
            raise HealthProbeError(msg, code=response.status_code, domain="http")

        payload = data.get("payload", data)
        if not isinstance(payload, dict):
            msg = "invalid response from gateway: payload is not an object"
            raise HealthProbeError(msg, domain="decode")

        self._logger.debug("health probe ok", url=self.url)
        return payload

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance owns it."""
        if self._owns_client:
            await self._client.aclose()
