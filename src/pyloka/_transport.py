"""HTTP transport for the LocaClean REST backend."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pyloka._constants import USER_AGENT
from pyloka._redact import redact_for_log
from pyloka.config import LokaConfig
from pyloka.exceptions import LokaAuthenticationError, LokaTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(self, endpoint: str) -> dict[str, Any]:
        ...

    async def post_json(self, endpoint: str, body: Mapping[str, Any]) -> dict[str, Any]:
        ...


class HttpTransport:
    """JSON-over-HTTP transport with bearer authentication."""

    def __init__(
        self,
        config: LokaConfig,
        http_session: aiohttp.ClientSession,
    ) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }
        if self._config.auth_token:
            headers["authorization"] = f"Bearer {self._config.auth_token}"
        return headers

    async def get_json(self, endpoint: str) -> dict[str, Any]:
        return await self._request("GET", endpoint)

    async def post_json(self, endpoint: str, body: Mapping[str, Any]) -> dict[str, Any]:
        return await self._request("POST", endpoint, body)

    async def _request(
        self,
        method: str,
        endpoint: str,
        body: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = f"{self._config.base_url}{endpoint}"
        headers = self._headers()
        data: str | None = None
        if body is not None:
            headers["content-type"] = "application/json; charset=UTF-8"
            data = json.dumps(body, separators=(",", ":"))

        _logger.debug("%s %s", method, url)
        if self._config.api_trace_enabled and body is not None:
            _logger.debug("%s %s body=%s", method, endpoint, redact_for_log(body))

        try:
            async with self._http.request(method, url, data=data, headers=headers, timeout=self._timeout) as resp:
                text = await resp.text()
                status = resp.status
        except aiohttp.ClientError as exc:
            raise LokaTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc
        except TimeoutError as exc:
            raise LokaTransportError(
                f"Request to {endpoint} timed out after {self._config.request_timeout}s",
                endpoint=endpoint,
            ) from exc

        if status in (401, 403):
            raise LokaAuthenticationError(
                f"HTTP {status} from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            )
        if not 200 <= status < 300:
            raise LokaTransportError(
                f"HTTP {status} from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            )

        try:
            result = json.loads(text) if text.strip() else {}
        except json.JSONDecodeError as exc:
            raise LokaTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            ) from exc

        if not isinstance(result, dict):
            raise LokaTransportError(
                f"Expected a JSON object from {endpoint}, got {type(result).__name__}",
                status_code=status,
                endpoint=endpoint,
            )

        if self._config.api_trace_enabled:
            _logger.debug("%s %s -> %s %s", method, endpoint, status, redact_for_log(result))
        return result
