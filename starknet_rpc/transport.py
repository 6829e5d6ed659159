"""
Transport protocol for Starknet JSON-RPC calls.

Defines the seam where concrete HTTP implementations plug in. The client
depends on this protocol, not on httpx directly, so tests can hand it a
fake that returns canned envelopes.

Contract for implementations:
    - One POST per ``post_json`` call. No retries.
    - Return the decoded JSON body, which must be an object.
    - Signal every failure to produce such a body with TransportError.
      Never inspect the envelope: a JSON-RPC ``error`` member is the
      client's business, not the transport's.

Concrete implementations:
    - HttpxTransport (default, uses httpx.AsyncClient)
    - Fake transports (tests)
"""

from __future__ import annotations

import json
from typing import Any, Protocol, runtime_checkable

import httpx

from starknet_rpc.config import DEFAULT_TIMEOUT_S
from starknet_rpc.errors import TransportError


@runtime_checkable
class JsonRpcTransport(Protocol):
    """Async transport for JSON-RPC POST requests."""

    async def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Send a JSON-RPC request and return the parsed response.

        Args:
            url: The JSON-RPC endpoint URL.
            payload: The JSON-RPC request body (method, params, id).

        Returns:
            Parsed JSON response as a dict.

        Raises:
            TransportError: On transport-level failures (connection
                refused, timeout, HTTP error status, malformed body).
        """
        ...


class HttpxTransport:
    """Default transport using httpx.AsyncClient.

    Args:
        timeout: Request timeout in seconds.
        headers: Extra headers merged over the JSON content type.
        client: Shared AsyncClient to reuse across calls (connection
            pooling). The caller owns it and closes it. When omitted,
            each exchange opens and closes its own client.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_S,
        headers: dict[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._timeout = timeout
        self._headers = headers or {}
        self._client = client

    async def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Send JSON-RPC request via httpx."""
        headers = {"Content-Type": "application/json", **self._headers}
        try:
            if self._client is not None:
                response = await self._client.post(
                    url, json=payload, headers=headers, timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(url, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Request timed out after {self._timeout}s",
                error_code="TIMEOUT",
                details={"url": url, "timeout_s": self._timeout},
            ) from e
        except httpx.ConnectError as e:
            raise TransportError(
                f"Failed to connect to {url}",
                error_code="CONNECTION_FAILED",
                details={"url": url},
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(
                f"HTTP error: {e}",
                error_code="HTTP_ERROR",
                details={"url": url, "error": str(e)},
            ) from e

        if response.status_code >= 400:
            raise TransportError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                error_code="HTTP_ERROR",
                details={
                    "url": url,
                    "status_code": response.status_code,
                    "reason": response.reason_phrase,
                },
            )

        try:
            result = response.json()
        except json.JSONDecodeError as e:
            raise TransportError(
                "Response was not valid JSON",
                error_code="INVALID_JSON",
                details={
                    "url": url,
                    "status_code": response.status_code,
                    "body_preview": response.text[:200] if response.text else "",
                },
            ) from e

        if not isinstance(result, dict):
            raise TransportError(
                "Response JSON was not an object",
                error_code="INVALID_JSON",
                details={"url": url, "type": type(result).__name__},
            )

        return result
