"""
Client configuration.

Everything the client needs besides the transport:

    node_url:           JSON-RPC endpoint (required).
    retries:            Default retry budget for wait_for_transaction.
    retry_interval_ms:  Default sleep between poll attempts.
    timeout_s:          Per-request HTTP timeout.
    headers:            Extra HTTP headers sent with every request.

``ClientConfig.from_env()`` reads the same values from STARKNET_RPC_*
environment variables. Retry budget and interval can still be overridden
per wait call.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Mapping

DEFAULT_RETRIES = 200
DEFAULT_RETRY_INTERVAL_MS = 8000
DEFAULT_TIMEOUT_S = 30.0

ENV_NODE_URL = "STARKNET_RPC_URL"
ENV_RETRIES = "STARKNET_RPC_RETRIES"
ENV_RETRY_INTERVAL_MS = "STARKNET_RPC_RETRY_INTERVAL_MS"
ENV_TIMEOUT_S = "STARKNET_RPC_TIMEOUT_S"


@dataclass(frozen=True)
class ClientConfig:
    """Validated client settings. Raises ValueError on bad values."""

    node_url: str
    retries: int = DEFAULT_RETRIES
    retry_interval_ms: int = DEFAULT_RETRY_INTERVAL_MS
    timeout_s: float = DEFAULT_TIMEOUT_S
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.node_url:
            raise ValueError("node_url is required")
        if self.retries < 0:
            raise ValueError(f"retries must be >= 0, got {self.retries}")
        if self.retry_interval_ms < 0:
            raise ValueError(
                f"retry_interval_ms must be >= 0, got {self.retry_interval_ms}"
            )
        if self.timeout_s <= 0:
            raise ValueError(f"timeout_s must be > 0, got {self.timeout_s}")
        object.__setattr__(self, "node_url", self.node_url.rstrip("/"))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ClientConfig:
        """Load configuration from environment variables.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.

        Raises:
            ValueError: If STARKNET_RPC_URL is unset or a numeric
                variable does not parse.
        """
        env = os.environ if environ is None else environ
        node_url = env.get(ENV_NODE_URL, "")
        if not node_url:
            raise ValueError(f"{ENV_NODE_URL} is not set")
        return cls(
            node_url=node_url,
            retries=_env_number(env, ENV_RETRIES, int, DEFAULT_RETRIES),
            retry_interval_ms=_env_number(
                env, ENV_RETRY_INTERVAL_MS, int, DEFAULT_RETRY_INTERVAL_MS
            ),
            timeout_s=_env_number(env, ENV_TIMEOUT_S, float, DEFAULT_TIMEOUT_S),
        )


def _env_number(env: Mapping[str, str], name: str, kind: type, default: Any) -> Any:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return kind(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a {kind.__name__}, got {raw!r}") from e
