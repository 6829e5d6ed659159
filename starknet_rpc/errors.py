"""
Error taxonomy for the Starknet RPC client.

Two failure families never mix:

    TransportError:
        The exchange with the node could not complete (DNS failure,
        connection refused, timeout, HTTP error status, body that is not
        a JSON object). The node may never have seen the request.

    NodeError:
        The node understood the request and answered with a JSON-RPC
        ``error`` object. Rendered as ``"<code>: <message>"``.

The confirmation poller adds its own outcomes on top, all subclasses of
TransactionWaitError so callers can catch "the wait did not succeed" in
one place:

    - TransactionRejectedError — terminal failure status (REJECTED,
      NOT_RECEIVED). Carries the receipt.
    - RetriesExhaustedError — retry budget used up while non-terminal.
    - WaitCancelledError — caller aborted the wait.

Nothing here retries. Retry policy lives in the poller only.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from starknet_rpc.response_parser import TransactionReceipt
    from starknet_rpc.status import TransactionStatus


class StarknetRpcError(Exception):
    """Base class for every error raised by this package.

    Args:
        message: Human-readable description.
        error_code: Machine-readable category (e.g. "TIMEOUT").
        details: Structured diagnostics. Never contains secrets.
    """

    def __init__(
        self,
        message: str,
        *,
        error_code: str = "UNKNOWN",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.details: dict[str, Any] = details or {}


# =========================================================================
# Dispatcher errors
# =========================================================================


class TransportError(StarknetRpcError):
    """The request never produced a usable JSON-RPC envelope.

    error_code is one of TIMEOUT, CONNECTION_FAILED, HTTP_ERROR,
    INVALID_JSON.
    """


class NodeError(StarknetRpcError):
    """The node answered with a JSON-RPC error object."""

    def __init__(self, code: int | None, message: str, data: Any = None) -> None:
        super().__init__(
            f"{code}: {message}",
            error_code="NODE_ERROR",
            details={"code": code, "message": message},
        )
        self.code = code
        self.node_message = message
        self.data = data

    @classmethod
    def from_envelope(cls, error: Any) -> NodeError:
        """Build from the raw ``error`` member of a response envelope."""
        if isinstance(error, dict):
            return cls(error.get("code"), str(error.get("message", "")), error.get("data"))
        return cls(None, str(error))


class ClientNotInitializedError(StarknetRpcError):
    """A value that needs ``initialize()`` was read before it ran."""

    def __init__(self, attribute: str) -> None:
        super().__init__(
            f"{attribute} is not available until the client is initialized",
            error_code="NOT_INITIALIZED",
            details={"attribute": attribute},
        )


# =========================================================================
# Poller outcomes
# =========================================================================


class TransactionWaitError(StarknetRpcError):
    """Base class for every unsuccessful wait_for_transaction outcome."""

    def __init__(
        self,
        message: str,
        *,
        tx_hash: str,
        error_code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            error_code=error_code,
            details={"tx_hash": tx_hash, **(details or {})},
        )
        self.tx_hash = tx_hash


class TransactionRejectedError(TransactionWaitError):
    """The transaction reached a failure-terminal status.

    The message is the status name, the full receipt is attached.
    """

    def __init__(self, tx_hash: str, receipt: TransactionReceipt) -> None:
        super().__init__(
            str(receipt.status),
            tx_hash=tx_hash,
            error_code="REJECTED",
            details={"status": str(receipt.status), "status_data": receipt.status_data},
        )
        self.status: TransactionStatus = receipt.status
        self.receipt = receipt


class RetriesExhaustedError(TransactionWaitError):
    """The retry budget ran out while the transaction was non-terminal."""

    def __init__(
        self,
        tx_hash: str,
        attempts: int,
        last_status: TransactionStatus | None = None,
        last_error: StarknetRpcError | None = None,
    ) -> None:
        super().__init__(
            f"wait_for_transaction timed out with retries after {attempts} attempts",
            tx_hash=tx_hash,
            error_code="RETRIES_EXHAUSTED",
            details={
                "attempts": attempts,
                "last_status": str(last_status) if last_status is not None else None,
                "last_error": str(last_error) if last_error is not None else None,
            },
        )
        self.attempts = attempts
        self.last_status = last_status
        self.last_error = last_error


class WaitCancelledError(TransactionWaitError):
    """The caller set the cancel event before the wait resolved."""

    def __init__(self, tx_hash: str, attempts: int) -> None:
        super().__init__(
            f"wait_for_transaction cancelled after {attempts} attempts",
            tx_hash=tx_hash,
            error_code="CANCELLED",
            details={"attempts": attempts},
        )
        self.attempts = attempts
