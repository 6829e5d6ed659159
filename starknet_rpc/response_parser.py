"""
Response normalization — pure functions, no I/O.

Turns raw node results into the shapes callers work with:

    - Receipts become a frozen TransactionReceipt with a parsed status.
    - Fee estimates become integers.
    - Call results are wrapped as ``{"result": [...]}``.
    - Blocks get a flat summary dict.

Also holds the numeric helpers used to build params (felt values go over
the wire as 0x-prefixed lowercase hex).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from starknet_rpc.status import TransactionStatus

# =========================================================================
# Numeric helpers
# =========================================================================


def to_hex(value: int | str) -> str:
    """Encode an int, decimal string or hex string as 0x-prefixed hex."""
    return hex(to_int(value))


def to_int(value: int | str | None) -> int:
    """Decode a felt given as int, hex string ("0x..") or decimal string.

    None decodes to 0, matching how the node omits zero-valued fields.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValueError(f"Not a numeric value: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"Felt values are non-negative, got {value}")
        return value
    text = value.strip().lower()
    if text.startswith("0x"):
        return int(text, 16)
    return int(text, 10)


def to_hex_list(values: list[int | str] | None) -> list[str]:
    return [to_hex(v) for v in values or []]


# =========================================================================
# Result types
# =========================================================================


@dataclass(frozen=True)
class TransactionReceipt:
    """Normalized transaction receipt.

    Attributes:
        transaction_hash: Hash of the transaction (wire field ``txn_hash``
            on older nodes, ``transaction_hash`` on newer ones).
        status: Parsed status; UNKNOWN when missing or unrecognized.
        actual_fee: Fee charged, as an int. None if the node omitted it.
        status_data: Free-form detail the node attaches (rejection reason).
        block_hash: Hash of the including block, if any.
        block_number: Height of the including block, if any.
        messages_sent: L2 -> L1 messages.
        events: Emitted events.
        raw: The untouched result dict from the node.
    """

    transaction_hash: str | None
    status: TransactionStatus
    actual_fee: int | None = None
    status_data: str | None = None
    block_hash: str | None = None
    block_number: int | None = None
    messages_sent: list[Any] = field(default_factory=list)
    events: list[Any] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FeeEstimate:
    """Fee estimate with felts decoded to ints."""

    overall_fee: int
    gas_consumed: int
    gas_price: int


# =========================================================================
# Parsers
# =========================================================================


def parse_transaction_receipt(result: dict[str, Any]) -> TransactionReceipt:
    """Parse a ``starknet_getTransactionReceipt`` result."""
    actual_fee = result.get("actual_fee")
    return TransactionReceipt(
        transaction_hash=result.get("transaction_hash") or result.get("txn_hash"),
        status=TransactionStatus.parse(result.get("status")),
        actual_fee=to_int(actual_fee) if actual_fee is not None else None,
        status_data=result.get("status_data"),
        block_hash=result.get("block_hash"),
        block_number=result.get("block_number"),
        messages_sent=list(result.get("messages_sent") or []),
        events=list(result.get("events") or []),
        raw=dict(result),
    )


def parse_transaction(result: dict[str, Any]) -> dict[str, Any]:
    """Parse a ``starknet_getTransactionByHash`` result.

    ``max_fee`` and ``nonce`` are decoded to ints; calldata and signature
    are kept as hex felts. Declare/deploy transactions have no calldata
    or sender, and those keys come back as empty/None.
    """
    max_fee = result.get("max_fee")
    nonce = result.get("nonce")
    return {
        "transaction_hash": result.get("transaction_hash") or result.get("txn_hash"),
        "type": result.get("type"),
        "version": result.get("version"),
        "contract_address": result.get("contract_address"),
        "sender_address": result.get("sender_address"),
        "entry_point_selector": result.get("entry_point_selector"),
        "calldata": list(result.get("calldata") or []),
        "signature": list(result.get("signature") or []),
        "max_fee": to_int(max_fee) if max_fee is not None else None,
        "nonce": to_int(nonce) if nonce is not None else None,
    }


def parse_fee_estimate(result: dict[str, Any]) -> FeeEstimate:
    """Parse a ``starknet_estimateFee`` result."""
    return FeeEstimate(
        overall_fee=to_int(result.get("overall_fee")),
        gas_consumed=to_int(result.get("gas_consumed")),
        gas_price=to_int(result.get("gas_price")),
    )


def parse_call_contract(result: list[str]) -> dict[str, list[str]]:
    """Wrap a ``starknet_call`` result list."""
    return {"result": list(result)}


def parse_block(result: dict[str, Any]) -> dict[str, Any]:
    """Summarize a ``starknet_getBlockWithTxHashes`` result."""
    return {
        "timestamp": result.get("timestamp"),
        "block_hash": result.get("block_hash"),
        "block_number": result.get("block_number"),
        "new_root": result.get("new_root"),
        "parent_hash": result.get("parent_hash"),
        "status": result.get("status"),
        "transactions": list(result.get("transactions") or []),
    }
