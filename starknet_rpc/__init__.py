"""
Starknet JSON-RPC client.

Public API:

    Client:
        - ``RpcClient`` — dispatcher, endpoint methods, ``wait_for_transaction``.
        - ``ClientConfig`` — node URL, poll defaults, timeout.

    Transport:
        - ``JsonRpcTransport`` — injectable transport protocol.
        - ``HttpxTransport`` — default httpx-based transport.

    Pure layer (no I/O):
        - Block references: ``BlockTag``, ``BlockHeight``, ``BlockHash``,
          ``resolve_block_id``, ``coerce_block_reference``.
        - ``TransactionStatus`` and its success/failure sets.
        - Response parsing: ``TransactionReceipt``, ``FeeEstimate``,
          ``parse_transaction_receipt``, ``to_hex``, ``to_int``.

    Polling:
        - ``wait_for_transaction`` — transport-independent poll loop.

    Errors:
        - ``StarknetRpcError`` and its subclasses.
"""

from starknet_rpc.block import (
    BlockHash,
    BlockHeight,
    BlockIdentifier,
    BlockReference,
    BlockTag,
    coerce_block_reference,
    resolve_block_id,
)
from starknet_rpc.config import ClientConfig
from starknet_rpc.errors import (
    ClientNotInitializedError,
    NodeError,
    RetriesExhaustedError,
    StarknetRpcError,
    TransactionRejectedError,
    TransactionWaitError,
    TransportError,
    WaitCancelledError,
)
from starknet_rpc.jsonrpc_client import RpcClient
from starknet_rpc.poller import poll_attempts, wait_for_transaction
from starknet_rpc.response_parser import (
    FeeEstimate,
    TransactionReceipt,
    parse_fee_estimate,
    parse_transaction,
    parse_transaction_receipt,
    to_hex,
    to_int,
)
from starknet_rpc.status import FAILURE_STATES, SUCCESS_STATES, TransactionStatus
from starknet_rpc.transport import HttpxTransport, JsonRpcTransport

__all__ = [
    "BlockHash",
    "BlockHeight",
    "BlockIdentifier",
    "BlockReference",
    "BlockTag",
    "ClientConfig",
    "ClientNotInitializedError",
    "FAILURE_STATES",
    "FeeEstimate",
    "HttpxTransport",
    "JsonRpcTransport",
    "NodeError",
    "RetriesExhaustedError",
    "RpcClient",
    "SUCCESS_STATES",
    "StarknetRpcError",
    "TransactionReceipt",
    "TransactionRejectedError",
    "TransactionStatus",
    "TransactionWaitError",
    "TransportError",
    "WaitCancelledError",
    "coerce_block_reference",
    "parse_fee_estimate",
    "parse_transaction",
    "parse_transaction_receipt",
    "poll_attempts",
    "resolve_block_id",
    "to_hex",
    "to_int",
    "wait_for_transaction",
]

__version__ = "0.1.0"
