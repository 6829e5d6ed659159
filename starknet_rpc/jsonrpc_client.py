"""
Starknet JSON-RPC client.

``RpcClient.fetch_endpoint`` is the dispatcher: it builds the JSON-RPC 2.0
envelope, sends it through an injectable transport (JsonRpcTransport) and
decodes the answer.

    {"result": X}                  -> X, unchanged
    {"error": {"code", "message"}} -> NodeError("<code>: <message>")
    transport failure              -> TransportError (from the transport)

No retry loops and no caching: one call, one exchange. The only retrying
code path is ``wait_for_transaction``, which delegates to the poller.

The endpoint methods below are thin wrappers that shape params (block ids,
hex felts) and, for a few results, normalize the response.

Construction does no I/O. ``await client.initialize()`` (or ``async with``)
fetches the chain id once; ``client.chain_id`` is unavailable before that.
"""

from __future__ import annotations

import asyncio
import itertools
from typing import Any

import httpx
from loguru import logger

from starknet_rpc.block import DEFAULT_BLOCK_TAG, BlockIdentifier, block_id
from starknet_rpc.config import ClientConfig
from starknet_rpc.errors import ClientNotInitializedError, NodeError, TransportError
from starknet_rpc.poller import SleepFn, wait_for_transaction
from starknet_rpc.response_parser import (
    FeeEstimate,
    TransactionReceipt,
    parse_block,
    parse_call_contract,
    parse_fee_estimate,
    parse_transaction,
    parse_transaction_receipt,
    to_hex,
    to_hex_list,
)
from starknet_rpc.transport import HttpxTransport, JsonRpcTransport

JSONRPC_VERSION = "2.0"

# itertools.count.__next__ is atomic under the GIL; ids only need to be
# unique and increasing, never reset.
_REQUEST_IDS = itertools.count()


def _next_request_id() -> int:
    return next(_REQUEST_IDS)


def build_request(method: str, params: dict[str, Any] | None, request_id: int) -> dict[str, Any]:
    """Build a JSON-RPC 2.0 request body. ``params`` is left out when None."""
    payload: dict[str, Any] = {"method": method, "jsonrpc": JSONRPC_VERSION}
    if params is not None:
        payload["params"] = params
    payload["id"] = request_id
    return payload


def decode_response(envelope: dict[str, Any]) -> Any:
    """Return ``result`` from a response envelope, or raise NodeError.

    A present-but-null ``error`` counts as success.
    """
    error = envelope.get("error")
    if error is not None:
        raise NodeError.from_envelope(error)
    return envelope.get("result")


def _expect_object(method: str, result: Any) -> dict[str, Any]:
    """Reject a result that cannot be normalized as an object."""
    if not isinstance(result, dict):
        raise TransportError(
            f"{method} result was not an object",
            error_code="INVALID_JSON",
            details={"method": method, "type": type(result).__name__},
        )
    return result


class RpcClient:
    """Starknet JSON-RPC client.

    Args:
        config: Client settings (node URL, poll defaults, timeout).
        transport: Injectable transport. Defaults to an HttpxTransport
            built from ``config``. Pass a fake for testing.
        sleep: Sleep used between poll attempts. Defaults to asyncio.sleep.
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: JsonRpcTransport | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._config = config
        # Pooled connections when the client builds its own transport; closed by aclose().
        self._http_client: httpx.AsyncClient | None = None
        if transport is None:
            self._http_client = httpx.AsyncClient(timeout=config.timeout_s)
            transport = HttpxTransport(
                timeout=config.timeout_s,
                headers=config.headers,
                client=self._http_client,
            )
        self._transport = transport
        self._sleep = sleep
        self._chain_id: str | None = None

    @classmethod
    def from_url(cls, node_url: str, **kwargs: Any) -> RpcClient:
        """Shorthand for ``RpcClient(ClientConfig(node_url=...))``.

        Extra keyword arguments go to ClientConfig.
        """
        return cls(ClientConfig(node_url=node_url, **kwargs))

    @property
    def node_url(self) -> str:
        return self._config.node_url

    @property
    def config(self) -> ClientConfig:
        return self._config

    # -----------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------

    async def initialize(self) -> RpcClient:
        """Fetch and cache the chain id. Safe to call more than once."""
        self._chain_id = await self.get_chain_id()
        logger.debug(f"Connected to {self.node_url}, chain id {self._chain_id}")
        return self

    @property
    def initialized(self) -> bool:
        return self._chain_id is not None

    @property
    def chain_id(self) -> str:
        """Chain id fetched by ``initialize()``."""
        if self._chain_id is None:
            raise ClientNotInitializedError("chain_id")
        return self._chain_id

    async def __aenter__(self) -> RpcClient:
        return await self.initialize()

    async def aclose(self) -> None:
        """Close the pooled HTTP client, if this client created one.

        An injected transport is left alone; its owner closes it.
        """
        if self._http_client is not None and not self._http_client.is_closed:
            await self._http_client.aclose()

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # -----------------------------------------------------------------
    # Dispatcher
    # -----------------------------------------------------------------

    async def fetch_endpoint(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """Send one JSON-RPC call and return its ``result``.

        Raises:
            NodeError: The node returned an ``error`` object.
            TransportError: The exchange failed (propagated from the
                transport untouched).
        """
        request_id = _next_request_id()
        payload = build_request(method, params, request_id)
        logger.debug(f"RPC {method} id={request_id}")
        envelope = await self._transport.post_json(self.node_url, payload)
        try:
            return decode_response(envelope)
        except NodeError as e:
            logger.debug(f"RPC {method} id={request_id} failed: {e}")
            raise

    # -----------------------------------------------------------------
    # Chain / node info
    # -----------------------------------------------------------------

    async def get_chain_id(self) -> str:
        return await self.fetch_endpoint("starknet_chainId")

    async def get_block_number(self) -> int:
        return await self.fetch_endpoint("starknet_blockNumber")

    async def get_block_hash_and_number(self) -> dict[str, Any]:
        return await self.fetch_endpoint("starknet_blockHashAndNumber")

    async def get_syncing_stats(self) -> bool | dict[str, Any]:
        """Syncing status: False when in sync, otherwise progress details."""
        return await self.fetch_endpoint("starknet_syncing")

    async def get_pending_transactions(self) -> list[dict[str, Any]]:
        return await self.fetch_endpoint("starknet_pendingTransactions")

    # -----------------------------------------------------------------
    # Blocks
    # -----------------------------------------------------------------

    async def get_block(self, block: BlockIdentifier = DEFAULT_BLOCK_TAG) -> dict[str, Any]:
        """Block summary with transaction hashes."""
        return parse_block(await self.get_block_with_tx_hashes(block))

    async def get_block_with_tx_hashes(
        self, block: BlockIdentifier = DEFAULT_BLOCK_TAG
    ) -> dict[str, Any]:
        return await self.fetch_endpoint(
            "starknet_getBlockWithTxHashes", {"block_id": block_id(block)}
        )

    async def get_block_with_txs(
        self, block: BlockIdentifier = DEFAULT_BLOCK_TAG
    ) -> dict[str, Any]:
        return await self.fetch_endpoint(
            "starknet_getBlockWithTxs", {"block_id": block_id(block)}
        )

    async def get_transaction_count(self, block: BlockIdentifier) -> int:
        """Number of transactions in a block."""
        return await self.fetch_endpoint(
            "starknet_getBlockTransactionCount", {"block_id": block_id(block)}
        )

    async def get_state_update(self, block: BlockIdentifier) -> dict[str, Any]:
        return await self.fetch_endpoint(
            "starknet_getStateUpdate", {"block_id": block_id(block)}
        )

    # -----------------------------------------------------------------
    # Contracts and classes
    # -----------------------------------------------------------------

    async def get_class_hash_at(self, block: BlockIdentifier, contract_address: str) -> str:
        return await self.fetch_endpoint(
            "starknet_getClassHashAt",
            {"block_id": block_id(block), "contract_address": contract_address},
        )

    async def get_class_at(
        self, contract_address: str, block: BlockIdentifier = DEFAULT_BLOCK_TAG
    ) -> dict[str, Any]:
        return await self.fetch_endpoint(
            "starknet_getClassAt",
            {"block_id": block_id(block), "contract_address": contract_address},
        )

    async def get_class(self, class_hash: str) -> dict[str, Any]:
        return await self.fetch_endpoint("starknet_getClass", {"class_hash": class_hash})

    async def get_nonce(self, contract_address: str) -> str:
        return await self.fetch_endpoint(
            "starknet_getNonce", {"contract_address": contract_address}
        )

    async def get_storage_at(
        self,
        contract_address: str,
        key: int | str,
        block: BlockIdentifier = DEFAULT_BLOCK_TAG,
    ) -> str:
        """Read one storage slot. ``key`` is sent as 0x-prefixed hex."""
        return await self.fetch_endpoint(
            "starknet_getStorageAt",
            {
                "contract_address": contract_address,
                "key": to_hex(key),
                "block_id": block_id(block),
            },
        )

    async def call_contract(
        self,
        contract_address: str,
        entry_point_selector: int | str,
        calldata: list[int | str] | None = None,
        block: BlockIdentifier = DEFAULT_BLOCK_TAG,
    ) -> dict[str, list[str]]:
        """Run a read-only call against a contract.

        Args:
            contract_address: Target contract.
            entry_point_selector: Selector of the entry point, already
                derived from its name.
            calldata: Felts, as ints or hex strings.
            block: Block to execute against.

        Returns:
            ``{"result": [felt, ...]}``
        """
        result = await self.fetch_endpoint(
            "starknet_call",
            {
                "request": {
                    "contract_address": contract_address,
                    "entry_point_selector": to_hex(entry_point_selector),
                    "calldata": to_hex_list(calldata),
                },
                "block_id": block_id(block),
            },
        )
        return parse_call_contract(result)

    async def get_estimate_fee(
        self,
        contract_address: str,
        entry_point_selector: int | str,
        calldata: list[int | str] | None = None,
        signature: list[int | str] | None = None,
        block: BlockIdentifier = DEFAULT_BLOCK_TAG,
        max_fee: int | str = 0,
        version: int | str = 0,
    ) -> FeeEstimate:
        """Estimate the fee of an invocation. The signature is passed through as given."""
        result = await self.fetch_endpoint(
            "starknet_estimateFee",
            {
                "request": {
                    "contract_address": contract_address,
                    "entry_point_selector": to_hex(entry_point_selector),
                    "calldata": to_hex_list(calldata),
                    "signature": to_hex_list(signature),
                    "version": to_hex(version),
                    "max_fee": to_hex(max_fee),
                },
                "block_id": block_id(block),
            },
        )
        return parse_fee_estimate(result)

    # -----------------------------------------------------------------
    # Transactions
    # -----------------------------------------------------------------

    async def get_transaction_by_hash(self, tx_hash: str) -> dict[str, Any]:
        return await self.fetch_endpoint(
            "starknet_getTransactionByHash", {"transaction_hash": tx_hash}
        )

    async def get_transaction_by_block_id_and_index(
        self, block: BlockIdentifier, index: int
    ) -> dict[str, Any]:
        return await self.fetch_endpoint(
            "starknet_getTransactionByBlockIdAndIndex",
            {"block_id": block_id(block), "index": index},
        )

    async def get_transaction(self, tx_hash: str) -> dict[str, Any]:
        """Transaction by hash, with felts decoded (see parse_transaction)."""
        method = "starknet_getTransactionByHash"
        result = await self.fetch_endpoint(method, {"transaction_hash": tx_hash})
        return parse_transaction(_expect_object(method, result))

    async def get_transaction_receipt(self, tx_hash: str) -> TransactionReceipt:
        """Receipt by hash.

        Raises:
            TransportError: The result was not an object (INVALID_JSON).
                The poller treats this like any other transport failure.
        """
        method = "starknet_getTransactionReceipt"
        result = await self.fetch_endpoint(method, {"transaction_hash": tx_hash})
        return parse_transaction_receipt(_expect_object(method, result))

    async def trace_transaction(self, tx_hash: str) -> dict[str, Any]:
        return await self.fetch_endpoint(
            "starknet_traceTransaction", {"transaction_hash": tx_hash}
        )

    async def trace_block_transactions(self, block_hash: str) -> list[dict[str, Any]]:
        return await self.fetch_endpoint(
            "starknet_traceBlockTransactions", {"block_hash": block_hash}
        )

    async def get_events(self, event_filter: dict[str, Any]) -> dict[str, Any]:
        """Events matching ``event_filter``, with a continuation/page marker."""
        return await self.fetch_endpoint("starknet_getEvents", {"filter": event_filter})

    # -----------------------------------------------------------------
    # Confirmation
    # -----------------------------------------------------------------

    async def wait_for_transaction(
        self,
        tx_hash: str,
        retry_interval_ms: int | None = None,
        retries: int | None = None,
        cancel: asyncio.Event | None = None,
    ) -> TransactionReceipt:
        """Poll the receipt of ``tx_hash`` until it is terminal.

        ``retry_interval_ms`` and ``retries`` default to the client config.
        See ``starknet_rpc.poller.wait_for_transaction`` for the outcomes.
        """
        return await wait_for_transaction(
            self.get_transaction_receipt,
            tx_hash,
            retries=self._config.retries if retries is None else retries,
            retry_interval_ms=(
                self._config.retry_interval_ms
                if retry_interval_ms is None
                else retry_interval_ms
            ),
            sleep=self._sleep,
            cancel=cancel,
        )
