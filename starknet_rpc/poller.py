"""
Transaction confirmation poller.

Waits for a submitted transaction to reach a terminal status by fetching
its receipt at a fixed interval.

State machine (one session per call, nothing shared between sessions):

    WAITING --success status--> SUCCESS   (one extra sleep, return receipt)
    WAITING --failure status--> FAILURE   (TransactionRejectedError, at once)
    WAITING --budget spent----> EXHAUSTED (RetriesExhaustedError)
    WAITING --cancel event----> CANCELLED (WaitCancelledError)

Attempt accounting:
    A budget of ``retries`` allows ``retries + 1`` receipt fetches. Every
    fetch that ends non-terminal, or fails with TransportError/NodeError,
    spends one retry. A failure-terminal status never spends budget.
    ``retries=0`` still fetches once.

Timing:
    Each attempt sleeps ``retry_interval_ms`` before fetching. There is
    no wall-clock deadline besides ``(retries + 1) * retry_interval_ms``.

The sleep function is injectable so tests can record suspensions instead
of waiting on them.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterator

from loguru import logger

from starknet_rpc.config import DEFAULT_RETRIES, DEFAULT_RETRY_INTERVAL_MS
from starknet_rpc.errors import (
    NodeError,
    RetriesExhaustedError,
    StarknetRpcError,
    TransactionRejectedError,
    TransportError,
    WaitCancelledError,
)
from starknet_rpc.response_parser import TransactionReceipt
from starknet_rpc.status import TransactionStatus

ReceiptFetcher = Callable[[str], Awaitable[TransactionReceipt]]
SleepFn = Callable[[float], Awaitable[object]]


def poll_attempts(retries: int) -> Iterator[tuple[int, int]]:
    """Yield ``(attempt, remaining_retries)`` for one poll session.

    Attempts are numbered from 1. ``remaining_retries`` is how many more
    attempts may follow this one: ``retries`` on the first attempt, 0 on
    the last. A zero budget yields the single pair ``(1, 0)``.
    """
    if retries < 0:
        raise ValueError(f"retries must be >= 0, got {retries}")
    for attempt in range(1, retries + 2):
        yield attempt, retries + 1 - attempt


def _check_cancel(cancel: asyncio.Event | None, tx_hash: str, attempts: int) -> None:
    if cancel is not None and cancel.is_set():
        logger.info(f"Wait for {tx_hash} cancelled after {attempts} attempts")
        raise WaitCancelledError(tx_hash, attempts)


async def wait_for_transaction(
    fetch_receipt: ReceiptFetcher,
    tx_hash: str,
    *,
    retries: int = DEFAULT_RETRIES,
    retry_interval_ms: int = DEFAULT_RETRY_INTERVAL_MS,
    sleep: SleepFn = asyncio.sleep,
    cancel: asyncio.Event | None = None,
) -> TransactionReceipt:
    """Poll until ``tx_hash`` reaches a terminal status.

    Args:
        fetch_receipt: Coroutine function returning the parsed receipt.
            May raise TransportError or NodeError; both are transient.
        tx_hash: Transaction to wait for.
        retries: Retry budget (>= 0).
        retry_interval_ms: Sleep before every fetch, and once more after
            success.
        sleep: Sleep function taking seconds. Defaults to asyncio.sleep.
        cancel: Optional event. Checked before and after every sleep;
            once set no further fetch is issued.

    Returns:
        The receipt with a success-terminal status (ACCEPTED_ON_L1,
        ACCEPTED_ON_L2 or PENDING).

    Raises:
        TransactionRejectedError: Status REJECTED or NOT_RECEIVED.
        RetriesExhaustedError: Budget spent while still non-terminal.
        WaitCancelledError: ``cancel`` was set first.
        ValueError: Negative ``retries`` or ``retry_interval_ms``.
    """
    if retry_interval_ms < 0:
        raise ValueError(f"retry_interval_ms must be >= 0, got {retry_interval_ms}")
    interval_s = retry_interval_ms / 1000

    last_status: TransactionStatus | None = None
    last_error: StarknetRpcError | None = None

    for attempt, remaining in poll_attempts(retries):
        _check_cancel(cancel, tx_hash, attempt - 1)
        await sleep(interval_s)
        _check_cancel(cancel, tx_hash, attempt - 1)

        try:
            receipt = await fetch_receipt(tx_hash)
        except (TransportError, NodeError) as e:
            last_status, last_error = None, e
            logger.warning(
                f"Receipt fetch for {tx_hash} failed on attempt {attempt} "
                f"({remaining} retries left): {e}"
            )
            continue

        status = receipt.status
        if status.is_success:
            logger.info(f"Transaction {tx_hash} {status} after {attempt} attempts")
            await sleep(interval_s)
            return receipt
        if status.is_failure:
            logger.info(f"Transaction {tx_hash} {status} after {attempt} attempts")
            raise TransactionRejectedError(tx_hash, receipt)

        last_status, last_error = status, None
        logger.debug(
            f"Transaction {tx_hash} still {status} on attempt {attempt} "
            f"({remaining} retries left)"
        )

    attempts = retries + 1
    logger.info(f"Gave up waiting for {tx_hash} after {attempts} attempts")
    raise RetriesExhaustedError(tx_hash, attempts, last_status, last_error)
