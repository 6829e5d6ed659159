"""
Tests for the transaction confirmation poller — scripted receipts, no network.

A FakeFetcher replays a script of receipts/exceptions; a RecordingSleep
records every suspension instead of waiting.

Test plan:
- Success-terminal first try: one fetch, two sleeps, budget untouched
- PENDING counts as success
- Non-terminal forever: retries + 1 fetches, then RetriesExhaustedError
- retries=0: exactly one fetch
- Failure-terminal (REJECTED, NOT_RECEIVED): raised at once with receipt
- Transport/node errors are transient and consume budget
- Unexpected exceptions propagate
- Cancellation: before start, between attempts; distinct from exhaustion
- poll_attempts: numbering and remaining budget
"""

import asyncio

import pytest

from starknet_rpc.errors import (
    NodeError,
    RetriesExhaustedError,
    TransactionRejectedError,
    TransactionWaitError,
    TransportError,
    WaitCancelledError,
)
from starknet_rpc.poller import poll_attempts, wait_for_transaction
from starknet_rpc.response_parser import TransactionReceipt
from starknet_rpc.status import TransactionStatus

SAMPLE_TX_HASH = "0x" + "cd" * 32

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


def _receipt(status: TransactionStatus, **extra: object) -> TransactionReceipt:
    return TransactionReceipt(
        transaction_hash=SAMPLE_TX_HASH,
        status=status,
        raw={"txn_hash": SAMPLE_TX_HASH, "status": str(status), **extra},
    )


class FakeFetcher:
    """Replays a script. The last entry repeats once the script runs out."""

    def __init__(self, *script: TransactionReceipt | Exception) -> None:
        self._script = list(script)
        self.calls: list[str] = []

    async def __call__(self, tx_hash: str) -> TransactionReceipt:
        self.calls.append(tx_hash)
        index = min(len(self.calls), len(self._script)) - 1
        item = self._script[index]
        if isinstance(item, Exception):
            raise item
        return item


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


# ---------------------------------------------------------------------------
# Success
# ---------------------------------------------------------------------------


class TestSuccess:
    @pytest.mark.asyncio
    async def test_accepted_on_l1_first_attempt(self) -> None:
        receipt = _receipt(TransactionStatus.ACCEPTED_ON_L1)
        fetch = FakeFetcher(receipt)
        sleep = RecordingSleep()

        result = await wait_for_transaction(
            fetch, SAMPLE_TX_HASH, retries=3, retry_interval_ms=8000, sleep=sleep
        )

        assert result is receipt
        assert fetch.calls == [SAMPLE_TX_HASH]
        # One sleep before the fetch, one for propagation after success
        assert sleep.calls == [8.0, 8.0]

    @pytest.mark.asyncio
    async def test_pending_is_success(self) -> None:
        fetch = FakeFetcher(_receipt(TransactionStatus.PENDING))
        result = await wait_for_transaction(
            fetch, SAMPLE_TX_HASH, retries=0, retry_interval_ms=0, sleep=RecordingSleep()
        )
        assert result.status is TransactionStatus.PENDING

    @pytest.mark.asyncio
    async def test_success_after_non_terminal(self) -> None:
        fetch = FakeFetcher(
            _receipt(TransactionStatus.RECEIVED),
            _receipt(TransactionStatus.UNKNOWN),
            _receipt(TransactionStatus.ACCEPTED_ON_L2),
        )
        sleep = RecordingSleep()

        result = await wait_for_transaction(
            fetch, SAMPLE_TX_HASH, retries=2, retry_interval_ms=10, sleep=sleep
        )

        assert result.status is TransactionStatus.ACCEPTED_ON_L2
        assert len(fetch.calls) == 3
        assert sleep.calls == [0.01] * 4

    @pytest.mark.asyncio
    async def test_success_after_transient_errors(self) -> None:
        fetch = FakeFetcher(
            TransportError("down", error_code="CONNECTION_FAILED"),
            NodeError(25, "Transaction hash not found"),
            _receipt(TransactionStatus.ACCEPTED_ON_L2),
        )
        result = await wait_for_transaction(
            fetch, SAMPLE_TX_HASH, retries=2, retry_interval_ms=0, sleep=RecordingSleep()
        )
        assert result.status is TransactionStatus.ACCEPTED_ON_L2
        assert len(fetch.calls) == 3


# ---------------------------------------------------------------------------
# Exhaustion
# ---------------------------------------------------------------------------


class TestExhaustion:
    @pytest.mark.asyncio
    async def test_non_terminal_forever(self) -> None:
        fetch = FakeFetcher(_receipt(TransactionStatus.RECEIVED))
        sleep = RecordingSleep()

        with pytest.raises(RetriesExhaustedError) as exc:
            await wait_for_transaction(
                fetch, SAMPLE_TX_HASH, retries=3, retry_interval_ms=5, sleep=sleep
            )

        assert len(fetch.calls) == 4
        assert len(sleep.calls) == 4
        assert exc.value.attempts == 4
        assert exc.value.last_status is TransactionStatus.RECEIVED
        assert exc.value.last_error is None
        assert exc.value.tx_hash == SAMPLE_TX_HASH
        assert exc.value.error_code == "RETRIES_EXHAUSTED"

    @pytest.mark.asyncio
    async def test_zero_retries_checks_once(self) -> None:
        fetch = FakeFetcher(_receipt(TransactionStatus.RECEIVED))
        sleep = RecordingSleep()

        with pytest.raises(RetriesExhaustedError) as exc:
            await wait_for_transaction(
                fetch, SAMPLE_TX_HASH, retries=0, retry_interval_ms=5, sleep=sleep
            )

        assert len(fetch.calls) == 1
        assert len(sleep.calls) == 1
        assert exc.value.attempts == 1

    @pytest.mark.asyncio
    async def test_transient_errors_consume_budget(self) -> None:
        error = TransportError("timeout", error_code="TIMEOUT")
        fetch = FakeFetcher(error)

        with pytest.raises(RetriesExhaustedError) as exc:
            await wait_for_transaction(
                fetch, SAMPLE_TX_HASH, retries=2, retry_interval_ms=0, sleep=RecordingSleep()
            )

        assert len(fetch.calls) == 3
        assert exc.value.last_error is error
        assert exc.value.last_status is None

    @pytest.mark.asyncio
    async def test_negative_retries_rejected(self) -> None:
        fetch = FakeFetcher(_receipt(TransactionStatus.RECEIVED))
        with pytest.raises(ValueError):
            await wait_for_transaction(
                fetch, SAMPLE_TX_HASH, retries=-1, retry_interval_ms=0, sleep=RecordingSleep()
            )
        assert fetch.calls == []

    @pytest.mark.asyncio
    async def test_unexpected_exception_propagates(self) -> None:
        fetch = FakeFetcher(KeyError("status"))
        with pytest.raises(KeyError):
            await wait_for_transaction(
                fetch, SAMPLE_TX_HASH, retries=5, retry_interval_ms=0, sleep=RecordingSleep()
            )
        assert len(fetch.calls) == 1


# ---------------------------------------------------------------------------
# Rejection
# ---------------------------------------------------------------------------


class TestRejection:
    @pytest.mark.asyncio
    async def test_rejected_on_second_attempt(self) -> None:
        rejected = _receipt(TransactionStatus.REJECTED, status_data="Invalid nonce")
        fetch = FakeFetcher(_receipt(TransactionStatus.RECEIVED), rejected)
        sleep = RecordingSleep()

        with pytest.raises(TransactionRejectedError) as exc:
            await wait_for_transaction(
                fetch, SAMPLE_TX_HASH, retries=200, retry_interval_ms=1, sleep=sleep
            )

        assert len(fetch.calls) == 2
        assert len(sleep.calls) == 2
        assert exc.value.status is TransactionStatus.REJECTED
        assert exc.value.receipt is rejected
        assert str(exc.value) == "REJECTED"

    @pytest.mark.asyncio
    async def test_not_received_is_failure(self) -> None:
        fetch = FakeFetcher(_receipt(TransactionStatus.NOT_RECEIVED))
        with pytest.raises(TransactionRejectedError) as exc:
            await wait_for_transaction(
                fetch, SAMPLE_TX_HASH, retries=0, retry_interval_ms=0, sleep=RecordingSleep()
            )
        assert exc.value.status is TransactionStatus.NOT_RECEIVED

    @pytest.mark.asyncio
    async def test_rejection_is_a_wait_error(self) -> None:
        fetch = FakeFetcher(_receipt(TransactionStatus.REJECTED))
        with pytest.raises(TransactionWaitError):
            await wait_for_transaction(
                fetch, SAMPLE_TX_HASH, retries=1, retry_interval_ms=0, sleep=RecordingSleep()
            )


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancelled_before_start(self) -> None:
        fetch = FakeFetcher(_receipt(TransactionStatus.ACCEPTED_ON_L2))
        cancel = asyncio.Event()
        cancel.set()

        with pytest.raises(WaitCancelledError) as exc:
            await wait_for_transaction(
                fetch,
                SAMPLE_TX_HASH,
                retries=5,
                retry_interval_ms=0,
                sleep=RecordingSleep(),
                cancel=cancel,
            )

        assert fetch.calls == []
        assert exc.value.attempts == 0

    @pytest.mark.asyncio
    async def test_cancelled_during_sleep(self) -> None:
        fetch = FakeFetcher(_receipt(TransactionStatus.RECEIVED))
        cancel = asyncio.Event()
        sleeps: list[float] = []

        async def sleep(seconds: float) -> None:
            sleeps.append(seconds)
            if len(sleeps) == 2:
                cancel.set()

        with pytest.raises(WaitCancelledError) as exc:
            await wait_for_transaction(
                fetch, SAMPLE_TX_HASH, retries=5, retry_interval_ms=0, sleep=sleep, cancel=cancel
            )

        # Cancelled while sleeping before the second fetch: no second fetch.
        assert len(fetch.calls) == 1
        assert exc.value.attempts == 1
        assert not isinstance(exc.value, RetriesExhaustedError)

    @pytest.mark.asyncio
    async def test_unset_event_does_not_interfere(self) -> None:
        fetch = FakeFetcher(_receipt(TransactionStatus.ACCEPTED_ON_L1))
        result = await wait_for_transaction(
            fetch,
            SAMPLE_TX_HASH,
            retries=1,
            retry_interval_ms=0,
            sleep=RecordingSleep(),
            cancel=asyncio.Event(),
        )
        assert result.status is TransactionStatus.ACCEPTED_ON_L1

    @pytest.mark.asyncio
    async def test_task_cancellation_propagates(self) -> None:
        fetch = FakeFetcher(_receipt(TransactionStatus.RECEIVED))
        task = asyncio.create_task(
            wait_for_transaction(fetch, SAMPLE_TX_HASH, retries=5, retry_interval_ms=60_000)
        )
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert fetch.calls == []


# ---------------------------------------------------------------------------
# Attempt accounting
# ---------------------------------------------------------------------------


class TestPollAttempts:
    def test_numbering(self) -> None:
        assert list(poll_attempts(3)) == [(1, 3), (2, 2), (3, 1), (4, 0)]

    def test_zero_budget(self) -> None:
        assert list(poll_attempts(0)) == [(1, 0)]

    def test_remaining_is_non_increasing(self) -> None:
        remaining = [r for _, r in poll_attempts(10)]
        assert remaining == sorted(remaining, reverse=True)

    def test_negative(self) -> None:
        with pytest.raises(ValueError):
            list(poll_attempts(-1))
