"""Transaction status values reported in receipts, and their terminal classes."""

from __future__ import annotations

from enum import StrEnum


class TransactionStatus(StrEnum):
    """Status of a submitted transaction as reported by the node."""

    RECEIVED = "RECEIVED"
    PENDING = "PENDING"
    ACCEPTED_ON_L2 = "ACCEPTED_ON_L2"
    ACCEPTED_ON_L1 = "ACCEPTED_ON_L1"
    REJECTED = "REJECTED"
    NOT_RECEIVED = "NOT_RECEIVED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: object) -> TransactionStatus:
        """Map a wire status string to a member. Unrecognized -> UNKNOWN."""
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                pass
        return cls.UNKNOWN

    @property
    def is_success(self) -> bool:
        return self in SUCCESS_STATES

    @property
    def is_failure(self) -> bool:
        return self in FAILURE_STATES

    @property
    def is_terminal(self) -> bool:
        return self.is_success or self.is_failure


# PENDING counts as success: the node has seen and executed the transaction,
# even though the block holding it is not closed yet.
SUCCESS_STATES: frozenset[TransactionStatus] = frozenset(
    {
        TransactionStatus.ACCEPTED_ON_L1,
        TransactionStatus.ACCEPTED_ON_L2,
        TransactionStatus.PENDING,
    }
)

FAILURE_STATES: frozenset[TransactionStatus] = frozenset(
    {
        TransactionStatus.REJECTED,
        TransactionStatus.NOT_RECEIVED,
    }
)
