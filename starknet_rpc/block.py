"""
Block references and their wire encoding.

Block-scoped endpoints take a ``block_id`` whose JSON shape depends on how
the caller names the block:

    BlockTag("pending")      -> "pending"
    BlockHeight(123)         -> {"block_number": 123}
    BlockHash("0x04a1...")   -> {"block_hash": "0x04a1..."}

Pure layer, no I/O. Hash format and height bounds are left for the node
to judge; it reports bad values as a NodeError.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Union

BLOCK_TAGS: frozenset[str] = frozenset({"latest", "pending"})
DEFAULT_BLOCK_TAG = "pending"


@dataclass(frozen=True)
class BlockTag:
    tag: Literal["latest", "pending"]


@dataclass(frozen=True)
class BlockHeight:
    number: int


@dataclass(frozen=True)
class BlockHash:
    hash: str


BlockReference = Union[BlockTag, BlockHeight, BlockHash]

# What endpoint methods accept: a tagged reference or its shorthand.
BlockIdentifier = Union[BlockReference, str, int]


def resolve_block_id(ref: BlockReference) -> str | dict[str, Any]:
    """Encode a block reference as the wire ``block_id`` value."""
    if isinstance(ref, BlockTag):
        return ref.tag
    if isinstance(ref, BlockHeight):
        return {"block_number": ref.number}
    if isinstance(ref, BlockHash):
        return {"block_hash": ref.hash}
    raise TypeError(f"Not a block reference: {type(ref).__name__}")


def coerce_block_reference(value: BlockIdentifier) -> BlockReference:
    """Turn shorthand block identifiers into a tagged reference.

    Accepts:
        - a BlockTag / BlockHeight / BlockHash (returned as-is)
        - "latest" / "pending"
        - a non-negative int (block height)
        - a "0x"-prefixed hex string (block hash)

    Raises:
        ValueError: For anything else. This is a caller error and is
            raised before any request is sent.
    """
    if isinstance(value, (BlockTag, BlockHeight, BlockHash)):
        return value
    # bool is an int subclass; True is not block 1.
    if isinstance(value, bool):
        raise ValueError(f"Invalid block identifier: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"Block height must be non-negative, got {value}")
        return BlockHeight(value)
    if isinstance(value, str):
        if value in BLOCK_TAGS:
            return BlockTag(value)  # type: ignore[arg-type]
        if value.lower().startswith("0x"):
            return BlockHash(value)
    raise ValueError(f"Invalid block identifier: {value!r}")


def block_id(value: BlockIdentifier = DEFAULT_BLOCK_TAG) -> str | dict[str, Any]:
    """Shorthand for ``resolve_block_id(coerce_block_reference(value))``."""
    return resolve_block_id(coerce_block_reference(value))
