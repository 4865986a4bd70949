"""Encoders exposing the free-space state of a BlockList.

- hole list: ``[count, start0, size0, start1, size1, ...]`` over holes in
  ascending order, consumed by placement strategies
- bitmap: 2-byte little-endian payload length, then one bit per word
  (1 = allocated) packed with the first word in each byte's low bit
- hole map text: ``[start, length] - [start, length]`` over holes only

Every call returns a freshly built buffer owned by the caller.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional, Tuple

import numpy as np

from memory.block import Block

# A fully free 65536-word arena has a hole length one past the uint16 range.
HOLE_DTYPE = np.uint32


def encode_holes(blocks: Iterable[Block]) -> Optional[np.ndarray]:
    """Return the hole list, or None when there is no hole at all.

    Fields are HOLE_DTYPE (uint32), not uint16, so a fully free
    65536-word arena keeps its length.
    """
    holes = [(b.start, b.size) for b in blocks if b.is_hole]
    if not holes:
        return None
    out = np.empty(1 + 2 * len(holes), dtype=HOLE_DTYPE)
    out[0] = len(holes)
    out[1:] = np.asarray(holes, dtype=HOLE_DTYPE).ravel()
    return out


def iter_holes(hole_list: Optional[np.ndarray]) -> Iterator[Tuple[int, int]]:
    """Yield ``(start, size)`` pairs, reading the count from the header."""
    if hole_list is None:
        return
    count = int(hole_list[0])
    for i in range(count):
        yield int(hole_list[2 * i + 1]), int(hole_list[2 * i + 2])


def encode_bitmap(blocks: Iterable[Block]) -> bytes:
    blocks = list(blocks)
    if blocks:
        flags = np.array([0 if b.is_hole else 1 for b in blocks], dtype=np.uint8)
        bits = np.repeat(flags, [b.size for b in blocks])
        payload = np.packbits(bits, bitorder="little")
    else:
        payload = np.zeros(0, dtype=np.uint8)
    header = np.array([payload.size], dtype="<u2")
    return header.tobytes() + payload.tobytes()


def decode_bitmap(buf: bytes, total_words: Optional[int] = None) -> np.ndarray:
    """Unpack a bitmap into one uint8 per word (1 = allocated).

    Without `total_words` the zero padding of the last byte is kept.
    """
    nbytes = int.from_bytes(bytes(buf[:2]), "little")
    payload = np.array(list(buf[2:2 + nbytes]), dtype=np.uint8)
    bits = np.unpackbits(payload, bitorder="little")
    if total_words is not None:
        bits = bits[:total_words]
    return bits


def format_holes(blocks: Iterable[Block]) -> str:
    return " - ".join(f"[{b.start}, {b.size}]" for b in blocks if b.is_hole)
