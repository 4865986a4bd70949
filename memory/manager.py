from __future__ import annotations
import logging
from typing import List, Optional

import numpy as np

from memory.block import Block
from memory.block_list import BlockList
from memory.encoding import encode_bitmap, encode_holes, format_holes
from policy.placement import Strategy

log = logging.getLogger(__name__)

MAX_ARENA_WORDS = 65536

class Pointer:
    """A byte offset into one manager's arena."""

    __slots__ = ('arena', 'offset')

    def __init__(self, arena: np.ndarray, offset: int):
        self.arena = arena
        self.offset = offset

    def __add__(self, nbytes: int) -> "Pointer":
        return Pointer(self.arena, self.offset + nbytes)

    def __sub__(self, other: "Pointer") -> int:
        if other.arena is not self.arena:
            raise ValueError("pointers into different arenas")
        return self.offset - other.offset

    def __eq__(self, other) -> bool:
        if not isinstance(other, Pointer):
            return NotImplemented
        return self.arena is other.arena and self.offset == other.offset

    def __hash__(self) -> int:
        return hash((id(self.arena), self.offset))

    def __repr__(self) -> str:
        return f"Pointer(arena=0x{id(self.arena):x}, offset={self.offset})"

    def view(self, nbytes: int) -> np.ndarray:
        return self.arena[self.offset:self.offset + nbytes]

class MemoryManager:
    """Block-list allocator over a single word-addressed arena.

    The arena and its BlockList belong to this instance only. Placement is
    delegated to `strategy`, which sees the encoded hole list and returns a
    word offset; the manager applies the split or flip itself.
    """

    def __init__(self, word_size: int, strategy: Strategy):
        if word_size <= 0:
            raise ValueError(f"word_size must be positive, got {word_size}")
        self._word_size = word_size
        self._strategy = strategy
        self._arena: Optional[np.ndarray] = None
        self._blocks = BlockList()
        self._limit_words = 0

    def __enter__(self) -> "MemoryManager":
        return self

    def __exit__(self, *exc):
        self.shutdown()

    @property
    def word_size(self) -> int:
        return self._word_size

    @property
    def strategy(self) -> Strategy:
        return self._strategy

    @property
    def arena_base(self) -> Optional[Pointer]:
        if self._arena is None:
            return None
        return Pointer(self._arena, 0)

    @property
    def limit_words(self) -> int:
        return self._limit_words

    @property
    def is_ready(self) -> bool:
        return self._arena is not None

    def initialize(self, size_in_words: int):
        if size_in_words > MAX_ARENA_WORDS or size_in_words <= 0:
            log.warning("rejected arena of %d words (limit %d)", size_in_words, MAX_ARENA_WORDS)
            return
        if self.is_ready:
            self.shutdown()
        self._arena = np.zeros(size_in_words * self._word_size, dtype=np.uint8)
        self._blocks = BlockList.single_hole(size_in_words)
        self._limit_words = size_in_words
        log.debug("initialized %d words of %d bytes", size_in_words, self._word_size)

    def shutdown(self):
        self._arena = None
        self._blocks.clear()
        self._limit_words = 0

    def set_strategy(self, strategy: Strategy):
        self._strategy = strategy

    def allocate(self, size_in_bytes: int) -> Optional[Pointer]:
        if not self.is_ready:
            log.debug("allocate(%d) before initialize", size_in_bytes)
            return None
        if size_in_bytes <= 0 or size_in_bytes > self._limit_words * self._word_size:
            return None
        words = -(-size_in_bytes // self._word_size)
        hole_list = encode_holes(self._blocks)
        offset = self._strategy(words, hole_list)
        if offset is None:
            log.debug("no hole for %d words", words)
            return None
        idx = self._blocks.index_of(offset)
        if idx is None or not self._blocks[idx].is_hole or self._blocks[idx].size < words:
            log.debug("strategy chose offset %d which is not a hole of %d words", offset, words)
            return None
        self._blocks.carve(idx, words)
        log.debug("allocated %d words at %d", words, offset)
        return Pointer(self._arena, offset * self._word_size)

    def free(self, address: Optional[Pointer]):
        if not self.is_ready or address is None:
            return
        if not isinstance(address, Pointer):
            log.debug("ignoring free of non-pointer %r", address)
            return
        if address.arena is not self._arena or not 0 <= address.offset < self._arena.size:
            log.debug("ignoring free of foreign pointer %r", address)
            return
        word_offset = (address - self.arena_base) // self._word_size
        idx = self._blocks.find_allocated(word_offset)
        if idx is None:
            log.debug("ignoring free at word %d: not an allocation start", word_offset)
            return
        self._blocks.release(idx)

    def get_hole_list(self) -> Optional[np.ndarray]:
        if not self.is_ready:
            return None
        return encode_holes(self._blocks)

    def get_bitmap(self) -> bytes:
        return encode_bitmap(self._blocks)

    def dump_memory_map(self, path) -> bool:
        """Write the hole map to `path`. Only holes are listed."""
        if not self.is_ready:
            return False
        text = format_holes(self._blocks)
        try:
            with open(path, 'w', encoding='ascii') as f:
                f.write(text)
        except OSError as e:
            log.warning("could not dump memory map to %s: %s", path, e)
            return False
        return True

    def blocks(self) -> List[Block]:
        return self._blocks.snapshot()

    def used_words(self) -> int:
        return sum(b.size for b in self._blocks if not b.is_hole)

    def free_words(self) -> int:
        return sum(b.size for b in self._blocks if b.is_hole)
