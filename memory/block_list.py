from __future__ import annotations
import logging
from dataclasses import replace
from typing import Iterator, List, Optional, Tuple

from memory.block import Block

log = logging.getLogger(__name__)

class BlockList:
    """Ordered partition of an arena into adjacent allocated/hole Blocks.

    Blocks are kept ascending by start and addressed by list index, so a
    split or merge only ever touches the neighbours of one index. After
    every mutation the list covers [0, total) with no gaps or overlaps,
    every Block is non-empty, and no two adjacent Blocks are both holes.
    """

    def __init__(self, blocks: Optional[List[Block]] = None):
        self._blocks: List[Block] = list(blocks) if blocks else []

    @classmethod
    def single_hole(cls, total_words: int) -> "BlockList":
        return cls([Block(0, total_words, True)])

    def __len__(self) -> int:
        return len(self._blocks)

    def __iter__(self) -> Iterator[Block]:
        return iter(self._blocks)

    def __getitem__(self, index: int) -> Block:
        return self._blocks[index]

    def clear(self):
        self._blocks.clear()

    def total_words(self) -> int:
        return sum(b.size for b in self._blocks)

    def holes(self) -> List[Tuple[int,int]]:
        return [(b.start, b.size) for b in self._blocks if b.is_hole]

    def snapshot(self) -> List[Block]:
        return [replace(b) for b in self._blocks]

    def index_of(self, start: int) -> Optional[int]:
        for i, b in enumerate(self._blocks):
            if b.start == start:
                return i
        return None

    def find_allocated(self, start: int) -> Optional[int]:
        for i, b in enumerate(self._blocks):
            if b.start == start and not b.is_hole:
                return i
        return None

    def carve(self, index: int, words: int) -> Block:
        """Allocate the first `words` words of the hole at `index`.

        A larger hole keeps its Block as the shrunken remainder and gets a
        new allocated Block inserted in front of it; an exact fit is
        flipped in place.
        """
        hole = self._blocks[index]
        if not hole.is_hole or hole.size < words:
            raise ValueError(f"block at {hole.start} cannot hold {words} words")
        if hole.size > words:
            taken = Block(hole.start, words, False)
            hole.start += words
            hole.size -= words
            self._blocks.insert(index, taken)
            log.debug("split hole at %d: %d allocated, %d remain", taken.start, words, hole.size)
            return taken
        hole.is_hole = False
        return hole

    def release(self, index: int) -> Block:
        """Turn the allocated Block at `index` into a hole and coalesce it.

        Forward merging repeats while the next Block is a hole; backward
        merging is a single step since the previous run was already merged.
        Returns the resulting hole.
        """
        cur = self._blocks[index]
        cur.is_hole = True
        nxt = index + 1
        while nxt < len(self._blocks) and self._blocks[nxt].is_hole:
            cur.size += self._blocks[nxt].size
            del self._blocks[nxt]
        if index > 0 and self._blocks[index-1].is_hole:
            prev = self._blocks[index-1]
            prev.size += cur.size
            del self._blocks[index]
            cur = prev
        log.debug("hole at %d now spans %d words", cur.start, cur.size)
        return cur

    def check(self, total_words: Optional[int] = None):
        """Raise ValueError if the partition is broken."""
        cursor = 0
        prev_hole = False
        for i, b in enumerate(self._blocks):
            if b.size <= 0:
                raise ValueError(f"block {i} at {b.start} has size {b.size}")
            if b.start != cursor:
                raise ValueError(f"block {i} starts at {b.start}, expected {cursor}")
            if prev_hole and b.is_hole:
                raise ValueError(f"adjacent holes at {i-1} and {i}")
            prev_hole = b.is_hole
            cursor = b.end
        if total_words is not None and cursor != total_words:
            raise ValueError(f"blocks cover {cursor} words, expected {total_words}")
