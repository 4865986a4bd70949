from __future__ import annotations
from dataclasses import dataclass

@dataclass
class Block:
    start: int
    size: int
    is_hole: bool

    @property
    def end(self) -> int:
        return self.start + self.size
