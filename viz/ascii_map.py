from __future__ import annotations
from typing import Iterable

from memory.block import Block

def render_map(blocks: Iterable[Block], width: int=80) -> str:
    blocks = list(blocks)
    total = sum(b.size for b in blocks)
    if total == 0:
        return ''
    buf = ['.']*width
    for b in blocks:
        if b.is_hole:
            continue
        s = int((b.start/total)*width)
        e = int((b.end/total)*width)
        for i in range(max(0,s), min(width, max(s+1,e))):
            buf[i] = '#'
    return ''.join(buf)
