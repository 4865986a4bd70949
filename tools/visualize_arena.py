"""
Block-list Allocator: Arena Visualizer

Replays a trace against a MemoryManager and draws a Matplotlib heatmap of
arena occupancy over time, one row per recorded event. Each row is the
decoded allocation bitmap binned to a fixed width.

How to run (recommended, from repo root):
    python -m tools.visualize_arena --trace traces/fragmentation_stressor.jsonl --out out_arena.png

Notes:
- Occupancy is taken from get_bitmap(), so the picture shows exactly what
  external tooling sees.
- Strategy switches and dumps in the trace are applied as in run_sim.py.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running as a script:
# (python -m tools.visualize_arena already works without this,
#  but this makes `python tools/visualize_arena.py ...` work too.)
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from memory.encoding import decode_bitmap
from memory.fragmentation import compute_metrics
from memory.manager import MemoryManager
from policy.placement import STRATEGIES, get_strategy
from run_sim import load_trace, new_stats, replay


def occupancy_row(mm: MemoryManager, width: int) -> np.ndarray:
    """
    Return the fraction of allocated words per bin over the arena.
    """
    bits = decode_bitmap(mm.get_bitmap(), mm.limit_words).astype(np.float32)
    n = bits.size
    if n == 0:
        return np.zeros(width, dtype=np.float32)
    if n < width:
        # more bins than words: each bin shows the word it falls in
        return bits[(np.arange(width) * n) // width]
    bin_of_word = (np.arange(n) * width) // n
    sums = np.bincount(bin_of_word, weights=bits, minlength=width)
    counts = np.bincount(bin_of_word, minlength=width)
    return (sums / counts).astype(np.float32)


def record_frames(mm: MemoryManager, events, width: int, every: int = 1):
    """Replay `events` one at a time and return the occupancy frames."""
    stats = new_stats()
    live = {}
    frames = [occupancy_row(mm, width)]
    for i, ev in enumerate(events, start=1):
        replay(mm, [ev], stats, live)
        if every <= 1 or i % every == 0:
            frames.append(occupancy_row(mm, width))
    return frames, stats


def main(argv=None):
    ap = argparse.ArgumentParser()
    ap.add_argument("--trace", required=True, help="Path to JSONL trace")
    ap.add_argument("--out", default="out_arena.png", help="Output image file")
    ap.add_argument("--strategy", choices=sorted(STRATEGIES), default="best")
    ap.add_argument("--word-size", type=int, default=4)
    ap.add_argument("--words", type=int, default=256, help="Arena size in words")
    ap.add_argument("--width", type=int, default=140, help="Heatmap width (bins)")
    ap.add_argument("--every", type=int, default=1, help="Record every N events")
    args = ap.parse_args(argv)

    trace_path = Path(args.trace)
    if not trace_path.exists():
        raise SystemExit(f"Trace not found: {trace_path}")

    mm = MemoryManager(args.word_size, get_strategy(args.strategy))
    mm.initialize(args.words)
    if not mm.is_ready:
        raise SystemExit(f"Arena of {args.words} words rejected")

    frames, stats = record_frames(mm, load_trace(str(trace_path)), args.width, args.every)

    H = np.stack(frames, axis=0)  # (time, width)

    fig = plt.figure(figsize=(10.5, 4.6))
    ax = fig.add_subplot(111)
    ax.imshow(H, aspect="auto", interpolation="nearest", vmin=0.0, vmax=1.0)
    ax.set_title(f"Arena Occupancy Heatmap ({args.strategy}-fit)")
    ax.set_xlabel("arena word (binned)")
    ax.set_ylabel("time (frames)")

    m = compute_metrics(mm.get_hole_list())
    caption = (
        f"Final fragmentation: LFE={m.lfe}, holes={m.hole_count}, "
        f"external_frag={m.external_frag:.3f}, entropy={m.entropy:.3f}, "
        f"alloc failures={stats['alloc_fail']}"
    )
    fig.text(0.01, 0.01, caption, fontsize=9)

    fig.tight_layout()
    out_path = Path(args.out)
    fig.savefig(str(out_path), dpi=220)
    plt.close(fig)
    print(f"Wrote: {out_path.resolve()}")


if __name__ == "__main__":
    main()
