from __future__ import annotations
import subprocess
import sys
import re
from pathlib import Path

PY = sys.executable  # respects venv if activated, otherwise uses current python

SCENARIOS = [
    ("best", "fragmentation trace"),
    ("worst", "fragmentation trace"),
]

TRACE = str(Path("traces") / "fragmentation_stressor.jsonl")

PATTERNS = {
    "alloc_fail": re.compile(r"Alloc failures:\s+(\d+)"),
    "used": re.compile(r"Used words:\s+(\d+)"),
    "free": re.compile(r"Free words:\s+(\d+)"),
    "live": re.compile(r"Live allocations:\s+(\d+)"),
    "lfe": re.compile(r"Fragmentation: LFE=(\d+)"),
    "holes": re.compile(r"holes=(\d+)"),
    "external_frag": re.compile(r"external_frag=([0-9\.]+)"),
    "entropy": re.compile(r"entropy=([0-9\.]+)"),
}

def run(strategy: str, trace: str=TRACE, words: int=256) -> str:
    cmd = [PY, "run_sim.py", "--trace", trace, "--strategy", strategy, "--words", str(words)]
    out = subprocess.check_output(cmd, stderr=subprocess.STDOUT, text=True)
    return out

def parse(out: str):
    def get(key, default=None):
        m = PATTERNS[key].search(out)
        return m.group(1) if m else default
    return {
        "alloc_fail": int(get("alloc_fail", 0)),
        "used": int(get("used", 0)),
        "free": int(get("free", 0)),
        "live": int(get("live", 0)),
        "lfe": int(get("lfe", 0)),
        "holes": int(get("holes", 0)),
        "external_frag": float(get("external_frag", 0.0)),
        "entropy": float(get("entropy", 0.0)),
    }

def main():
    rows=[]
    for strategy, note in SCENARIOS:
        out = run(strategy)
        m = parse(out)
        rows.append((strategy, m))

    header = ["strategy","fails","used","free","live","LFE","holes","ext_frag","entropy"]
    print("="*86)
    print("Block-list Allocator - Benchmark Table (fragmentation trace)")
    print("="*86)
    print("{:<9} {:>6} {:>8} {:>8} {:>6} {:>8} {:>6} {:>9} {:>8}".format(*header))
    for strategy, m in rows:
        print("{:<9} {:>6} {:>8} {:>8} {:>6} {:>8} {:>6} {:>9.3f} {:>8.3f}".format(
            strategy, m["alloc_fail"], m["used"], m["free"], m["live"],
            m["lfe"], m["holes"], m["external_frag"], m["entropy"]
        ))
    print("="*86)
    print("Tip: add --show-map to see where each strategy leaves its holes.")
    print("  python run_sim.py --trace traces/fragmentation_stressor.jsonl --strategy worst --words 256 --show-map")

if __name__ == "__main__":
    main()
