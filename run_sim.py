from __future__ import annotations
import argparse, json, logging
from typing import Dict, Iterable, Optional

from memory.manager import MemoryManager, Pointer
from memory.fragmentation import compute_metrics
from memory.encoding import format_holes
from policy.placement import STRATEGIES, get_strategy
from viz.ascii_map import render_map

log = logging.getLogger(__name__)

def load_trace(path: str):
    with open(path,'r',encoding='utf-8') as f:
        for line in f:
            line=line.strip()
            if line:
                yield json.loads(line)

def new_stats() -> Dict[str,int]:
    return {
        'alloc_events':0,'alloc_fail':0,'bytes_requested':0,
        'free_events':0,'ignored_frees':0,
        'strategy_switches':0,'dumps':0,'dump_failures':0,
    }

def replay(mm: MemoryManager, events: Iterable[dict], stats: Dict[str,int],
           live: Optional[Dict[str,Pointer]] = None) -> Dict[str,Pointer]:
    """Apply trace events to `mm`; returns the id -> pointer table of live allocations."""
    live = {} if live is None else live
    for ev in events:
        et=ev['event']
        if et=='alloc':
            obj=str(ev['id']); size=int(ev['size'])
            stats['alloc_events'] += 1
            stats['bytes_requested'] += size
            ptr=mm.allocate(size)
            if ptr is None:
                stats['alloc_fail'] += 1
                continue
            if obj in live:
                log.warning("id %s allocated again without a free; previous block leaks", obj)
            live[obj]=ptr
            continue

        if et=='free':
            ptr=live.pop(str(ev['id']), None)
            stats['free_events'] += 1
            if ptr is None:
                stats['ignored_frees'] += 1
            mm.free(ptr)
            continue

        if et=='strategy':
            mm.set_strategy(get_strategy(ev['name']))
            stats['strategy_switches'] += 1
            continue

        if et=='dump':
            stats['dumps'] += 1
            if not mm.dump_memory_map(ev['path']):
                stats['dump_failures'] += 1
            continue

        log.warning("skipping unknown event %r", et)
    return live

def main(argv=None):
    ap=argparse.ArgumentParser(description="Replay an allocation trace against a block-list allocator.")
    ap.add_argument('--trace', required=True)
    ap.add_argument('--strategy', choices=sorted(STRATEGIES), default='best')
    ap.add_argument('--word-size', type=int, default=4)
    ap.add_argument('--words', type=int, default=1024, help="Arena size in words (at most 65536).")
    ap.add_argument('--dump', help="Write the final hole map to this file.")
    ap.add_argument('--show-map', action='store_true')
    ap.add_argument('--width', type=int, default=80)
    ap.add_argument('--log-level', default='WARNING')
    args=ap.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    mm=MemoryManager(args.word_size, get_strategy(args.strategy))
    mm.initialize(args.words)
    if not mm.is_ready:
        raise SystemExit(f"Arena of {args.words} words rejected")

    stats=new_stats()
    live=replay(mm, load_trace(args.trace), stats)

    m=compute_metrics(mm.get_hole_list())
    print("="*72)
    print("Block-list Allocator - Simulator Summary")
    print("="*72)
    print(f"Strategy: {args.strategy}   Word size: {mm.word_size}   Arena words: {mm.limit_words}")
    print(f"Used words: {mm.used_words()}  Free words: {mm.free_words()}  Live allocations: {len(live)}")
    print(f"alloc_events: {stats['alloc_events']}  Alloc failures: {stats['alloc_fail']}  Bytes requested: {stats['bytes_requested']}")
    print(f"free_events: {stats['free_events']}  Ignored frees: {stats['ignored_frees']}  Strategy switches: {stats['strategy_switches']}")
    print("-"*72)
    print(f"Fragmentation: LFE={m.lfe} holes={m.hole_count} external_frag={m.external_frag:.3f} entropy={m.entropy:.3f}")
    print(f"Holes: {format_holes(mm.blocks()) or '(none)'}")
    if args.dump:
        ok=mm.dump_memory_map(args.dump)
        print(f"Dump: {args.dump} ({'ok' if ok else 'FAILED'})")
    if args.show_map:
        print("-"*72)
        print("Memory map (ASCII):")
        print(render_map(mm.blocks(), args.width))
    print("="*72)
    mm.shutdown()

if __name__=='__main__':
    main()
