import json

import pytest

from memory.block import Block
from memory.fragmentation import compute_metrics
from memory.encoding import encode_holes
from memory.manager import MemoryManager
from policy.placement import best_fit, worst_fit
from run_sim import load_trace, main, new_stats, replay
from viz.ascii_map import render_map
import bench


def write_trace(path, events):
    path.write_text("\n".join(json.dumps(e) for e in events) + "\n\n")
    return path


class TestReplay:
    def test_alloc_and_free(self) -> None:
        mm = MemoryManager(4, best_fit)
        mm.initialize(10)
        stats = new_stats()
        live = replay(mm, [
            {"event": "alloc", "id": "a", "size": 8},
            {"event": "alloc", "id": "b", "size": 8},
            {"event": "free", "id": "a"},
            {"event": "free", "id": "nope"},
            {"event": "alloc", "id": "big", "size": 400},
        ], stats)
        assert list(live) == ["b"]
        assert stats["alloc_events"] == 3
        assert stats["alloc_fail"] == 1
        assert stats["free_events"] == 2
        assert stats["ignored_frees"] == 1
        assert mm.blocks() == [Block(0, 2, True), Block(2, 2, False), Block(4, 6, True)]

    def test_strategy_and_dump_events(self, tmp_path) -> None:
        mm = MemoryManager(4, best_fit)
        mm.initialize(20)
        stats = new_stats()
        out = tmp_path / "map.txt"
        replay(mm, [
            {"event": "alloc", "id": "a", "size": 8},
            {"event": "alloc", "id": "b", "size": 8},
            {"event": "free", "id": "a"},
            {"event": "strategy", "name": "worst"},
            {"event": "alloc", "id": "c", "size": 4},
            {"event": "dump", "path": str(out)},
            {"event": "dump", "path": str(tmp_path / "no" / "map.txt")},
        ], stats)
        assert mm.strategy is worst_fit
        assert stats["strategy_switches"] == 1
        assert stats["dumps"] == 2
        assert stats["dump_failures"] == 1
        assert out.read_text() == "[0, 2] - [5, 15]"

    def test_load_trace_skips_blank_lines(self, tmp_path) -> None:
        path = write_trace(tmp_path / "t.jsonl", [{"event": "free", "id": "x"}])
        assert list(load_trace(str(path))) == [{"event": "free", "id": "x"}]


def test_main_summary(tmp_path, capsys) -> None:
    trace = write_trace(tmp_path / "t.jsonl", [
        {"event": "alloc", "id": "a", "size": 16},
        {"event": "alloc", "id": "b", "size": 16},
        {"event": "free", "id": "a"},
    ])
    dump = tmp_path / "map.txt"
    main(["--trace", str(trace), "--words", "16", "--dump", str(dump), "--show-map", "--width", "16"])
    out = capsys.readouterr().out
    assert "Used words: 4  Free words: 12  Live allocations: 1" in out
    assert "Holes: [0, 4] - [8, 8]" in out
    assert "....####........" in out
    assert dump.read_text() == "[0, 4] - [8, 8]"
    parsed = bench.parse(out)
    assert parsed["used"] == 4
    assert parsed["holes"] == 2
    assert parsed["lfe"] == 8


def test_main_rejects_oversized_arena(tmp_path) -> None:
    trace = write_trace(tmp_path / "t.jsonl", [])
    with pytest.raises(SystemExit):
        main(["--trace", str(trace), "--words", "70000"])


class TestMetrics:
    def test_no_holes(self) -> None:
        m = compute_metrics(None)
        assert (m.total_free, m.lfe, m.hole_count) == (0, 0, 0)
        assert m.external_frag == 0.0

    def test_single_hole(self) -> None:
        m = compute_metrics(encode_holes([Block(0, 10, False), Block(10, 30, True)]))
        assert (m.total_free, m.lfe, m.hole_count) == (30, 30, 1)
        assert m.external_frag == 0.0
        assert m.entropy == pytest.approx(0.0)

    def test_two_equal_holes(self) -> None:
        m = compute_metrics(encode_holes([
            Block(0, 8, True), Block(8, 4, False), Block(12, 8, True),
        ]))
        assert m.external_frag == pytest.approx(0.5)
        assert m.entropy == pytest.approx(1.0)


class TestAsciiMap:
    def test_render(self) -> None:
        blocks = [Block(0, 4, False), Block(4, 4, True), Block(8, 8, False)]
        assert render_map(blocks, width=8) == "##..####"

    def test_small_allocation_still_visible(self) -> None:
        blocks = [Block(0, 1, False), Block(1, 99, True)]
        assert render_map(blocks, width=10) == "#........."

    def test_empty(self) -> None:
        assert render_map([], width=10) == ""
