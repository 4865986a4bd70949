import pytest

from memory.block import Block
from memory.encoding import encode_holes
from policy.placement import STRATEGIES, best_fit, get_strategy, worst_fit


@pytest.fixture
def holes():
    return encode_holes([
        Block(0, 5, True), Block(5, 5, False), Block(10, 20, True),
        Block(30, 10, False), Block(40, 8, True),
    ])


def test_best_and_worst_diverge(holes) -> None:
    assert best_fit(5, holes) == 0
    assert worst_fit(5, holes) == 10


def test_best_fit_skips_too_small(holes) -> None:
    assert best_fit(6, holes) == 40
    assert best_fit(9, holes) == 10


@pytest.mark.parametrize("strategy", [best_fit, worst_fit])
def test_no_fit(strategy, holes) -> None:
    assert strategy(21, holes) is None
    assert strategy(1, None) is None


@pytest.mark.parametrize("strategy", [best_fit, worst_fit])
def test_ties_go_to_first(strategy) -> None:
    hl = encode_holes([Block(0, 8, True), Block(8, 1, False), Block(9, 8, True)])
    assert strategy(4, hl) == 0


def test_strategies_do_not_touch_list(holes) -> None:
    before = holes.copy()
    best_fit(5, holes)
    worst_fit(5, holes)
    assert (holes == before).all()


def test_registry() -> None:
    assert get_strategy("best") is best_fit
    assert get_strategy("worst") is worst_fit
    assert sorted(STRATEGIES) == ["best", "worst"]
    with pytest.raises(KeyError, match="unknown strategy"):
        get_strategy("first")
