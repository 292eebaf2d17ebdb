import pytest

from praxis.core.protocol import State
from praxis.engine import HistoryStack


def _state(count: int) -> State:
    return State(context={"count": count})


def test_rejects_non_positive_capacity() -> None:
    with pytest.raises(ValueError):
        HistoryStack(0)


def test_undo_and_redo_walk_the_stacks() -> None:
    history = HistoryStack(5)
    history.record(_state(0))
    history.record(_state(1))

    assert history.undo(_state(2)) == _state(1)
    assert history.undo_depth == 1
    assert history.redo_depth == 1
    assert history.redo(_state(1)) == _state(2)
    assert history.can_redo is False


def test_exhausted_stacks_return_none() -> None:
    history = HistoryStack()
    assert history.undo(_state(0)) is None
    assert history.redo(_state(0)) is None
    assert history.max_size == 50


def test_oldest_snapshot_is_evicted_at_capacity() -> None:
    history = HistoryStack(2)
    for count in range(3):
        history.record(_state(count))
    assert history.undo_depth == 2
    assert history.undo(_state(3)) == _state(2)
    assert history.undo(_state(2)) == _state(1)
    assert history.undo(_state(1)) is None


def test_record_clears_redo_and_clear_empties_everything() -> None:
    history = HistoryStack()
    history.record(_state(0))
    history.undo(_state(1))
    history.record(_state(5))
    assert history.can_redo is False

    history.clear()
    assert history.can_undo is False
