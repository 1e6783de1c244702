import pytest

from conftest import solid
from raster_editor.image_processing import HistoryManager, HistorySnapshot, LayerStack


def snapshot(value: int) -> HistorySnapshot:
    buffer = solid(2, 2, (value, value, value, 255))
    layers = LayerStack(2, 2)
    layers.initialize(buffer)
    return HistorySnapshot(composite=buffer, layers=layers)


def current_value(snap: HistorySnapshot) -> int:
    return snap.composite.get_pixel(0, 0)[0]


@pytest.fixture
def history() -> HistoryManager:
    return HistoryManager(limit=20)


def test_empty_history_has_nothing_to_undo_or_redo(history):
    assert history.undo() is None
    assert history.redo() is None
    assert not history.can_undo()
    assert not history.can_redo()


def test_single_state_cannot_undo(history):
    history.save_state(snapshot(1))
    assert history.undo() is None
    assert history.index == 0


def test_undo_then_redo(history):
    for value in (1, 2, 3):
        history.save_state(snapshot(value))

    assert current_value(history.undo()) == 2
    assert current_value(history.undo()) == 1
    assert history.undo() is None
    assert current_value(history.redo()) == 2
    assert current_value(history.redo()) == 3
    assert history.redo() is None


def test_save_after_undo_discards_redo_states(history):
    for value in (1, 2, 3):
        history.save_state(snapshot(value))
    history.undo()
    history.save_state(snapshot(9))

    assert not history.can_redo()
    assert len(history.states) == 3
    assert current_value(history.undo()) == 2


def test_limit_drops_oldest(history):
    for value in range(25):
        history.save_state(snapshot(value))

    assert len(history.states) == 20
    assert history.index == 19
    assert current_value(history.states[0]) == 5

    undone = 0
    while history.undo() is not None:
        undone += 1
    assert undone == 19


def test_index_stays_within_states(history):
    for value in range(30):
        history.save_state(snapshot(value))
        assert -1 <= history.index < len(history.states) <= history.limit


def test_saved_state_is_not_aliased(history):
    live = snapshot(10)
    history.save_state(live)
    history.save_state(snapshot(20))
    live.composite.set_pixel(0, 0, (99, 99, 99, 255))
    live.layers.layers[0].buffer.set_pixel(0, 0, (99, 99, 99, 255))

    restored = history.undo()
    assert current_value(restored) == 10
    assert restored.layers.layers[0].buffer.get_pixel(0, 0)[0] == 10


def test_undo_returns_copy(history):
    history.save_state(snapshot(1))
    history.save_state(snapshot(2))
    restored = history.undo()
    restored.composite.set_pixel(0, 0, (50, 50, 50, 255))
    assert current_value(history.states[0]) == 1


def test_stats_and_clear(history):
    for value in range(3):
        history.save_state(snapshot(value))
    history.undo()
    assert history.get_stats() == {
        "undo_count": 1,
        "redo_count": 1,
        "limit": 20,
        "history_full": False,
    }
    history.clear()
    assert history.states == [] and history.index == -1
