import pytest

from tafel.core.engine import reindex
from tafel.core.engine.exceptions import InvariantViolation
from tafel.core.engine.records import ItemRecord


def make_items(*ids, column_id="K1"):
    return [ItemRecord(id=i, column_id=column_id, position=p) for p, i in enumerate(ids)]


def ids(entities):
    return [e.id for e in entities]


def positions(entities):
    return [e.position for e in entities]


def test_clamp_index():
    assert reindex.clamp_index(-3, 4) == 0
    assert reindex.clamp_index(2, 4) == 2
    assert reindex.clamp_index(9, 4) == 4


def test_renumber_closes_gaps():
    items = [
        ItemRecord(id="A", column_id="K1", position=3),
        ItemRecord(id="B", column_id="K1", position=7),
    ]
    result = reindex.renumber(items)
    assert positions(result) == [0, 1]
    assert positions(items) == [3, 7]


def test_move_within_down_and_up():
    items = make_items("A", "B", "C", "D")

    down = reindex.move_within(items, 0, 2)
    assert ids(down) == ["B", "C", "A", "D"]
    assert positions(down) == [0, 1, 2, 3]

    up = reindex.move_within(items, 3, 1)
    assert ids(up) == ["A", "D", "B", "C"]


@pytest.mark.parametrize("i,j", [(0, 3), (3, 0), (1, 2), (2, 2)])
def test_move_within_and_back_restores_order(i, j):
    items = make_items("A", "B", "C", "D")
    there = reindex.move_within(items, i, j)
    back = reindex.move_within(there, j, i)
    assert back == items


def test_move_within_clamps_out_of_bounds_target():
    items = make_items("A", "B", "C")
    assert ids(reindex.move_within(items, 0, 99)) == ["B", "C", "A"]
    assert ids(reindex.move_within(items, 2, -5)) == ["C", "A", "B"]


def test_move_within_single_element():
    items = make_items("A")
    assert reindex.move_within(items, 0, 5) == items


def test_move_between_appends_to_empty_target():
    source = make_items("A", "B", "C", column_id="K1")

    new_source, new_target = reindex.move_between(source, [], 1, column_id="K2")

    assert [(e.id, e.position) for e in new_source] == [("A", 0), ("C", 1)]
    assert [(e.id, e.position, e.column_id) for e in new_target] == [("B", 0, "K2")]


def test_move_between_inserts_at_index():
    source = make_items("A", "B", column_id="K1")
    target = make_items("X", "Y", column_id="K2")

    new_source, new_target = reindex.move_between(source, target, 0, 1, column_id="K2")

    assert ids(new_source) == ["B"]
    assert ids(new_target) == ["X", "A", "Y"]
    assert positions(new_target) == [0, 1, 2]


def test_insert_and_remove():
    items = make_items("A", "B")
    new = ItemRecord(id="N", column_id="K1", position=42)

    assert ids(reindex.insert(items, new)) == ["A", "B", "N"]
    assert ids(reindex.insert(items, new, 0)) == ["N", "A", "B"]
    assert positions(reindex.insert(items, new, 0)) == [0, 1, 2]
    assert [(e.id, e.position) for e in reindex.remove(items, 0)] == [("B", 0)]


def test_remove_rejects_missing_index():
    with pytest.raises(IndexError):
        reindex.remove(make_items("A"), 1)


def test_tail_position():
    assert reindex.tail_position([]) == 0
    assert reindex.tail_position(make_items("A", "B")) == 2


def test_verify_positions():
    reindex.verify_positions(make_items("A", "B", "C"))
    reindex.verify_positions([])

    duplicate = [
        ItemRecord(id="A", column_id="K1", position=0),
        ItemRecord(id="B", column_id="K1", position=0),
    ]
    with pytest.raises(InvariantViolation):
        reindex.verify_positions(duplicate)

    gap = [
        ItemRecord(id="A", column_id="K1", position=0),
        ItemRecord(id="B", column_id="K1", position=2),
    ]
    with pytest.raises(InvariantViolation, match="K1"):
        reindex.verify_positions(gap, container="K1")
