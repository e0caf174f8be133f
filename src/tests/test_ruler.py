import asyncio

import pytest

from conftest import build_board, order
from tafel.core.engine import MutationStatus
from tafel.core.engine.ruler import RulerRule, relocate_to_ruler


@pytest.fixture
def engine(make_engine):
    return make_engine({"K1": ["A", "B"], "K2": ["C"], "R": ["R1", "R2"]}, ruler="R")


def settled(engine, coroutine):
    async def scenario():
        outcome = await coroutine
        await engine.drain()
        return outcome

    return asyncio.run(scenario())


@pytest.mark.parametrize("item_id", ["A", "B", "C"])
def test_completed_item_moves_to_end_of_ruler(engine, item_id):
    outcome = settled(engine, engine.set_item_status(item_id, "complete"))

    assert outcome.status is MutationStatus.COMMITTED
    [followup] = outcome.followups
    assert followup.status is MutationStatus.COMMITTED
    assert followup.mutation.automated
    assert order(engine.snapshot(), "R") == [("R1", 0), ("R2", 1), (item_id, 2)]
    assert engine.snapshot().item(item_id).status == "complete"
    assert len(engine.remote.commits) == 2


def test_relocation_closes_the_gap_it_leaves(engine):
    settled(engine, engine.set_item_status("A", "complete"))
    assert order(engine.snapshot(), "K1") == [("B", 0)]


def test_relocation_is_recorded_as_automated(engine, recorder):
    settled(engine, engine.set_item_status("A", "complete"))

    moved = [r for r in recorder.records if r.entity_id == "A"]
    assert len(moved) == 1
    assert moved[0].automated
    assert moved[0].payload["new_column_id"] == "R"
    assert moved[0].payload["new_position"] == 2
    assert all(r.automated for r in recorder.records)


def test_other_statuses_stay_put(engine):
    outcome = settled(engine, engine.set_item_status("A", "in_progress"))

    assert outcome.followups == []
    assert engine.snapshot().item("A").column_id == "K1"


def test_without_ruler_items_stay_put(make_engine):
    engine = make_engine({"K1": ["A"], "K2": []})

    outcome = settled(engine, engine.set_item_status("A", "complete"))

    assert outcome.followups == []
    assert engine.snapshot().item("A").column_id == "K1"


def test_item_already_in_ruler_stays_put(engine):
    outcome = settled(engine, engine.set_item_status("R1", "complete"))

    assert outcome.followups == []
    assert order(engine.snapshot(), "R") == [("R1", 0), ("R2", 1)]


def test_completing_a_completed_item_does_nothing(make_engine):
    board = build_board({"K1": ["A"], "R": []}, ruler="R")
    board = board.replace(items=[board.item("A").replace(status="complete")])
    engine = make_engine(snapshot=board)

    outcome = settled(engine, engine.set_item_status("A", "complete"))

    assert outcome.status is MutationStatus.NOOP
    assert engine.snapshot().item("A").column_id == "K1"


def test_drag_into_done_column_triggers_relocation(make_engine):
    engine = make_engine({"Todo": ["A"], "Done": [], "Archive": ["Z"]}, ruler="Archive")

    async def scenario():
        engine.start_drag("A", "item")
        outcome = await engine.end_drag("Done", {"type": "column"})
        await engine.drain()
        return outcome

    outcome = asyncio.run(scenario())

    assert outcome.status is MutationStatus.COMMITTED
    assert [f.status for f in outcome.followups] == [MutationStatus.COMMITTED]
    assert order(engine.snapshot(), "Done") == []
    assert order(engine.snapshot(), "Archive") == [("Z", 0), ("A", 1)]


def test_ruler_status_comes_from_settings(make_engine, settings):
    settings.TAFEL_RULER_STATUS = "in_progress"
    engine = make_engine({"K1": ["A"], "R": []}, ruler="R")

    settled(engine, engine.set_item_status("A", "in_progress"))

    assert engine.snapshot().item("A").column_id == "R"


def test_rule_status_overrides_settings(make_engine):
    engine = make_engine({"K1": ["A", "B"], "R": []}, ruler="R", rules=[RulerRule("in_progress")])

    settled(engine, engine.set_item_status("A", "complete"))
    settled(engine, engine.set_item_status("B", "in_progress"))

    assert engine.snapshot().item("A").column_id == "K1"
    assert engine.snapshot().item("B").column_id == "R"


def test_switching_ruler_never_shows_two(engine):
    seen = []
    engine.subscribe(seen.append)

    outcome = settled(engine, engine.set_ruler("K2"))

    assert outcome.status is MutationStatus.COMMITTED
    assert [c.id for c in engine.snapshot().columns if c.is_ruler] == ["K2"]
    for snapshot in seen:
        assert len([c for c in snapshot.columns if c.is_ruler]) == 1
    [changes] = engine.remote.commits
    assert [u.as_row() for u in changes.column_updates] == [
        {"id": "R", "fields": {"is_ruler": False}},
        {"id": "K2", "fields": {"is_ruler": True}},
    ]


def test_unset_ruler(engine):
    settled(engine, engine.set_ruler("R", enabled=False))

    assert engine.snapshot().ruler_column("p1") is None


def test_relocate_to_ruler_ignores_items_without_the_status():
    board = build_board({"K1": ["A"], "R": []}, ruler="R")
    assert relocate_to_ruler(board, "A", "complete") is board
    assert relocate_to_ruler(board, "missing", "complete") is board
