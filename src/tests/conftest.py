import asyncio

import pytest

from tafel.core.engine import BoardEngine, BoardSnapshot, ColumnRecord, ItemRecord
from tafel.core.engine.activity import ActivityRecorder
from tafel.core.engine.remote import RemoteService
from tafel.core.models import Column, Item, Project


class FakeRemote(RemoteService):
    """In-memory remote that records commits and can fail or stall on demand."""

    def __init__(self, snapshot=None):
        self.snapshot = snapshot or BoardSnapshot()
        self.commits = []
        self.attempts = 0
        self.errors = []
        self._gate = None

    def fail_with(self, *errors):
        self.errors.extend(errors)

    def hold(self):
        self._gate = asyncio.Event()

    def release(self):
        self._gate.set()

    async def fetch_board(self, project_id):
        return self.snapshot

    async def commit(self, changes):
        self.attempts += 1
        if self._gate is not None:
            await self._gate.wait()
        if self.errors:
            raise self.errors.pop(0)
        self.commits.append(changes)


class ListRecorder(ActivityRecorder):
    def __init__(self):
        self.records = []

    async def record(self, record):
        self.records.append(record)


def build_board(layout, project_id="p1", ruler=None):
    """Build a snapshot from ``{"column id": ["item id", ...]}``, ids doubling as names."""
    columns = []
    items = []
    for column_position, (column_id, item_ids) in enumerate(layout.items()):
        columns.append(
            ColumnRecord(
                id=column_id,
                project_id=project_id,
                name=column_id,
                position=column_position,
                is_ruler=column_id == ruler,
            )
        )
        for item_position, item_id in enumerate(item_ids):
            items.append(
                ItemRecord(
                    id=item_id,
                    column_id=column_id,
                    position=item_position,
                    title=item_id,
                )
            )
    return BoardSnapshot(columns=columns, items=items)


def order(board, column_id):
    return [(item.id, item.position) for item in board.items_in(column_id)]


@pytest.fixture(autouse=True)
def fast_retries(settings):
    settings.TAFEL_RETRY_BASE_DELAY = 0


@pytest.fixture
def recorder():
    return ListRecorder()


@pytest.fixture
def make_engine(recorder):
    def make(layout=None, snapshot=None, ruler=None, **kwargs):
        if snapshot is None:
            snapshot = build_board(layout or {}, ruler=ruler)
        remote = FakeRemote(snapshot)
        kwargs.setdefault("recorder", recorder)
        return BoardEngine(remote, snapshot, **kwargs)

    return make


@pytest.fixture
def project(db):
    return Project.objects.create(
        name="Test Project", slug="test-project", description="Test description"
    )


@pytest.fixture
def column(db, project):
    return Column.objects.create(project=project, name="Todo", position=0)


@pytest.fixture
def columns(db, project):
    return [
        Column.objects.create(project=project, name="Todo", position=0),
        Column.objects.create(project=project, name="In Progress", position=1),
        Column.objects.create(project=project, name="Archive", position=2, is_ruler=True),
    ]


@pytest.fixture
def item(db, column):
    return Item.objects.create(column=column, title="Test Item", position=0)


@pytest.fixture
def items(db, columns):
    todo = columns[0]
    return [
        Item.objects.create(column=todo, title="First", position=0),
        Item.objects.create(column=todo, title="Second", position=1),
        Item.objects.create(column=todo, title="Third", position=2),
    ]
