import functools
import uuid

from . import moves
from .activity import default_recorder
from .drag import DragController
from .pipeline import Mutation, MutationPipeline
from .records import TODO, ColumnRecord, ItemRecord
from .remote import DatabaseRemote
from .ruler import RulerRule
from .store import BoardStore


def new_id():
    return str(uuid.uuid4())


class BoardEngine:
    """One locally held board together with everything that may change it.

    The store is only written through the pipeline; drags go through
    :attr:`drag`, the other operations build their mutations here.
    """

    def __init__(self, remote, snapshot=None, recorder=None, rules=None, retry_options=None):
        self.store = BoardStore(snapshot)
        if rules is None:
            rules = [RulerRule()]
        self.pipeline = MutationPipeline(
            self.store, remote, recorder=recorder, rules=rules, retry_options=retry_options
        )
        self.drag = DragController(self.pipeline)

    @classmethod
    async def load(cls, project_id, remote=None, recorder=None, **kwargs):
        """Build an engine holding the current board of ``project_id``."""
        remote = remote or DatabaseRemote()
        snapshot = await remote.fetch_board(str(project_id))
        if recorder is None:
            recorder = default_recorder()
        return cls(remote, snapshot, recorder=recorder, **kwargs)

    @property
    def remote(self):
        return self.pipeline.remote

    def snapshot(self):
        return self.store.snapshot()

    def subscribe(self, listener):
        return self.store.subscribe(listener)

    def is_updating(self, entity_id=None):
        return self.pipeline.is_updating(entity_id)

    def start_drag(self, active_id, active_type):
        return self.drag.start_drag(active_id, active_type)

    async def end_drag(self, over_id=None, over_data=None):
        return await self.drag.end_drag(over_id, over_data)

    def cancel_drag(self):
        return self.drag.cancel_drag()

    async def drain(self):
        await self.pipeline.drain()

    async def move_item(self, item_id, column_id, index=None):
        return await self._apply(
            moves.move_item,
            f"move item {item_id} to {column_id}",
            {item_id},
            item_id=item_id,
            column_id=column_id,
            index=index,
        )

    async def move_column(self, column_id, index):
        return await self._apply(
            moves.move_column,
            f"move column {column_id} to {index}",
            {column_id},
            column_id=column_id,
            index=index,
        )

    async def set_item_status(self, item_id, status):
        return await self._apply(
            moves.set_item_status,
            f"set status of {item_id} to {status}",
            {item_id},
            item_id=item_id,
            status=status,
        )

    async def set_ruler(self, column_id, enabled=True):
        return await self._apply(
            moves.set_ruler,
            f"{'set' if enabled else 'unset'} ruler column {column_id}",
            {column_id},
            column_id=column_id,
            enabled=enabled,
        )

    async def create_column(self, project_id, name, is_ruler=False, column_id=None):
        column = ColumnRecord(
            id=column_id or new_id(),
            project_id=str(project_id),
            name=name,
            position=0,
            is_ruler=is_ruler,
        )
        return await self._apply(
            moves.add_column, f"create column {name}", {column.id}, column=column
        )

    async def create_item(
        self, column_id, title, description="", status=TODO, index=None, item_id=None
    ):
        item = ItemRecord(
            id=item_id or new_id(),
            column_id=column_id,
            position=0,
            status=status,
            title=title,
            description=description,
        )
        return await self._apply(
            moves.add_item, f"create item {title}", {item.id}, item=item, index=index
        )

    async def delete_column(self, column_id):
        return await self._apply(
            moves.remove_column, f"delete column {column_id}", {column_id}, column_id=column_id
        )

    async def delete_item(self, item_id):
        return await self._apply(
            moves.remove_item, f"delete item {item_id}", {item_id}, item_id=item_id
        )

    async def _apply(self, plan, label, entity_ids, **arguments):
        mutation = Mutation(
            plan=functools.partial(plan, **arguments),
            label=label,
            entity_ids=frozenset(entity_ids),
        )
        return await self.pipeline.apply(mutation)
