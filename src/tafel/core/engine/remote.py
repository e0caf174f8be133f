"""The remote data service the engine writes through.

:class:`RemoteService` is the interface the pipeline relies on;
:class:`DatabaseRemote` implements it on top of the Django models, running the
ORM in a worker thread and translating database errors into the engine's
error taxonomy.
"""

import logging
from contextlib import contextmanager

from asgiref.sync import sync_to_async
from django.core.exceptions import ObjectDoesNotExist
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, IntegrityError, InterfaceError, OperationalError, transaction
from django.utils import timezone

from tafel.core.models import Column, Item

from .changes import diff
from .exceptions import RemoteError, TerminalRemoteError, TransientNetworkError
from .moves import normalize
from .records import BoardSnapshot, ColumnRecord, ItemRecord

logger = logging.getLogger(__name__)


class RemoteService:
    """CRUD facade over the store that holds the board of record.

    Rows passed to the bulk methods are ``{"id": ..., "fields": {...}}``.
    Position writes are idempotent, so every method may safely be called
    again after a transient failure.
    """

    supports_bulk = False

    async def fetch_board(self, project_id):
        raise NotImplementedError

    async def update_column(self, column_id, fields):
        raise NotImplementedError

    async def update_item(self, item_id, fields):
        raise NotImplementedError

    async def create_column(self, column):
        raise NotImplementedError

    async def create_item(self, item):
        raise NotImplementedError

    async def delete_column(self, column_id):
        raise NotImplementedError

    async def delete_item(self, item_id):
        raise NotImplementedError

    async def update_column_position(self, column_id, position):
        await self.update_column(column_id, {"position": position})

    async def update_item_placement(self, item_id, position, column_id=None):
        fields = {"position": position}
        if column_id is not None:
            fields["column_id"] = column_id
        await self.update_item(item_id, fields)

    async def bulk_update_columns(self, rows):
        for row in rows:
            await self.update_column(row["id"], row["fields"])

    async def bulk_update_items(self, rows):
        for row in rows:
            await self.update_item(row["id"], row["fields"])

    async def commit(self, changes):
        """Write one mutation's :class:`~.changes.ChangeSet`.

        Updates go through the bulk methods when ``supports_bulk`` is set and
        one call per row otherwise. Services that can write several tables in
        one transaction should override this so that a mutation lands
        completely or not at all.
        """
        for column in changes.created_columns:
            await self.create_column(column)
        for item in changes.created_items:
            await self.create_item(item)
        if self.supports_bulk:
            if changes.column_updates:
                await self.bulk_update_columns([u.as_row() for u in changes.column_updates])
            if changes.item_updates:
                await self.bulk_update_items([u.as_row() for u in changes.item_updates])
        else:
            for update in changes.column_updates:
                await self.update_column(update.id, dict(update.fields))
            for update in changes.item_updates:
                await self.update_item(update.id, dict(update.fields))
        for item_id in changes.deleted_items:
            await self.delete_item(item_id)
        for column_id in changes.deleted_columns:
            await self.delete_column(column_id)


@contextmanager
def translate_errors():
    try:
        yield
    except RemoteError:
        raise
    except (OperationalError, InterfaceError) as error:
        raise TransientNetworkError.from_error(error) from error
    except (ObjectDoesNotExist, IntegrityError, DjangoValidationError, DatabaseError) as error:
        raise TerminalRemoteError.from_error(error) from error


def column_record(column):
    return ColumnRecord(
        id=str(column.pk),
        project_id=str(column.project_id),
        name=column.name,
        position=column.position,
        is_ruler=column.is_ruler,
    )


def item_record(item):
    return ItemRecord(
        id=str(item.pk),
        column_id=str(item.column_id),
        position=item.position,
        status=item.status,
        title=item.title,
        description=item.description,
    )


class DatabaseRemote(RemoteService):
    supports_bulk = True

    async def fetch_board(self, project_id):
        with translate_errors():
            return await sync_to_async(self.load_board)(project_id)

    async def update_column(self, column_id, fields):
        await self.bulk_update_columns([{"id": column_id, "fields": fields}])

    async def update_item(self, item_id, fields):
        await self.bulk_update_items([{"id": item_id, "fields": fields}])

    async def bulk_update_columns(self, rows):
        await self._atomic(self._update_rows, Column, rows)

    async def bulk_update_items(self, rows):
        await self._atomic(self._update_rows, Item, rows)

    async def create_column(self, column):
        await self._atomic(self._create_column, column)

    async def create_item(self, item):
        await self._atomic(self._create_item, item)

    async def delete_column(self, column_id):
        await self._atomic(self._delete, Column, column_id)

    async def delete_item(self, item_id):
        await self._atomic(self._delete, Item, item_id)

    async def commit(self, changes):
        await self._atomic(self.write_changes, changes)

    async def _atomic(self, func, *args):
        def run():
            with transaction.atomic():
                return func(*args)

        with translate_errors():
            return await sync_to_async(run)()

    def load_board(self, project_id):
        columns = Column.objects.filter(project_id=project_id)
        items = Item.objects.filter(column__project_id=project_id)
        return BoardSnapshot(
            columns=[column_record(column) for column in columns],
            items=[item_record(item) for item in items],
        )

    def _update_rows(self, model, rows):
        now = timezone.now()
        for row in rows:
            fields = dict(row["fields"])
            if model is Item and "status" in fields and fields["status"] not in Item.Status.values:
                raise DjangoValidationError(f"Invalid status {fields['status']!r}")
            updated = model.objects.filter(pk=row["id"]).update(updated_at=now, **fields)
            if not updated:
                raise model.DoesNotExist(f"{model.__name__} {row['id']} does not exist")

    def _create_column(self, column):
        Column.objects.update_or_create(
            pk=column.id,
            defaults={
                "project_id": column.project_id,
                "name": column.name,
                "position": column.position,
                "is_ruler": column.is_ruler,
            },
        )

    def _create_item(self, item):
        if item.status not in Item.Status.values:
            raise DjangoValidationError(f"Invalid status {item.status!r}")
        Item.objects.update_or_create(
            pk=item.id,
            defaults={
                "column_id": item.column_id,
                "position": item.position,
                "status": item.status,
                "title": item.title,
                "description": item.description,
            },
        )

    def _delete(self, model, pk):
        # Deleting a row that is already gone is a repeated write, not an error.
        model.objects.filter(pk=pk).delete()

    def write_changes(self, changes):
        """Write a change set synchronously; callers provide the transaction."""
        for column in changes.created_columns:
            self._create_column(column)
        for item in changes.created_items:
            self._create_item(item)
        self._update_rows(Column, [u.as_row() for u in changes.column_updates])
        self._update_rows(Item, [u.as_row() for u in changes.item_updates])
        for item_id in changes.deleted_items:
            self._delete(Item, item_id)
        for column_id in changes.deleted_columns:
            self._delete(Column, column_id)
        logger.debug(
            "Committed %s column and %s item changes",
            len(changes.column_ids),
            len(changes.item_ids),
        )


def renumber_stored_positions(project_id, dry_run=False):
    """Rewrite the stored positions of a project as contiguous sequences.

    Returns the :class:`~.changes.ChangeSet` that was (or, with ``dry_run``,
    would have been) written.
    """
    remote = DatabaseRemote()
    board = remote.load_board(project_id)
    changes = diff(board, normalize(board))
    if changes and not dry_run:
        with transaction.atomic():
            remote.write_changes(changes)
    return changes
