import dataclasses
from typing import Any, Dict, Tuple

from .records import COLUMN_FIELDS, ITEM_FIELDS, ColumnRecord, ItemRecord


@dataclasses.dataclass(frozen=True)
class FieldUpdate:
    id: str
    fields: Dict[str, Any]

    def as_row(self):
        return {"id": self.id, "fields": dict(self.fields)}


@dataclasses.dataclass(frozen=True)
class ChangeSet:
    """The remote writes one mutation consists of, in the order they are applied."""

    created_columns: Tuple[ColumnRecord, ...] = ()
    created_items: Tuple[ItemRecord, ...] = ()
    column_updates: Tuple[FieldUpdate, ...] = ()
    item_updates: Tuple[FieldUpdate, ...] = ()
    deleted_items: Tuple[str, ...] = ()
    deleted_columns: Tuple[str, ...] = ()

    def __bool__(self):
        return any(dataclasses.astuple(self))

    @property
    def column_ids(self):
        return (
            {c.id for c in self.created_columns}
            | {u.id for u in self.column_updates}
            | set(self.deleted_columns)
        )

    @property
    def item_ids(self):
        return (
            {i.id for i in self.created_items}
            | {u.id for u in self.item_updates}
            | set(self.deleted_items)
        )

    @property
    def entity_ids(self):
        return self.column_ids | self.item_ids


def _updates(before, after, fields):
    updates = []
    for entity_id, new in after.items():
        old = before.get(entity_id)
        if old is None:
            continue
        changed = {
            name: getattr(new, name)
            for name in fields
            if getattr(old, name) != getattr(new, name)
        }
        if changed:
            updates.append(FieldUpdate(entity_id, changed))
    return updates


def diff(before, after):
    """Compute the field-level writes that turn ``before`` into ``after``."""
    old_columns = {c.id: c for c in before.columns}
    new_columns = {c.id: c for c in after.columns}
    old_items = {i.id: i for i in before.items}
    new_items = {i.id: i for i in after.items}

    column_updates = _updates(old_columns, new_columns, COLUMN_FIELDS)
    # Clearing a ruler flag must land before another column of the project takes it.
    column_updates.sort(key=lambda update: update.fields.get("is_ruler") is not False)

    return ChangeSet(
        created_columns=tuple(c for c in after.columns if c.id not in old_columns),
        created_items=tuple(i for i in after.items if i.id not in old_items),
        column_updates=tuple(column_updates),
        item_updates=tuple(_updates(old_items, new_items, ITEM_FIELDS)),
        deleted_items=tuple(i.id for i in before.items if i.id not in new_items),
        deleted_columns=tuple(c.id for c in before.columns if c.id not in new_columns),
    )
