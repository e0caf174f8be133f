"""Immutable board state as seen by the engine.

Columns and items reference each other only by id. Everything derived from
those references (items grouped by column, lookups by id, the ruler column of
a project) is computed from the frozen collections on read.
"""

import dataclasses
from functools import cached_property
from typing import Optional, Tuple

COLUMN = "column"
ITEM = "item"

COLUMN_FIELDS = ("project_id", "name", "position", "is_ruler")
ITEM_FIELDS = ("column_id", "position", "status", "title", "description")

TODO = "todo"
IN_PROGRESS = "in_progress"
COMPLETE = "complete"
STATUSES = (TODO, IN_PROGRESS, COMPLETE)


@dataclasses.dataclass(frozen=True)
class ColumnRecord:
    id: str
    project_id: str
    name: str
    position: int
    is_ruler: bool = False

    def replace(self, **changes):
        return dataclasses.replace(self, **changes)


@dataclasses.dataclass(frozen=True)
class ItemRecord:
    id: str
    column_id: str
    position: int
    status: str = "todo"
    title: str = ""
    description: str = ""

    def replace(self, **changes):
        return dataclasses.replace(self, **changes)


def by_position(entities):
    return sorted(entities, key=lambda entity: (entity.position, entity.id))


@dataclasses.dataclass(frozen=True)
class BoardSnapshot:
    """A complete, immutable copy of the columns and items of one or more projects."""

    columns: Tuple[ColumnRecord, ...] = ()
    items: Tuple[ItemRecord, ...] = ()

    def __post_init__(self):
        # Canonical order, so two snapshots holding the same records compare equal.
        columns = sorted(self.columns, key=lambda c: (c.project_id, c.position, c.id))
        items = sorted(self.items, key=lambda i: (i.column_id, i.position, i.id))
        object.__setattr__(self, "columns", tuple(columns))
        object.__setattr__(self, "items", tuple(items))

    def replace(self, columns=None, items=None):
        return BoardSnapshot(
            columns=self.columns if columns is None else columns,
            items=self.items if items is None else items,
        )

    @cached_property
    def _columns_by_id(self):
        return {column.id: column for column in self.columns}

    @cached_property
    def _items_by_id(self):
        return {item.id: item for item in self.items}

    @cached_property
    def _items_by_column(self):
        grouped = {}
        for item in self.items:
            grouped.setdefault(item.column_id, []).append(item)
        return {column_id: by_position(items) for column_id, items in grouped.items()}

    def column(self, column_id) -> Optional[ColumnRecord]:
        return self._columns_by_id.get(column_id)

    def item(self, item_id) -> Optional[ItemRecord]:
        return self._items_by_id.get(item_id)

    def project_ids(self):
        return sorted({column.project_id for column in self.columns})

    def columns_for(self, project_id):
        return by_position(c for c in self.columns if c.project_id == project_id)

    def items_in(self, column_id):
        return list(self._items_by_column.get(column_id, ()))

    def project_of_item(self, item_id):
        item = self.item(item_id)
        if item is None:
            return None
        column = self.column(item.column_id)
        return column.project_id if column else None

    def ruler_column(self, project_id) -> Optional[ColumnRecord]:
        for column in self.columns_for(project_id):
            if column.is_ruler:
                return column
        return None

    def entity(self, entity_type, entity_id):
        if entity_type == COLUMN:
            return self.column(entity_id)
        if entity_type == ITEM:
            return self.item(entity_id)
        return None

    def as_dict(self):
        """Serialize to plain data, ordered the way the board displays it."""
        data = []
        for project_id in self.project_ids():
            for column in self.columns_for(project_id):
                entry = dataclasses.asdict(column)
                entry["items"] = [dataclasses.asdict(item) for item in self.items_in(column.id)]
                data.append(entry)
        return {"columns": data}
