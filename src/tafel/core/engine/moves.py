"""Pure next-state functions for board mutations.

Each function takes a :class:`BoardSnapshot` and returns the snapshot the
board should show afterwards. Nothing here touches the store or the remote
service; the pipeline decides what to do with the result.
"""

from . import reindex
from .exceptions import InvariantViolation, ValidationError
from .records import COMPLETE, IN_PROGRESS, STATUSES, TODO


def status_for_column_name(name):
    """Guess an item status from the name of the column it was dropped into.

    Names that say nothing about progress mean the item is still to do.
    """
    normalized = name.lower()
    if "progress" in normalized:
        return IN_PROGRESS
    if "complete" in normalized or "done" in normalized:
        return COMPLETE
    return TODO


def _require_item(board, item_id):
    item = board.item(item_id)
    if item is None:
        raise ValidationError(f"Unknown item {item_id}.")
    return item


def _require_column(board, column_id):
    column = board.column(column_id)
    if column is None:
        raise ValidationError(f"Unknown column {column_id}.")
    return column


def _swap_items(board, *containers):
    """Replace the items of the given columns with new, already renumbered lists."""
    replaced = {}
    for items in containers:
        for item in items:
            replaced[item.id] = item
    kept = [item for item in board.items if item.id not in replaced]
    return board.replace(items=kept + list(replaced.values()))


def move_item(board, item_id, column_id, index=None, **changes):
    """Move an item to ``index`` of ``column_id`` (appending when index is None)."""
    item = _require_item(board, item_id)
    target = _require_column(board, column_id)
    origin = _require_column(board, item.column_id)
    if origin.project_id != target.project_id:
        raise ValidationError(
            f"Item {item_id} belongs to project {origin.project_id}, "
            f"column {column_id} to project {target.project_id}."
        )
    source_items = board.items_in(origin.id)
    from_index = [i.id for i in source_items].index(item_id)
    if origin.id == target.id:
        if index is None:
            index = len(source_items) - 1
        moved = reindex.move_within(source_items, from_index, index)
        if changes:
            moved = [i.replace(**changes) if i.id == item_id else i for i in moved]
        return _swap_items(board, moved)
    source, destination = reindex.move_between(
        source_items,
        board.items_in(target.id),
        from_index,
        index,
        column_id=target.id,
        **changes,
    )
    return _swap_items(board, source, destination)


def move_column(board, column_id, index):
    column = _require_column(board, column_id)
    columns = board.columns_for(column.project_id)
    from_index = [c.id for c in columns].index(column_id)
    moved = reindex.move_within(columns, from_index, index)
    others = [c for c in board.columns if c.project_id != column.project_id]
    return board.replace(columns=others + moved)


def set_item_status(board, item_id, status):
    if status not in STATUSES:
        raise ValidationError(f"Invalid status {status!r}.")
    item = _require_item(board, item_id)
    items = [i for i in board.items if i.id != item_id] + [item.replace(status=status)]
    return board.replace(items=items)


def set_ruler(board, column_id, enabled=True):
    """Make ``column_id`` the ruler column of its project.

    Any previous ruler of the same project is cleared in the same step.
    """
    column = _require_column(board, column_id)
    columns = []
    for other in board.columns:
        if other.id == column_id:
            other = other.replace(is_ruler=enabled)
        elif enabled and other.project_id == column.project_id and other.is_ruler:
            other = other.replace(is_ruler=False)
        columns.append(other)
    return board.replace(columns=columns)


def add_column(board, column):
    """Append a new column at the end of its project."""
    if board.column(column.id) is not None:
        raise ValidationError(f"Column {column.id} already exists.")
    columns = reindex.insert(board.columns_for(column.project_id), column)
    others = [c for c in board.columns if c.project_id != column.project_id]
    board = board.replace(columns=others + columns)
    if column.is_ruler:
        board = set_ruler(board, column.id)
    return board


def remove_column(board, column_id):
    """Remove a column together with its items and close the gap it leaves."""
    column = _require_column(board, column_id)
    columns = board.columns_for(column.project_id)
    index = [c.id for c in columns].index(column_id)
    remaining = reindex.remove(columns, index)
    others = [c for c in board.columns if c.project_id != column.project_id]
    items = [item for item in board.items if item.column_id != column_id]
    return board.replace(columns=others + remaining, items=items)


def add_item(board, item, index=None):
    """Insert a new item into its column, at the end unless ``index`` is given."""
    if board.item(item.id) is not None:
        raise ValidationError(f"Item {item.id} already exists.")
    _require_column(board, item.column_id)
    if item.status not in STATUSES:
        raise ValidationError(f"Invalid status {item.status!r}.")
    return _swap_items(board, reindex.insert(board.items_in(item.column_id), item, index))


def remove_item(board, item_id):
    item = _require_item(board, item_id)
    items = board.items_in(item.column_id)
    index = [i.id for i in items].index(item_id)
    remaining = reindex.remove(items, index)
    kept = [i for i in board.items if i.column_id != item.column_id]
    return board.replace(items=kept + remaining)


def verify_board(board):
    """Raise :class:`InvariantViolation` unless every ordering invariant holds."""
    if len({c.id for c in board.columns}) != len(board.columns):
        raise InvariantViolation("Duplicate column ids.")
    if len({i.id for i in board.items}) != len(board.items):
        raise InvariantViolation("Duplicate item ids.")
    for project_id in board.project_ids():
        columns = board.columns_for(project_id)
        reindex.verify_positions(columns, container=f"project {project_id}")
        rulers = [c.id for c in columns if c.is_ruler]
        if len(rulers) > 1:
            raise InvariantViolation(
                f"Project {project_id} has {len(rulers)} ruler columns: {rulers}"
            )
    for column_id in {item.column_id for item in board.items}:
        if board.column(column_id) is None:
            raise InvariantViolation(f"Items reference missing column {column_id}.")
    for column in board.columns:
        reindex.verify_positions(board.items_in(column.id), container=f"column {column.id}")


def normalize(board):
    """Renumber every container in its current display order, dropping orphaned items."""
    columns = []
    for project_id in board.project_ids():
        columns.extend(reindex.renumber(board.columns_for(project_id)))
    items = []
    for column in columns:
        items.extend(reindex.renumber(board.items_in(column.id)))
    return board.replace(columns=columns, items=items)
