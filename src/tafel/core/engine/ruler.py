"""The ruler column automation.

A project may designate one column as its ruler. When an item's status turns
to the terminal value, the item is moved to the end of that column by a
follow-up mutation, flagged as automated.
"""

import functools
import logging

from . import moves, reindex
from .conf import get_setting
from .pipeline import Mutation

logger = logging.getLogger(__name__)


def relocate_to_ruler(board, item_id, status):
    item = board.item(item_id)
    if item is None or item.status != status:
        return board
    ruler = board.ruler_column(board.project_of_item(item_id))
    if ruler is None or item.column_id == ruler.id:
        return board
    tail = reindex.tail_position(board.items_in(ruler.id))
    return moves.move_item(board, item_id, ruler.id, index=tail)


class RulerRule:
    def __init__(self, status=None):
        self._status = status

    @property
    def status(self):
        return self._status or get_setting("TAFEL_RULER_STATUS")

    def after_commit(self, before, after, changes):
        """Yield a relocation for every item that just became terminal."""
        status = self.status
        for update in changes.item_updates:
            if update.fields.get("status") != status:
                continue
            if before.item(update.id).status == status:
                continue
            item = after.item(update.id)
            ruler = after.ruler_column(after.project_of_item(update.id))
            if ruler is None or item.column_id == ruler.id:
                continue
            logger.info("Moving completed item %s to ruler column %s", item.id, ruler.name)
            yield Mutation(
                plan=functools.partial(relocate_to_ruler, item_id=item.id, status=status),
                label=f"move {item.id} to ruler column",
                automated=True,
                entity_ids=frozenset({item.id}),
            )
