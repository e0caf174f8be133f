"""Pointer drags of columns and items.

:class:`DragController` tracks the single drag in progress::

    IDLE -> DRAGGING -> RESOLVING -> COMMITTING -> IDLE
                    \\             \\-> ABORTED -> IDLE
                     \\-> ABORTED -> IDLE

The drop target is resolved against the board as it is when the pointer is
released, turned into a :class:`~.pipeline.Mutation` and handed to the
pipeline. The controller is idle again as soon as the optimistic state is
applied, so the next drag can start while the remote write is still pending.
"""

import dataclasses
import enum
import functools
import logging
from typing import Optional

from . import moves
from .conf import get_setting
from .exceptions import ValidationError
from .pipeline import Mutation, MutationOutcome, MutationStatus
from .records import COLUMN, ITEM

logger = logging.getLogger(__name__)


class DragState(enum.Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    RESOLVING = "resolving"
    COMMITTING = "committing"
    ABORTED = "aborted"


@dataclasses.dataclass(frozen=True)
class DragSession:
    active_id: str
    active_type: str
    origin_column_id: Optional[str] = None
    origin_position: Optional[int] = None


@dataclasses.dataclass(frozen=True)
class DropTarget:
    column_id: str
    index: Optional[int] = None


class DragController:
    def __init__(self, pipeline, status_from_column=None):
        self.pipeline = pipeline
        self.status_from_column = status_from_column
        self.state = DragState.IDLE
        self.session = None

    @property
    def store(self):
        return self.pipeline.store

    def start_drag(self, active_id, active_type):
        """Begin dragging a column or item. Returns whether a session was started."""
        if self.session is not None:
            logger.info(
                "Ignoring drag of %s, %s is still being dragged",
                active_id,
                self.session.active_id,
            )
            return False
        if active_type not in (COLUMN, ITEM):
            logger.warning("Ignoring drag of %s with unknown type %r", active_id, active_type)
            return False
        entity = self.store.snapshot().entity(active_type, active_id)
        if entity is None:
            logger.info("Ignoring drag of unknown %s %s", active_type, active_id)
            return False
        if self.pipeline.is_updating(active_id):
            logger.info("Ignoring drag of %s, its last move is still being saved", active_id)
            return False
        self.session = DragSession(
            active_id=active_id,
            active_type=active_type,
            origin_column_id=entity.column_id if active_type == ITEM else None,
            origin_position=entity.position,
        )
        self.state = DragState.DRAGGING
        return True

    def cancel_drag(self):
        return self._abort("cancelled")

    async def end_drag(self, over_id=None, over_data=None):
        """Drop the dragged entity on ``over_id`` and commit the resulting move.

        ``over_data`` is what the drop target declared about itself: its
        ``type`` (``"item"`` or ``"column"``) and, for columns, the entity
        types it ``accepts``.
        """
        session = self.session
        if session is None or self.state != DragState.DRAGGING:
            return MutationOutcome(MutationStatus.ABORTED)
        if over_id is None:
            return self._abort("dropped outside any target")

        self.state = DragState.RESOLVING
        board = self.store.snapshot()
        try:
            target = self.resolve(board, session, over_id, over_data or {})
        except ValidationError as error:
            logger.info("Invalid drop of %s on %s: %s", session.active_id, over_id, error)
            self._abort(str(error))
            return MutationOutcome(MutationStatus.INVALID, error=error)
        if target is None:
            return self._abort(f"no drop target for {over_id}")

        mutation = self._mutation(board, session, target)
        if mutation.plan(board) == board:
            self._reset()
            return MutationOutcome(MutationStatus.NOOP, mutation)

        self.state = DragState.COMMITTING
        pending = self.pipeline.submit(mutation)
        self._reset()
        return await pending

    def resolve(self, board, session, over_id, over_data):
        """Find where a drop on ``over_id`` should put the dragged entity.

        Returns ``None`` when there is no valid target.
        """
        if over_id == session.active_id:
            if session.active_type == ITEM:
                return DropTarget(session.origin_column_id, session.origin_position)
            return DropTarget(session.active_id)

        over_type = over_data.get("type")
        hovered_item = board.item(over_id) if over_type == ITEM else None
        column = None
        if hovered_item is not None:
            column = board.column(hovered_item.column_id)
        elif over_type == COLUMN and board.column(over_id) is not None:
            accepts = over_data.get("accepts")
            if isinstance(accepts, str):
                accepts = [accepts]
            if accepts is not None and session.active_type not in accepts:
                return None
            column = board.column(over_id)
        elif board.column(over_id) is not None:
            column = board.column(over_id)
        if column is None:
            return None

        active = board.entity(session.active_type, session.active_id)
        if session.active_type == COLUMN:
            project_id = active.project_id
        else:
            project_id = board.project_of_item(active.id)
        if column.project_id != project_id:
            raise ValidationError(
                f"Cannot drop {session.active_id} of project {project_id} "
                f"onto project {column.project_id}."
            )

        if session.active_type == COLUMN:
            return DropTarget(column.id)
        if hovered_item is None:
            return DropTarget(column.id)
        # Index counted with the dragged item still in place.
        siblings = [i.id for i in board.items_in(column.id)]
        return DropTarget(column.id, siblings.index(hovered_item.id))

    def _mutation(self, board, session, target):
        if session.active_type == COLUMN:
            columns = board.columns_for(board.column(session.active_id).project_id)
            index = [c.id for c in columns].index(target.column_id)
            return Mutation(
                plan=functools.partial(moves.move_column, column_id=session.active_id, index=index),
                label=f"move column {session.active_id} to {index}",
                entity_ids=frozenset({session.active_id}),
            )

        changes = {}
        target_column = board.column(target.column_id)
        if (
            target.column_id != session.origin_column_id
            and not target_column.is_ruler
            and self._status_follows_column()
        ):
            status = moves.status_for_column_name(target_column.name)
            if status != board.item(session.active_id).status:
                changes["status"] = status
        return Mutation(
            plan=functools.partial(
                moves.move_item,
                item_id=session.active_id,
                column_id=target.column_id,
                index=target.index,
                **changes,
            ),
            label=f"move item {session.active_id} to {target.column_id}",
            entity_ids=frozenset({session.active_id}),
        )

    def _status_follows_column(self):
        if self.status_from_column is not None:
            return self.status_from_column
        return get_setting("TAFEL_STATUS_FROM_COLUMN")

    def _abort(self, reason):
        if self.session is not None:
            logger.info("Drag of %s aborted: %s", self.session.active_id, reason)
        self.state = DragState.ABORTED
        self._reset()
        return MutationOutcome(MutationStatus.ABORTED)

    def _reset(self):
        self.session = None
        self.state = DragState.IDLE
