import dataclasses
import logging
from typing import Any, Dict, Optional

from asgiref.sync import sync_to_async
from django.utils.module_loading import import_string

from tafel.core.models import ActivityEvent

from .conf import get_setting

logger = logging.getLogger(__name__)

INSERT = "insert"
UPDATE_COLUMN = "update_column"
DELETE = "delete"


@dataclasses.dataclass(frozen=True)
class ActivityRecord:
    event_type: str
    entity_id: str
    payload: Dict[str, Any]
    automated: bool = False
    project_id: Optional[str] = None


def records_for(before, after, changes, automated=False):
    """Activity records for a committed change set.

    Created and deleted entities get ``insert`` and ``delete`` records. Every
    entity whose column or position changed gets an ``update_column`` record,
    so a move also reports the neighbours it shifted.
    """
    records = []
    for column in changes.created_columns:
        records.append(
            ActivityRecord(
                INSERT,
                column.id,
                {"kind": "column", "name": column.name, "position": column.position},
                automated,
                column.project_id,
            )
        )
    for item in changes.created_items:
        records.append(
            ActivityRecord(
                INSERT,
                item.id,
                {"kind": "item", "title": item.title, "column_id": item.column_id},
                automated,
                after.project_of_item(item.id),
            )
        )
    for update in changes.column_updates:
        if "position" not in update.fields:
            continue
        old = before.column(update.id)
        records.append(
            ActivityRecord(
                UPDATE_COLUMN,
                update.id,
                {
                    "kind": "column",
                    "old_position": old.position,
                    "new_position": update.fields["position"],
                },
                automated,
                old.project_id,
            )
        )
    for update in changes.item_updates:
        if "position" not in update.fields and "column_id" not in update.fields:
            continue
        old = before.item(update.id)
        new = after.item(update.id)
        records.append(
            ActivityRecord(
                UPDATE_COLUMN,
                update.id,
                {
                    "kind": "item",
                    "old_column_id": old.column_id,
                    "new_column_id": new.column_id,
                    "old_position": old.position,
                    "new_position": new.position,
                },
                automated,
                after.project_of_item(update.id),
            )
        )
    for item_id in changes.deleted_items:
        old = before.item(item_id)
        records.append(
            ActivityRecord(
                DELETE,
                item_id,
                {"kind": "item", "title": old.title, "column_id": old.column_id},
                automated,
                before.project_of_item(item_id),
            )
        )
    for column_id in changes.deleted_columns:
        old = before.column(column_id)
        records.append(
            ActivityRecord(
                DELETE,
                column_id,
                {"kind": "column", "name": old.name},
                automated,
                old.project_id,
            )
        )
    return records


class ActivityRecorder:
    """Receives activity records after mutations commit. The default drops them."""

    async def record(self, record):
        pass


class LoggingActivityRecorder(ActivityRecorder):
    async def record(self, record):
        logger.info(
            "%s %s%s: %s",
            record.event_type,
            record.entity_id,
            " (automated)" if record.automated else "",
            record.payload,
        )


class DatabaseActivityRecorder(ActivityRecorder):
    async def record(self, record):
        await sync_to_async(ActivityEvent.objects.create)(
            project_id=record.project_id,
            entity_id=record.entity_id,
            event_type=record.event_type,
            payload=record.payload,
            automated=record.automated,
        )


def default_recorder():
    """Instantiate the recorder class named by ``TAFEL_ACTIVITY_RECORDER``."""
    return import_string(get_setting("TAFEL_ACTIVITY_RECORDER"))()
