from django.db import models

from .base import TafelModel


class ActivityEvent(TafelModel):
    """A committed change to a column or item, kept for the activity log."""

    class EventType(models.TextChoices):
        INSERT = "insert", "Created"
        UPDATE_COLUMN = "update_column", "Moved"
        DELETE = "delete", "Deleted"

    project = models.ForeignKey(
        "Project",
        on_delete=models.CASCADE,
        related_name="activity",
        null=True,
        blank=True,
    )
    entity_id = models.UUIDField(db_index=True)
    event_type = models.CharField(max_length=20, choices=EventType.choices)
    payload = models.JSONField(default=dict, blank=True)
    automated = models.BooleanField(
        default=False, help_text="Caused by an automation rule rather than a user"
    )

    class Meta:
        ordering = ["created_at"]
        verbose_name_plural = "activity events"

    def __str__(self):
        origin = " (automated)" if self.automated else ""
        return f"{self.get_event_type_display()} {self.entity_id}{origin}"
