from django.db import models

from .base import TafelModel


class Item(TafelModel):
    """A card on the board."""

    class Status(models.TextChoices):
        TODO = "todo", "To do"
        IN_PROGRESS = "in_progress", "In progress"
        COMPLETE = "complete", "Complete"

    column = models.ForeignKey("Column", on_delete=models.CASCADE, related_name="items")
    title = models.CharField(max_length=500)
    description = models.TextField(blank=True)
    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.TODO
    )
    position = models.IntegerField(default=0)

    class Meta:
        ordering = ["column", "position"]

    def __str__(self):
        return self.title

    @property
    def project(self):
        return self.column.project
