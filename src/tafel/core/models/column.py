from django.db import models
from django.db.models import Q

from .base import TafelModel


class Column(TafelModel):
    project = models.ForeignKey(
        "Project", on_delete=models.CASCADE, related_name="columns"
    )
    name = models.CharField(max_length=100)
    position = models.IntegerField(default=0)
    is_ruler = models.BooleanField(
        default=False,
        help_text="Items whose status becomes complete are moved into this column",
    )

    class Meta:
        ordering = ["project", "position", "name"]
        unique_together = [["project", "name"]]
        constraints = [
            models.UniqueConstraint(
                fields=["project"],
                condition=Q(is_ruler=True),
                name="unique_ruler_column_per_project",
            )
        ]

    def __str__(self):
        return f"{self.project.name} - {self.name}"
