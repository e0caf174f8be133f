from .activity import ActivityEvent
from .column import Column
from .item import Item
from .project import Project

__all__ = ["Project", "Column", "Item", "ActivityEvent"]
