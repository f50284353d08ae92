from app.models.base import Base, TimestampMixin
from app.models.event import VARIATIONS, Variation, VisitorEvent
from app.models.project import Project

__all__ = [
    "Base",
    "TimestampMixin",
    "VARIATIONS",
    "Variation",
    "VisitorEvent",
    "Project",
]
