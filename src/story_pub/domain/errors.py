"""Errors raised by chapter and story publishing operations."""

from __future__ import annotations

from typing import Literal

SlotField = Literal["kind", "number", "visibility"]


class StoryPublishingError(Exception):
    """Base class for all story_pub failures."""


class InvalidSlotError(StoryPublishingError):
    """Requested chapter slot collides with an occupied one or is malformed."""

    def __init__(self, field: SlotField, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class NotFoundError(StoryPublishingError):
    """Targeted story or chapter no longer exists."""

    def __init__(self, entity: Literal["story", "chapter"], entity_id: str) -> None:
        super().__init__(f"{entity.capitalize()} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class PersistenceError(StoryPublishingError):
    """Storage collaborator failed while reading or writing records."""
