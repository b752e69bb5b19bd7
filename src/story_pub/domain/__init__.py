"""Domain models, errors, and ports for story publishing."""

from story_pub.domain.errors import (
    InvalidSlotError,
    NotFoundError,
    PersistenceError,
    StoryPublishingError,
)
from story_pub.domain.models import (
    Chapter,
    ChapterDeleteResult,
    ChapterSlot,
    ChapterWriteResult,
    Epilogue,
    Numbered,
    Prologue,
    PublishResult,
    SlotState,
    Story,
)
from story_pub.domain.ports import StoryRepository, StoryUnitOfWork

__all__ = [
    "Chapter",
    "ChapterDeleteResult",
    "ChapterSlot",
    "ChapterWriteResult",
    "Epilogue",
    "InvalidSlotError",
    "NotFoundError",
    "Numbered",
    "PersistenceError",
    "Prologue",
    "PublishResult",
    "SlotState",
    "Story",
    "StoryPublishingError",
    "StoryRepository",
    "StoryUnitOfWork",
]
