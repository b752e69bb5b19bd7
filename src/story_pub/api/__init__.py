"""Public API surface for HTTP serving and Python-first interfaces."""

from story_pub.api.app import create_app
from story_pub.api.python_interface import LastChapterCheck, StoryPublishingClient

__all__ = [
    "LastChapterCheck",
    "StoryPublishingClient",
    "create_app",
]
