"""Inspect chapter slots and display order for one stored story."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from story_pub.adapters.observability import configure_runtime_logging
from story_pub.adapters.sqlite_story_store import SQLiteStoryStore
from story_pub.application.chapter_publishing import ChapterPublishingService
from story_pub.core.ordering import order_key
from story_pub.domain.errors import NotFoundError
from story_pub.settings import RuntimeSettings


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Print slot state and chapter order for a story.")
    parser.add_argument("--story-id", required=True)
    parser.add_argument("--excluding-chapter-id", default="")
    parser.add_argument(
        "--db-path",
        default="",
        help="SQLite path (default: STORY_PUB_DB_PATH or work/local/story_pub.db).",
    )
    return parser


def slot_report(
    service: ChapterPublishingService,
    *,
    story_id: str,
    excluding_chapter_id: str | None = None,
) -> dict[str, Any]:
    """Collect story status, free slots, and ordered chapters as plain JSON data."""
    story = service.get_story(story_id)
    state = service.fetch_slot_state(story_id, excluding_chapter_id=excluding_chapter_id)
    return {
        "story_id": story.story_id,
        "status": story.status,
        "available_numbers": sorted(state.available_numbers),
        "suggested_number": state.suggested_number,
        "prologue_taken": state.prologue_taken,
        "epilogue_taken": state.epilogue_taken,
        "chapters": [
            {
                "chapter_id": chapter.chapter_id,
                "kind": chapter.kind,
                "number": chapter.number,
                "order_key": order_key(chapter.slot),
                "visibility": chapter.visibility,
                "title": chapter.title,
            }
            for chapter in service.list_chapters(story_id)
        ],
    }


def main(argv: list[str] | None = None) -> int:
    parsed = build_arg_parser().parse_args(argv)
    configure_runtime_logging()
    raw_db_path = str(parsed.db_path).strip()
    settings = RuntimeSettings.from_env(db_path=Path(raw_db_path) if raw_db_path else None)
    service = ChapterPublishingService(
        SQLiteStoryStore(settings.db_path, busy_timeout_seconds=settings.busy_timeout_seconds)
    )
    excluding = str(parsed.excluding_chapter_id).strip() or None
    try:
        report = slot_report(service, story_id=str(parsed.story_id), excluding_chapter_id=excluding)
    except NotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    print(json.dumps(report, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
