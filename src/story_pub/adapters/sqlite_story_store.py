"""SQLite-backed persistence for stories and their chapter slots."""

from __future__ import annotations

import logging
import sqlite3
import threading
import weakref
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from uuid import uuid4

from story_pub.core.slot_allocator import EPILOGUE_TAKEN_MESSAGE, PROLOGUE_TAKEN_MESSAGE
from story_pub.domain.errors import (
    InvalidSlotError,
    NotFoundError,
    PersistenceError,
    StoryPublishingError,
)
from story_pub.domain.models import (
    Chapter,
    ChapterSlot,
    Epilogue,
    Numbered,
    Prologue,
    Story,
    StoryStatus,
    Visibility,
    slot_from_kind,
    slot_kind,
)

logger = logging.getLogger(__name__)

_CHAPTER_COLUMNS = (
    "chapter_id, story_id, kind, number, visibility, title, created_at_utc, updated_at_utc"
)
_STORY_COLUMNS = "story_id, title, status, created_at_utc, updated_at_utc"


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()


def _slot_columns(slot: ChapterSlot) -> tuple[str, int | None]:
    number = slot.number if isinstance(slot, Numbered) else None
    return slot_kind(slot), number


def _story_from_row(row: sqlite3.Row) -> Story:
    status = str(row["status"])
    if status not in ("draft", "published"):
        raise PersistenceError(f"Unexpected story status in storage: {status!r}")
    return Story(
        story_id=str(row["story_id"]),
        title=str(row["title"]),
        status="published" if status == "published" else "draft",
        created_at_utc=str(row["created_at_utc"]),
        updated_at_utc=str(row["updated_at_utc"]),
    )


def _chapter_from_row(row: sqlite3.Row) -> Chapter:
    raw_number = row["number"]
    visibility = str(row["visibility"])
    if visibility not in ("published", "hidden"):
        raise PersistenceError(f"Unexpected chapter visibility in storage: {visibility!r}")
    try:
        slot = slot_from_kind(str(row["kind"]), None if raw_number is None else int(raw_number))
    except ValueError as exc:
        raise PersistenceError(f"Malformed chapter slot in storage: {exc}") from exc
    return Chapter(
        chapter_id=str(row["chapter_id"]),
        story_id=str(row["story_id"]),
        slot=slot,
        visibility="published" if visibility == "published" else "hidden",
        title=str(row["title"]),
        created_at_utc=str(row["created_at_utc"]),
        updated_at_utc=str(row["updated_at_utc"]),
    )


def _integrity_error(exc: sqlite3.IntegrityError, slot: ChapterSlot) -> StoryPublishingError:
    if "UNIQUE" not in str(exc):
        return PersistenceError(f"Chapter write rejected by storage: {exc}")
    if isinstance(slot, Prologue):
        return InvalidSlotError("kind", PROLOGUE_TAKEN_MESSAGE)
    if isinstance(slot, Epilogue):
        return InvalidSlotError("kind", EPILOGUE_TAKEN_MESSAGE)
    number = slot.number if isinstance(slot, Numbered) else None
    return InvalidSlotError("number", f"Chapter number {number} is already used in this story.")


class SQLiteStoryUnit:
    """Reads and writes for one story on a connection holding its write transaction."""

    def __init__(self, *, connection: sqlite3.Connection, story_id: str) -> None:
        self._connection = connection
        self._story_id = story_id

    @property
    def story_id(self) -> str:
        return self._story_id

    def get_story(self) -> Story:
        row = self._connection.execute(
            f"SELECT {_STORY_COLUMNS} FROM stories WHERE story_id = ?",
            (self._story_id,),
        ).fetchone()
        if row is None:
            raise NotFoundError("story", self._story_id)
        return _story_from_row(row)

    def list_chapters(self) -> list[Chapter]:
        rows = self._connection.execute(
            f"SELECT {_CHAPTER_COLUMNS} FROM chapters "
            "WHERE story_id = ? ORDER BY created_at_utc, chapter_id",
            (self._story_id,),
        ).fetchall()
        return [_chapter_from_row(row) for row in rows]

    def get_chapter(self, chapter_id: str) -> Chapter | None:
        row = self._connection.execute(
            f"SELECT {_CHAPTER_COLUMNS} FROM chapters WHERE chapter_id = ? AND story_id = ?",
            (chapter_id, self._story_id),
        ).fetchone()
        if row is None:
            return None
        return _chapter_from_row(row)

    def insert_chapter(self, *, slot: ChapterSlot, visibility: Visibility, title: str) -> Chapter:
        chapter_id = uuid4().hex
        now = _utc_now()
        kind, number = _slot_columns(slot)
        try:
            self._connection.execute(
                f"""
                INSERT INTO chapters ({_CHAPTER_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (chapter_id, self._story_id, kind, number, visibility, title, now, now),
            )
        except sqlite3.IntegrityError as exc:
            raise _integrity_error(exc, slot) from exc
        return Chapter(
            chapter_id=chapter_id,
            story_id=self._story_id,
            slot=slot,
            visibility=visibility,
            title=title,
            created_at_utc=now,
            updated_at_utc=now,
        )

    def update_chapter(
        self,
        *,
        chapter_id: str,
        slot: ChapterSlot,
        visibility: Visibility,
        title: str,
    ) -> Chapter:
        now = _utc_now()
        kind, number = _slot_columns(slot)
        try:
            cursor = self._connection.execute(
                """
                UPDATE chapters
                SET kind = ?, number = ?, visibility = ?, title = ?, updated_at_utc = ?
                WHERE chapter_id = ? AND story_id = ?
                """,
                (kind, number, visibility, title, now, chapter_id, self._story_id),
            )
        except sqlite3.IntegrityError as exc:
            raise _integrity_error(exc, slot) from exc
        if cursor.rowcount == 0:
            raise NotFoundError("chapter", chapter_id)
        updated = self.get_chapter(chapter_id)
        if updated is None:
            raise PersistenceError("Updated chapter could not be loaded.")
        return updated

    def delete_chapter(self, chapter_id: str) -> bool:
        cursor = self._connection.execute(
            "DELETE FROM chapters WHERE chapter_id = ? AND story_id = ?",
            (chapter_id, self._story_id),
        )
        return cursor.rowcount > 0

    def set_story_status(self, status: StoryStatus) -> Story:
        self._connection.execute(
            "UPDATE stories SET status = ?, updated_at_utc = ? WHERE story_id = ?",
            (status, _utc_now(), self._story_id),
        )
        return self.get_story()


class SQLiteStoryStore:
    """Persist stories and chapters in one SQLite database.

    Writes for a story go through `story_transaction`, which serializes them
    per story inside this process and takes SQLite's write lock (`BEGIN IMMEDIATE`)
    so other processes sharing the file queue behind it.
    """

    def __init__(self, db_path: Path, *, busy_timeout_seconds: float = 30.0) -> None:
        self._db_path = db_path
        self._busy_timeout_seconds = busy_timeout_seconds
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._locks_guard = threading.Lock()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize_schema()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(
            str(self._db_path),
            timeout=self._busy_timeout_seconds,
            isolation_level=None,
            check_same_thread=False,
        )
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON")
        return connection

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        try:
            connection = self._connect()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Could not open story database: {exc}") from exc
        try:
            yield connection
        except sqlite3.Error as exc:
            raise PersistenceError(str(exc)) from exc
        finally:
            connection.close()

    def _initialize_schema(self) -> None:
        with self._connection() as connection:
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS stories (
                    story_id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    status TEXT NOT NULL CHECK (status IN ('draft', 'published')),
                    created_at_utc TEXT NOT NULL,
                    updated_at_utc TEXT NOT NULL
                )
                """
            )
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS chapters (
                    chapter_id TEXT PRIMARY KEY,
                    story_id TEXT NOT NULL,
                    kind TEXT NOT NULL CHECK (kind IN ('prologue', 'chapter', 'epilogue')),
                    number INTEGER,
                    visibility TEXT NOT NULL CHECK (visibility IN ('published', 'hidden')),
                    title TEXT NOT NULL,
                    created_at_utc TEXT NOT NULL,
                    updated_at_utc TEXT NOT NULL,
                    CHECK (
                        (kind = 'chapter' AND number IS NOT NULL AND number >= 1)
                        OR (kind != 'chapter' AND number IS NULL)
                    ),
                    FOREIGN KEY (story_id) REFERENCES stories(story_id)
                )
                """
            )
            connection.execute(
                """
                CREATE UNIQUE INDEX IF NOT EXISTS uq_chapters_prologue
                ON chapters(story_id) WHERE kind = 'prologue'
                """
            )
            connection.execute(
                """
                CREATE UNIQUE INDEX IF NOT EXISTS uq_chapters_epilogue
                ON chapters(story_id) WHERE kind = 'epilogue'
                """
            )
            connection.execute(
                """
                CREATE UNIQUE INDEX IF NOT EXISTS uq_chapters_number
                ON chapters(story_id, number) WHERE kind = 'chapter'
                """
            )

    def _story_lock(self, story_id: str) -> threading.Lock:
        """Shared lock for a story; the entry is dropped once no caller holds it."""
        with self._locks_guard:
            lock = self._locks.get(story_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[story_id] = lock
            return lock

    @contextmanager
    def story_transaction(self, story_id: str) -> Iterator[SQLiteStoryUnit]:
        """Run reads and writes for one story as a single serialized transaction."""
        with self._story_lock(story_id), self._connection() as connection:
            connection.execute("BEGIN IMMEDIATE")
            try:
                unit = SQLiteStoryUnit(connection=connection, story_id=story_id)
                unit.get_story()
                yield unit
                connection.execute("COMMIT")
            except BaseException:
                if connection.in_transaction:
                    connection.execute("ROLLBACK")
                    logger.debug("story.transaction_rolled_back story_id=%s", story_id)
                raise

    def create_story(self, *, title: str) -> Story:
        """Create a story; new stories always start as drafts."""
        now = _utc_now()
        story_id = uuid4().hex
        with self._connection() as connection:
            connection.execute(
                f"INSERT INTO stories ({_STORY_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
                (story_id, title, "draft", now, now),
            )
        story = self.get_story(story_id=story_id)
        if story is None:
            raise PersistenceError("Created story could not be loaded.")
        return story

    def get_story(self, *, story_id: str) -> Story | None:
        with self._connection() as connection:
            row = connection.execute(
                f"SELECT {_STORY_COLUMNS} FROM stories WHERE story_id = ?",
                (story_id,),
            ).fetchone()
        if row is None:
            return None
        return _story_from_row(row)

    def list_stories(self, *, limit: int = 100) -> list[Story]:
        """Return recently updated stories."""
        with self._connection() as connection:
            rows = connection.execute(
                f"SELECT {_STORY_COLUMNS} FROM stories ORDER BY updated_at_utc DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [_story_from_row(row) for row in rows]

    def get_chapter(self, *, chapter_id: str) -> Chapter | None:
        with self._connection() as connection:
            row = connection.execute(
                f"SELECT {_CHAPTER_COLUMNS} FROM chapters WHERE chapter_id = ?",
                (chapter_id,),
            ).fetchone()
        if row is None:
            return None
        return _chapter_from_row(row)

    def list_chapters(self, *, story_id: str) -> list[Chapter]:
        with self._connection() as connection:
            rows = connection.execute(
                f"SELECT {_CHAPTER_COLUMNS} FROM chapters "
                "WHERE story_id = ? ORDER BY created_at_utc, chapter_id",
                (story_id,),
            ).fetchall()
        return [_chapter_from_row(row) for row in rows]
