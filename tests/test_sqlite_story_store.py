from __future__ import annotations

import gc
import sqlite3
from pathlib import Path

import pytest

from story_pub.adapters.sqlite_story_store import SQLiteStoryStore
from story_pub.domain.errors import InvalidSlotError, NotFoundError, PersistenceError
from story_pub.domain.models import Epilogue, Numbered, Prologue


def test_story_and_chapter_lifecycle(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    story = store.create_story(title="Hello")
    assert story.status == "draft"

    with store.story_transaction(story.story_id) as unit:
        prologue = unit.insert_chapter(slot=Prologue(), visibility="published", title="Before")
        chapter = unit.insert_chapter(slot=Numbered(1), visibility="hidden", title="One")

    loaded = store.list_chapters(story_id=story.story_id)
    assert {item.chapter_id for item in loaded} == {prologue.chapter_id, chapter.chapter_id}
    fetched = store.get_chapter(chapter_id=chapter.chapter_id)
    assert fetched is not None
    assert fetched.slot == Numbered(1)
    assert fetched.visibility == "hidden"
    assert fetched.title == "One"
    assert store.list_stories()[0].story_id == story.story_id


def test_transaction_rolls_back_on_error(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    story = store.create_story(title="Rollback")

    with pytest.raises(RuntimeError):
        with store.story_transaction(story.story_id) as unit:
            unit.insert_chapter(slot=Numbered(1), visibility="published", title="One")
            unit.set_story_status("published")
            raise RuntimeError("boom")

    assert store.list_chapters(story_id=story.story_id) == []
    reloaded = store.get_story(story_id=story.story_id)
    assert reloaded is not None
    assert reloaded.status == "draft"


def test_unique_indexes_back_slot_invariants(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    story = store.create_story(title="Slots")
    with store.story_transaction(story.story_id) as unit:
        unit.insert_chapter(slot=Prologue(), visibility="published", title="P")
        unit.insert_chapter(slot=Epilogue(), visibility="published", title="E")
        unit.insert_chapter(slot=Numbered(2), visibility="published", title="Two")

    for slot, field in ((Prologue(), "kind"), (Epilogue(), "kind"), (Numbered(2), "number")):
        with pytest.raises(InvalidSlotError) as excinfo:
            with store.story_transaction(story.story_id) as unit:
                unit.insert_chapter(slot=slot, visibility="hidden", title="Dup")
        assert excinfo.value.field == field
    assert len(store.list_chapters(story_id=story.story_id)) == 3


def test_slots_are_scoped_per_story(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    first = store.create_story(title="First")
    second = store.create_story(title="Second")
    for story in (first, second):
        with store.story_transaction(story.story_id) as unit:
            unit.insert_chapter(slot=Prologue(), visibility="published", title="P")
            unit.insert_chapter(slot=Numbered(1), visibility="published", title="One")
    assert len(store.list_chapters(story_id=first.story_id)) == 2
    assert len(store.list_chapters(story_id=second.story_id)) == 2


def test_missing_story_and_chapter_paths(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    assert store.get_story(story_id="missing") is None
    assert store.get_chapter(chapter_id="missing") is None
    with pytest.raises(NotFoundError):
        with store.story_transaction("missing"):
            pass

    story = store.create_story(title="Story")
    with store.story_transaction(story.story_id) as unit:
        assert unit.delete_chapter("missing") is False
        with pytest.raises(NotFoundError):
            unit.update_chapter(
                chapter_id="missing", slot=Numbered(1), visibility="hidden", title="x"
            )


def test_check_constraint_rejects_non_positive_number(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    story = store.create_story(title="Story")
    with pytest.raises(PersistenceError):
        with store.story_transaction(story.story_id) as unit:
            unit.insert_chapter(slot=Numbered(0), visibility="hidden", title="Zero")


def test_corrupt_rows_surface_as_persistence_error(tmp_path: Path) -> None:
    db_path = tmp_path / "stories.db"
    store = SQLiteStoryStore(db_path=db_path)
    story = store.create_story(title="Story")
    connection = sqlite3.connect(str(db_path))
    try:
        connection.execute("DROP TABLE chapters")
        connection.commit()
    finally:
        connection.close()
    with pytest.raises(PersistenceError):
        store.list_chapters(story_id=story.story_id)


def test_story_locks_are_shared_while_held_and_released_after(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    stories = [store.create_story(title=f"Story {index}") for index in range(3)]

    held = store._story_lock(stories[0].story_id)
    assert store._story_lock(stories[0].story_id) is held

    for story in stories:
        with store.story_transaction(story.story_id) as unit:
            unit.insert_chapter(slot=Numbered(1), visibility="published", title="One")
    gc.collect()

    assert set(store._locks.keys()) == {stories[0].story_id}
    del held
    gc.collect()
    assert len(store._locks) == 0
