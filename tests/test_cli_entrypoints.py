from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from story_pub.adapters.sqlite_story_store import SQLiteStoryStore
from story_pub.application.chapter_publishing import ChapterPublishingService
from story_pub.cli import api as api_cli
from story_pub.cli import slots as slots_cli
from story_pub.domain.models import Epilogue, Numbered, Prologue


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("story_pub.cli.api.configure_runtime_logging", lambda: True)
    monkeypatch.setattr("story_pub.cli.slots.configure_runtime_logging", lambda: True)


def test_api_cli_calls_uvicorn(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[tuple[tuple[object, ...], dict[str, object]]] = []

    def fake_run(*args: object, **kwargs: object) -> None:
        calls.append((args, kwargs))

    monkeypatch.setattr("story_pub.cli.api.uvicorn.run", fake_run)
    api_cli.main(["--host", "0.0.0.0", "--port", "9000", "--reload"])

    assert len(calls) == 1
    args, kwargs = calls[0]
    assert args == ("story_pub.api.app:create_app",)
    assert kwargs["factory"] is True
    assert kwargs["host"] == "0.0.0.0"
    assert kwargs["port"] == 9000
    assert kwargs["reload"] is True


def test_api_cli_sets_db_path_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STORY_PUB_DB_PATH", "work/local/previous.db")
    monkeypatch.setattr("story_pub.cli.api.uvicorn.run", lambda *args, **kwargs: None)
    api_cli.main(["--db-path", "work/local/custom.db"])
    assert os.environ["STORY_PUB_DB_PATH"] == "work/local/custom.db"


def test_slots_cli_prints_report(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    db_path = tmp_path / "slots.db"
    service = ChapterPublishingService(SQLiteStoryStore(db_path))
    story = service.create_story(title="Gaps")
    service.create_chapter(story.story_id, slot=Epilogue(), visibility="published", title="E")
    service.create_chapter(story.story_id, slot=Numbered(3), visibility="hidden", title="Three")
    service.create_chapter(story.story_id, slot=Prologue(), visibility="published", title="P")

    code = slots_cli.main(["--story-id", story.story_id, "--db-path", str(db_path)])

    assert code == 0
    report = json.loads(capsys.readouterr().out)
    assert report["status"] == "draft"
    assert report["available_numbers"] == [1, 2, 4]
    assert report["suggested_number"] == 1
    assert report["prologue_taken"] is True
    assert report["epilogue_taken"] is True
    assert [item["order_key"] for item in report["chapters"]] == [0, 3, 1000]


def test_slots_cli_excluding_chapter(tmp_path: Path) -> None:
    service = ChapterPublishingService(SQLiteStoryStore(tmp_path / "slots.db"))
    story = service.create_story(title="Edit")
    only = service.create_chapter(
        story.story_id, slot=Numbered(2), visibility="published", title="Two"
    )
    report = slots_cli.slot_report(
        service, story_id=story.story_id, excluding_chapter_id=only.chapter.chapter_id
    )
    assert report["available_numbers"] == [1]
    assert len(report["chapters"]) == 1


def test_slots_cli_missing_story_exits_nonzero(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    code = slots_cli.main(["--story-id", "missing", "--db-path", str(tmp_path / "empty.db")])
    assert code == 1
    assert "Story not found: missing" in capsys.readouterr().err
