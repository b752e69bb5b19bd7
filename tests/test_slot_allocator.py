from __future__ import annotations

import pytest

from story_pub.core.slot_allocator import slot_state, used_numbers, validate_slot
from story_pub.domain.errors import InvalidSlotError
from story_pub.domain.models import Chapter, ChapterSlot, Epilogue, Numbered, Prologue


def _chapter(chapter_id: str, slot: ChapterSlot, visibility: str = "published") -> Chapter:
    return Chapter(
        chapter_id=chapter_id,
        story_id="story-1",
        slot=slot,
        visibility="published" if visibility == "published" else "hidden",
    )


def test_slot_state_for_empty_story_offers_chapter_one() -> None:
    state = slot_state([])
    assert state.available_numbers == frozenset({1})
    assert state.suggested_number == 1
    assert state.prologue_taken is False
    assert state.epilogue_taken is False


def test_slot_state_surfaces_gap_before_next_number() -> None:
    chapters = [_chapter("a", Numbered(1)), _chapter("b", Numbered(3))]
    state = slot_state(chapters)
    assert state.available_numbers == frozenset({2, 4})
    assert state.suggested_number == 2


def test_slot_state_with_one_two_four_used() -> None:
    chapters = [_chapter("a", Numbered(1)), _chapter("b", Numbered(2)), _chapter("c", Numbered(4))]
    state = slot_state(chapters)
    assert state.available_numbers == frozenset({3, 5})
    assert state.suggested_number == 3


def test_slot_state_reports_taken_prologue_and_epilogue() -> None:
    chapters = [_chapter("p", Prologue()), _chapter("e", Epilogue(), "hidden")]
    state = slot_state(chapters)
    assert state.prologue_taken is True
    assert state.epilogue_taken is True
    assert state.available_numbers == frozenset({1})


def test_slot_state_excludes_chapter_being_edited() -> None:
    chapters = [_chapter("p", Prologue()), _chapter("a", Numbered(1)), _chapter("b", Numbered(2))]
    assert slot_state(chapters, excluding_chapter_id="p").prologue_taken is False
    assert slot_state(chapters, excluding_chapter_id="b").available_numbers == frozenset({2})


def test_used_numbers_ignores_prologue_and_epilogue() -> None:
    chapters = [_chapter("p", Prologue()), _chapter("a", Numbered(7)), _chapter("e", Epilogue())]
    assert used_numbers(chapters) == {7}


def test_validate_rejects_second_prologue_with_kind_field() -> None:
    with pytest.raises(InvalidSlotError) as excinfo:
        validate_slot([_chapter("p", Prologue())], Prologue())
    assert excinfo.value.field == "kind"
    assert "already has a prologue" in excinfo.value.message


def test_validate_rejects_second_epilogue() -> None:
    with pytest.raises(InvalidSlotError) as excinfo:
        validate_slot([_chapter("e", Epilogue(), "hidden")], Epilogue())
    assert excinfo.value.field == "kind"
    assert "already has an epilogue" in excinfo.value.message


def test_validate_allows_resaving_own_prologue_and_epilogue() -> None:
    chapters = [_chapter("p", Prologue()), _chapter("e", Epilogue())]
    validate_slot(chapters, Prologue(), excluding_chapter_id="p")
    validate_slot(chapters, Epilogue(), excluding_chapter_id="e")


def test_validate_rejects_duplicate_number_but_not_own_number() -> None:
    chapters = [_chapter("a", Numbered(1)), _chapter("b", Numbered(2))]
    with pytest.raises(InvalidSlotError) as excinfo:
        validate_slot(chapters, Numbered(2))
    assert excinfo.value.field == "number"
    validate_slot(chapters, Numbered(2), excluding_chapter_id="b")
    validate_slot(chapters, Numbered(5))


@pytest.mark.parametrize("number", [0, -3])
def test_validate_rejects_non_positive_numbers(number: int) -> None:
    with pytest.raises(InvalidSlotError) as excinfo:
        validate_slot([], Numbered(number))
    assert excinfo.value.field == "number"


def test_validate_has_no_upper_bound_on_numbers() -> None:
    validate_slot([_chapter("e", Epilogue())], Numbered(1000))
    validate_slot([], Numbered(25_000))


def test_validate_rejects_unknown_slot_type() -> None:
    with pytest.raises(TypeError):
        validate_slot([], "prologue")  # type: ignore[arg-type]
