"""Tests for merging progress trees and computing overall progress."""

import pytest

from helpers.progress_merge_helper import calculate_overall_progress, merge_chapters, merge_sections
from models.user_course_progress import ChapterProgress, SectionProgress


def section(section_id, **chapters):
    return SectionProgress(
        sectionId=section_id,
        chapters=[ChapterProgress(chapterId=cid, completed=done) for cid, done in chapters.items()],
    )


def as_state(sections):
    """Order-independent view: {sectionId: {chapterId: completed}}."""
    return {s.sectionId: {c.chapterId: c.completed for c in s.chapters} for s in sections}


EXISTING = [section("s1", c1=False, c2=False), section("s2", c3=True)]

DELTAS = [
    [],
    [section("s1", c1=True)],
    [section("s1", c2=True, c9=True)],
    [section("s3", c4=False)],
    [section("s2", c3=False), section("s1")],
]


# ---- merge_chapters ----


def test_merge_chapters_overlays_matching_chapter():
    existing = [ChapterProgress(chapterId="c1", completed=False)]
    incoming = [ChapterProgress(chapterId="c1", completed=True)]

    merged = merge_chapters(existing, incoming)

    assert [(c.chapterId, c.completed) for c in merged] == [("c1", True)]


def test_merge_chapters_keeps_existing_order_then_new_ones():
    existing = [ChapterProgress(chapterId="c2", completed=False), ChapterProgress(chapterId="c1", completed=False)]
    incoming = [ChapterProgress(chapterId="c3", completed=True), ChapterProgress(chapterId="c1", completed=True)]

    merged = merge_chapters(existing, incoming)

    assert [c.chapterId for c in merged] == ["c2", "c1", "c3"]


def test_merge_chapters_keeps_fields_missing_from_incoming():
    existing = [ChapterProgress(chapterId="c1", completed=False, lastPosition=42)]
    incoming = [ChapterProgress(chapterId="c1", completed=True)]

    merged = merge_chapters(existing, incoming)

    assert merged[0].completed is True
    assert merged[0].model_dump()["lastPosition"] == 42


def test_merge_chapters_does_not_mutate_inputs():
    existing = [ChapterProgress(chapterId="c1", completed=False)]
    incoming = [ChapterProgress(chapterId="c1", completed=True)]

    merge_chapters(existing, incoming)

    assert existing[0].completed is False


# ---- merge_sections ----


def test_merge_overlay_example():
    existing = [section("s1", c1=False, c2=False)]
    incoming = [section("s1", c1=True)]

    merged = merge_sections(existing, incoming)

    assert as_state(merged) == {"s1": {"c1": True, "c2": False}}
    assert calculate_overall_progress(merged) == 50


def test_new_section_is_added_without_touching_others():
    merged = merge_sections(EXISTING, [section("s3", c4=True)])

    assert as_state(merged) == {
        "s1": {"c1": False, "c2": False},
        "s2": {"c3": True},
        "s3": {"c4": True},
    }


def test_shared_section_accumulates_chapters():
    merged = merge_sections([section("s1", c1=True)], [section("s1", c2=True)])

    assert as_state(merged) == {"s1": {"c1": True, "c2": True}}


def test_merge_sections_does_not_mutate_existing():
    existing = [section("s1", c1=False)]

    merge_sections(existing, [section("s1", c1=True, c2=True)])

    assert as_state(existing) == {"s1": {"c1": False}}


def ids(sections):
    return [(s.sectionId, [c.chapterId for c in s.chapters]) for s in sections]


REPEATED_CHAPTER = [
    SectionProgress(
        sectionId="s3",
        chapters=[ChapterProgress(chapterId="c9", completed=True), ChapterProgress(chapterId="c9", completed=False)],
    )
]


def test_repeated_chapter_in_new_section_collapses():
    once = merge_sections(EXISTING, REPEATED_CHAPTER)
    twice = merge_sections(once, REPEATED_CHAPTER)

    assert ids(once) == [("s1", ["c1", "c2"]), ("s2", ["c3"]), ("s3", ["c9"])]
    assert as_state(once)["s3"] == {"c9": False}
    assert ids(twice) == ids(once)
    assert calculate_overall_progress(twice) == calculate_overall_progress(once) == 25


def test_repeated_section_collapses():
    merged = merge_sections([], [section("s1", c1=True), section("s1", c1=False, c2=True)])

    assert ids(merged) == [("s1", ["c1", "c2"])]
    assert as_state(merged) == {"s1": {"c1": False, "c2": True}}


@pytest.mark.parametrize("delta", DELTAS + [REPEATED_CHAPTER])
def test_merge_is_idempotent(delta):
    once = merge_sections(EXISTING, delta)
    twice = merge_sections(once, delta)

    assert as_state(twice) == as_state(once)
    assert ids(twice) == ids(once)
    assert calculate_overall_progress(twice) == calculate_overall_progress(once)


@pytest.mark.parametrize("delta", DELTAS)
def test_merge_preserves_untouched_chapters(delta):
    merged = as_state(merge_sections(EXISTING, delta))
    reported = {(s.sectionId, c.chapterId) for s in delta for c in s.chapters}

    for existing_section in EXISTING:
        for chapter in existing_section.chapters:
            key = (existing_section.sectionId, chapter.chapterId)
            assert chapter.chapterId in merged[existing_section.sectionId]
            if key not in reported:
                assert merged[existing_section.sectionId][chapter.chapterId] == chapter.completed


# ---- calculate_overall_progress ----


def test_zero_chapter_guard():
    assert calculate_overall_progress([]) == 0
    assert calculate_overall_progress([SectionProgress(sectionId="s1", chapters=[])]) == 0


def test_overall_progress_counts_across_sections():
    sections = [section("s1", c1=True, c2=False), section("s2", c3=True, c4=False)]

    assert calculate_overall_progress(sections) == 50


def test_overall_progress_is_not_rounded():
    sections = [section("s1", c1=True, c2=False, c3=False)]

    assert calculate_overall_progress(sections) == pytest.approx(100 / 3)


@pytest.mark.parametrize("delta", DELTAS)
def test_overall_progress_is_bounded(delta):
    progress = calculate_overall_progress(merge_sections(EXISTING, delta))

    assert 0 <= progress <= 100


def test_all_complete_is_100():
    assert calculate_overall_progress([section("s1", c1=True), section("s2", c2=True)]) == 100
