"""
Merging of client-reported progress into a stored progress tree.

Everything here is pure: inputs are never mutated and fresh objects are
returned, so the same delta can be merged any number of times with the
same result.
"""
from typing import Dict, List, Sequence

from models.user_course_progress import ChapterProgress, SectionProgress


def merge_chapters(
    existing: Sequence[ChapterProgress],
    incoming: Sequence[ChapterProgress],
) -> List[ChapterProgress]:
    """
    Keyed union of two chapter lists by chapterId.

    Incoming fields win over existing ones; fields the incoming entry does
    not carry are kept. Order is existing chapters first, then chapters
    that only appear in incoming.
    """
    merged: Dict[str, dict] = {}

    for chapter in existing:
        merged[chapter.chapterId] = chapter.model_dump()

    for chapter in incoming:
        overlay = chapter.model_dump(exclude_unset=True)
        overlay["chapterId"] = chapter.chapterId
        merged[chapter.chapterId] = {**merged.get(chapter.chapterId, {}), **overlay}

    return [ChapterProgress(**fields) for fields in merged.values()]


def merge_sections(
    existing: Sequence[SectionProgress],
    incoming: Sequence[SectionProgress],
) -> List[SectionProgress]:
    """
    Keyed union of two section lists by sectionId.

    Sections present on both sides get their chapters merged with
    merge_chapters rather than replaced. Repeated ids within incoming
    collapse the same way, last one winning.
    """
    merged: Dict[str, SectionProgress] = {}

    for section in existing:
        merged[section.sectionId] = section.model_copy(deep=True)

    for section in incoming:
        current = merged.get(section.sectionId)
        merged[section.sectionId] = SectionProgress(
            sectionId=section.sectionId,
            chapters=merge_chapters(current.chapters if current else [], section.chapters),
        )

    return list(merged.values())


def calculate_overall_progress(sections: Sequence[SectionProgress]) -> float:
    """Percentage of completed chapters, 0 when there are no chapters at all."""
    total_chapters = sum(len(section.chapters) for section in sections)
    completed_chapters = sum(
        1 for section in sections for chapter in section.chapters if chapter.completed
    )

    if total_chapters == 0:
        return 0
    return completed_chapters / total_chapters * 100
