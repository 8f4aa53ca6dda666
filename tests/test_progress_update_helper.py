"""Tests for applying progress reports to stored progress records."""

import pytest

from helpers.enrollment_helper import bootstrap_enrollment
from helpers.exceptions import ProgressConflictError, ProgressValidationError
from helpers.progress_merge_helper import merge_sections
from helpers.progress_update_helper import MAX_UPDATE_ATTEMPTS, apply_progress_update
from models.course import CourseSkeleton
from models.user_course_progress import SectionProgress
from repositories.progress_repository import InMemoryProgressRepository


def completed(section_id, chapter_id, done=True):
    return {"sectionId": section_id, "chapters": [{"chapterId": chapter_id, "completed": done}]}


def state(progress):
    return {s.sectionId: {c.chapterId: c.completed for c in s.chapters} for s in progress.sections}


@pytest.fixture
def enrolled(course_repo, progress_repo, make_course):
    """user_1 bootstrapped into a course with 4 chapters."""
    course = make_course(layout={"s1": ["c1", "c2"], "s2": ["c3", "c4"]})
    course_repo.put(course)
    return bootstrap_enrollment(
        "user_1", course.courseId, CourseSkeleton.from_course(course), progress_repo, course_repo
    )


def test_end_to_end_progress_and_retry(enrolled, progress_repo):
    first = apply_progress_update("user_1", "course-1", [completed("s1", "c1")], progress_repo)
    assert first.overallProgress == 25

    second = apply_progress_update("user_1", "course-1", [completed("s2", "c3")], progress_repo)
    assert second.overallProgress == 50

    retried = apply_progress_update("user_1", "course-1", [completed("s2", "c3")], progress_repo)
    assert retried.overallProgress == 50
    assert state(retried) == {"s1": {"c1": True, "c2": False}, "s2": {"c3": True, "c4": False}}


def test_update_keeps_enrollment_date_and_touches_last_accessed(enrolled, progress_repo):
    updated = apply_progress_update("user_1", "course-1", [completed("s1", "c2")], progress_repo)

    assert updated.enrollmentDate == enrolled.enrollmentDate
    assert updated.lastAccessedTimestamp >= enrolled.lastAccessedTimestamp
    assert progress_repo.get("user_1", "course-1") == updated


def test_chapter_can_be_marked_incomplete_again(enrolled, progress_repo):
    apply_progress_update("user_1", "course-1", [completed("s1", "c1")], progress_repo)
    updated = apply_progress_update("user_1", "course-1", [completed("s1", "c1", done=False)], progress_repo)

    assert updated.overallProgress == 0


def test_invalid_payload_leaves_record_untouched(enrolled, progress_repo):
    bad = [{"sectionId": "s1", "chapters": [{"chapterId": "c1", "completed": "yes"}]}]

    with pytest.raises(ProgressValidationError):
        apply_progress_update("user_1", "course-1", bad, progress_repo)

    assert progress_repo.get("user_1", "course-1") == enrolled


def test_missing_chapter_id_is_rejected(progress_repo):
    with pytest.raises(ProgressValidationError):
        apply_progress_update("user_1", "course-1", [{"sectionId": "s1", "chapters": [{"completed": True}]}], progress_repo)


# ---- no record yet ----


def test_first_update_without_enrollment_uses_course_layout(course_repo, progress_repo, make_course):
    course_repo.put(make_course(layout={"s1": ["c1", "c2"], "s2": ["c3", "c4"]}))

    progress = apply_progress_update("user_1", "course-1", [completed("s1", "c1")], progress_repo, course_repo)

    assert progress.overallProgress == 25
    assert state(progress)["s2"] == {"c3": False, "c4": False}


def test_first_update_without_course_layout_trusts_payload(progress_repo):
    progress = apply_progress_update("user_1", "unknown-course", [completed("s1", "c1")], progress_repo)

    assert progress.overallProgress == 100
    assert state(progress) == {"s1": {"c1": True}}
    assert progress_repo.get("user_1", "unknown-course") == progress


def test_first_update_without_course_layout_collapses_repeated_ids(progress_repo):
    repeated = [completed("s1", "c1"), completed("s1", "c1", done=False)]

    progress = apply_progress_update("user_1", "unknown-course", repeated, progress_repo)

    assert [s.sectionId for s in progress.sections] == ["s1"]
    assert state(progress) == {"s1": {"c1": False}}
    assert progress.overallProgress == 0

    again = apply_progress_update("user_1", "unknown-course", repeated, progress_repo)
    assert again.sections == progress.sections
    assert again.overallProgress == progress.overallProgress


def test_repeated_chapter_in_update_is_stored_once(enrolled, progress_repo):
    repeated = [{"sectionId": "s3", "chapters": [
        {"chapterId": "c9", "completed": True},
        {"chapterId": "c9", "completed": True},
    ]}]

    progress = apply_progress_update("user_1", "course-1", repeated, progress_repo)

    assert [c.chapterId for c in progress.sections[-1].chapters] == ["c9"]
    assert progress.overallProgress == 20


# ---- concurrent writers ----


class RacingProgressRepo(InMemoryProgressRepository):
    """Another device writes just before each of our first `races` writes."""

    def __init__(self, races, rival_delta):
        super().__init__()
        self.races = races
        self.rival_delta = rival_delta

    def put(self, record, expected_last_accessed):
        if self.races and expected_last_accessed is not None:
            self.races -= 1
            current = self.get(record.userId, record.courseId)
            rival = current.model_copy(
                update={
                    "sections": self.rival_delta(current.sections),
                    "lastAccessedTimestamp": f"{current.lastAccessedTimestamp}-rival{self.races}",
                }
            )
            super().put(rival, current.lastAccessedTimestamp)
        return super().put(record, expected_last_accessed)


def _complete_c2(sections):
    return merge_sections(sections, [SectionProgress(**completed("s1", "c2"))])


def test_lost_race_is_remerged_without_dropping_rival_update(course_repo, make_course):
    course = make_course(layout={"s1": ["c1", "c2"], "s2": ["c3", "c4"]})
    course_repo.put(course)
    repo = RacingProgressRepo(races=1, rival_delta=_complete_c2)
    bootstrap_enrollment("user_1", "course-1", CourseSkeleton.from_course(course), repo, course_repo)

    progress = apply_progress_update("user_1", "course-1", [completed("s1", "c1")], repo)

    assert state(progress)["s1"] == {"c1": True, "c2": True}
    assert progress.overallProgress == 50


def test_gives_up_after_repeated_races(course_repo, make_course):
    course = make_course()
    course_repo.put(course)
    repo = RacingProgressRepo(races=MAX_UPDATE_ATTEMPTS, rival_delta=_complete_c2)
    bootstrap_enrollment("user_1", "course-1", CourseSkeleton.from_course(course), repo, course_repo)

    with pytest.raises(ProgressConflictError):
        apply_progress_update("user_1", "course-1", [completed("s1", "c1")], repo)
