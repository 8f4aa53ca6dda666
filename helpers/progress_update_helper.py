"""
Applying a client progress report to a stored UserCourseProgress record:
load, merge, recompute, write back.
"""
from typing import Any, List, Optional, Sequence, Union
import logging

from pydantic import TypeAdapter, ValidationError

from helpers.enrollment_helper import build_initial_progress, utc_now
from helpers.exceptions import ProgressConflictError, ProgressValidationError
from helpers.progress_merge_helper import calculate_overall_progress, merge_sections
from models.course import CourseSkeleton
from models.user_course_progress import SectionProgress, UserCourseProgress
from repositories.course_repository import CourseRepository
from repositories.progress_repository import ProgressRepository

logger = logging.getLogger(__name__)

MAX_UPDATE_ATTEMPTS = 3

_sections_adapter = TypeAdapter(List[SectionProgress])


def parse_sections(raw_sections: Sequence[Union[SectionProgress, dict, Any]]) -> List[SectionProgress]:
    """Validate a raw sections payload, e.g. a non-boolean completed flag."""
    try:
        return _sections_adapter.validate_python(
            [s.model_dump() if isinstance(s, SectionProgress) else s for s in raw_sections]
        )
    except ValidationError as e:
        raise ProgressValidationError(str(e)) from e


def _new_record(
    user_id: str,
    course_id: str,
    incoming: List[SectionProgress],
    course_repo: Optional[CourseRepository],
) -> UserCourseProgress:
    # No enrollment on file. Prefer the real course layout so the percentage
    # counts chapters the client has not reported yet.
    skeleton = course_repo.get_course_skeleton(course_id) if course_repo else None
    if skeleton is not None:
        record = build_initial_progress(user_id, course_id, skeleton)
        sections = merge_sections(record.sections, incoming)
    else:
        logger.warning(
            f"No progress or course layout for user {user_id} on course {course_id}, "
            f"seeding from the reported sections only"
        )
        record = build_initial_progress(user_id, course_id, CourseSkeleton(courseId=course_id))
        sections = merge_sections([], incoming)
    return record.model_copy(
        update={"sections": sections, "overallProgress": calculate_overall_progress(sections)}
    )


def apply_progress_update(
    user_id: str,
    course_id: str,
    incoming_sections: Sequence[Union[SectionProgress, dict]],
    progress_repo: ProgressRepository,
    course_repo: Optional[CourseRepository] = None,
) -> UserCourseProgress:
    """
    Merge reported chapter completions into the stored progress record.

    The merge happens in memory and the whole record is written back,
    conditional on nobody else having written since we read it. A lost
    race reloads and merges again; merging is idempotent so that is safe.
    """
    incoming = parse_sections(incoming_sections)

    for attempt in range(1, MAX_UPDATE_ATTEMPTS + 1):
        existing = progress_repo.get(user_id, course_id)

        if existing is None:
            record = _new_record(user_id, course_id, incoming, course_repo)
            expected = None
        else:
            sections = merge_sections(existing.sections, incoming)
            record = existing.model_copy(
                update={
                    "sections": sections,
                    "lastAccessedTimestamp": utc_now(),
                    "overallProgress": calculate_overall_progress(sections),
                }
            )
            expected = existing.lastAccessedTimestamp

        if progress_repo.put(record, expected):
            return record

        logger.info(
            f"Progress for user {user_id} on course {course_id} changed concurrently "
            f"(attempt {attempt}/{MAX_UPDATE_ATTEMPTS}), retrying"
        )

    raise ProgressConflictError(
        f"Progress for user {user_id} on course {course_id} kept changing, giving up"
    )
