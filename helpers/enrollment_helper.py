"""
Enrollment bootstrapping: turning a successful payment into a course
enrollment with an all-incomplete progress record.
"""
from datetime import datetime, timezone
from typing import Optional, Tuple
import logging

from helpers.exceptions import CourseNotFoundError, PartialPipelineError
from models.course import CourseSkeleton
from models.transaction import Transaction
from models.user_course_progress import ChapterProgress, SectionProgress, UserCourseProgress
from repositories.course_repository import CourseRepository
from repositories.progress_repository import ProgressRepository
from repositories.transaction_repository import TransactionRepository

logger = logging.getLogger(__name__)


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_initial_progress(user_id: str, course_id: str, skeleton: CourseSkeleton) -> UserCourseProgress:
    """Every chapter of the skeleton, none completed."""
    now = utc_now()
    return UserCourseProgress(
        userId=user_id,
        courseId=course_id,
        enrollmentDate=now,
        overallProgress=0,
        sections=[
            SectionProgress(
                sectionId=section.sectionId,
                chapters=[ChapterProgress(chapterId=c.chapterId, completed=False) for c in section.chapters],
            )
            for section in skeleton.sections
        ],
        lastAccessedTimestamp=now,
    )


def bootstrap_enrollment(
    user_id: str,
    course_id: str,
    skeleton: CourseSkeleton,
    progress_repo: ProgressRepository,
    course_repo: CourseRepository,
) -> UserCourseProgress:
    """
    Create the user's progress record for a course and mark the enrollment.

    The skeleton must come from the course catalog, never from request
    input. Safe to re-run: an existing progress record is returned as is
    and the enrollment marker is only added once.
    """
    progress = build_initial_progress(user_id, course_id, skeleton)

    if not progress_repo.create(progress):
        logger.info(f"Progress for user {user_id} on course {course_id} already exists, keeping it")
        existing = progress_repo.get(user_id, course_id)
        if existing is not None:
            progress = existing

    if course_repo.add_enrollment(course_id, user_id):
        logger.info(f"Enrolled user {user_id} in course {course_id}")
    elif course_repo.get(course_id) is None:
        logger.warning(
            f"Course {course_id} no longer exists, progress for user {user_id} kept without enrollment"
        )
    else:
        logger.info(f"User {user_id} already enrolled in course {course_id}")

    return progress


def record_purchase(
    user_id: str,
    course_id: str,
    transaction_id: str,
    amount: Optional[float],
    payment_provider: str,
    transaction_repo: TransactionRepository,
    progress_repo: ProgressRepository,
    course_repo: CourseRepository,
) -> Tuple[Transaction, UserCourseProgress]:
    """
    Handle one successful payment: save the transaction, then bootstrap
    the enrollment.

    Raises CourseNotFoundError before anything is written when the course
    does not exist, and PartialPipelineError when the transaction was
    saved but the bootstrap failed.
    """
    skeleton = course_repo.get_course_skeleton(course_id)
    if skeleton is None:
        raise CourseNotFoundError(course_id)

    transaction = Transaction(
        userId=user_id,
        transactionId=transaction_id,
        dateTime=utc_now(),
        courseId=course_id,
        paymentProvider=payment_provider,
        amount=amount,
    )
    if not transaction_repo.create(transaction):
        logger.info(f"Transaction {transaction_id} already recorded, resuming enrollment")

    try:
        progress = bootstrap_enrollment(user_id, course_id, skeleton, progress_repo, course_repo)
    except Exception as e:
        logger.exception(
            f"Transaction {transaction_id} recorded but enrollment of user {user_id} "
            f"in course {course_id} failed"
        )
        raise PartialPipelineError(
            f"Transaction {transaction_id} recorded but enrollment failed: {str(e)}",
            transaction_id,
        ) from e

    return transaction, progress
