from fastapi import APIRouter, Depends, HTTPException
import logging

from helpers.exceptions import ProgressConflictError, ProgressValidationError, StoreUnavailableError
from helpers.progress_update_helper import apply_progress_update
from middleware.auth_middleware import require_same_user
from repositories.course_repository import CourseRepository
from repositories.progress_repository import ProgressRepository
from repositories.providers import get_course_repository, get_progress_repository
from schemas.course_schema import CoursesResponse
from schemas.progress_schema import ProgressResponse, ProgressUpdate

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_same_user)])


@router.get("/{user_id}/enrolled-courses", response_model=CoursesResponse)
async def get_user_enrolled_courses(
    user_id: str,
    progress_repo: ProgressRepository = Depends(get_progress_repository),
    course_repo: CourseRepository = Depends(get_course_repository),
):
    """Courses the user has a progress record for"""
    try:
        enrolled = progress_repo.list_for_user(user_id)
        if not enrolled:
            return {"message": "No enrolled courses found", "data": []}

        courses = course_repo.batch_get([p.courseId for p in enrolled])
        return {
            "message": "Enrolled courses retrieved successfully",
            "data": [c.model_dump() for c in courses],
        }
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Error in get_user_enrolled_courses: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{user_id}/courses/{course_id}", response_model=ProgressResponse)
async def get_user_course_progress(
    user_id: str,
    course_id: str,
    progress_repo: ProgressRepository = Depends(get_progress_repository),
):
    try:
        progress = progress_repo.get(user_id, course_id)
        if progress is None:
            raise HTTPException(status_code=404, detail="Course progress not found for this user")
        return {"message": "Course progress retrieved successfully", "data": progress}
    except HTTPException:
        raise
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Error retrieving user course progress: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/{user_id}/courses/{course_id}", response_model=ProgressResponse)
async def update_user_course_progress(
    user_id: str,
    course_id: str,
    progress_update: ProgressUpdate,
    progress_repo: ProgressRepository = Depends(get_progress_repository),
    course_repo: CourseRepository = Depends(get_course_repository),
):
    """Merge reported chapter completions and recompute overall progress"""
    try:
        progress = apply_progress_update(
            user_id, course_id, progress_update.sections, progress_repo, course_repo
        )
        return {"message": "Course progress updated successfully", "data": progress}
    except ProgressValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ProgressConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Error updating progress: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
