from fastapi import APIRouter, Depends, HTTPException
from typing import List, Optional
from functools import lru_cache
from datetime import datetime, timezone
import json
import logging
import os
import uuid

import boto3

from helpers.exceptions import StoreUnavailableError
from middleware.auth_middleware import get_current_user
from models.course import Chapter, Course, Section
from repositories.course_repository import CourseRepository
from repositories.providers import get_course_repository
from schemas.course_schema import CourseCreate, CourseUpdate, VideoUploadRequest, CourseResponse, CoursesResponse

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache(maxsize=1)
def get_s3_client():
    return boto3.client('s3', region_name=os.getenv('AWS_REGION'))


def _load_owned_course(course_id: str, user_id: str, course_repo: CourseRepository, action: str) -> Course:
    course = course_repo.get(course_id)
    if course is None:
        raise HTTPException(status_code=404, detail="Course not found")
    if course.teacherId != user_id:
        raise HTTPException(status_code=403, detail=f"Not authorized to {action} this course")
    return course


def _parse_price(raw_price) -> int:
    """Whole units to cents. Fractions are truncated, like parseInt."""
    try:
        return int(float(str(raw_price).strip())) * 100
    except (ValueError, OverflowError):
        raise HTTPException(status_code=400, detail="Invalid price format: price must be a valid number") from None


def _assign_ids(raw_sections) -> List[Section]:
    """Give new sections and chapters an id; existing ids are kept."""
    if isinstance(raw_sections, str):
        try:
            raw_sections = json.loads(raw_sections)
        except json.JSONDecodeError:
            raise HTTPException(status_code=400, detail="Invalid sections format") from None

    sections = []
    for section in raw_sections:
        data = section if isinstance(section, dict) else section.model_dump()
        chapters = [
            Chapter(**{**chapter, 'chapterId': chapter.get('chapterId') or str(uuid.uuid4())})
            for chapter in data.get('chapters', [])
        ]
        sections.append(Section(**{
            **data,
            'sectionId': data.get('sectionId') or str(uuid.uuid4()),
            'chapters': chapters,
        }))
    return sections


@router.get("", response_model=CoursesResponse)
async def list_courses(
    category: Optional[str] = None,
    course_repo: CourseRepository = Depends(get_course_repository),
):
    try:
        courses = course_repo.list(category)
        return {"message": "Courses retrieved successfully", "data": [c.model_dump() for c in courses]}
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Error retrieving courses: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("", response_model=CourseResponse)
async def create_course(
    course: CourseCreate,
    current_user: dict = Depends(get_current_user),
    course_repo: CourseRepository = Depends(get_course_repository),
):
    if current_user["userId"] != course.teacherId:
        raise HTTPException(status_code=403, detail="Courses can only be created for yourself")

    timestamp = datetime.now(timezone.utc).isoformat()
    new_course = Course(
        courseId=str(uuid.uuid4()),
        teacherId=course.teacherId,
        teacherName=course.teacherName,
        title="Untitled Course",
        description="",
        category="Uncategorized",
        image="",
        price=0,
        level="Beginner",
        status="Draft",
        sections=[],
        enrollments=[],
        createdAt=timestamp,
        updatedAt=timestamp,
    )

    try:
        course_repo.put(new_course)
        return {"message": "Course created successfully", "data": new_course.model_dump()}
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating course: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{course_id}", response_model=CourseResponse)
async def get_course(course_id: str, course_repo: CourseRepository = Depends(get_course_repository)):
    try:
        course = course_repo.get(course_id)
        if course is None:
            raise HTTPException(status_code=404, detail="Course not found")
        return {"message": "Course retrieved successfully", "data": course.model_dump()}
    except HTTPException:
        raise
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Error retrieving course {course_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/{course_id}", response_model=CourseResponse)
async def update_course(
    course_id: str,
    course_update: CourseUpdate,
    current_user: dict = Depends(get_current_user),
    course_repo: CourseRepository = Depends(get_course_repository),
):
    try:
        course = _load_owned_course(course_id, current_user["userId"], course_repo, "update")

        update_data = course_update.model_dump(exclude_none=True, exclude={'price', 'sections'})
        if course_update.price is not None:
            update_data['price'] = _parse_price(course_update.price)
        if course_update.sections is not None:
            update_data['sections'] = _assign_ids(course_update.sections)
        update_data['updatedAt'] = datetime.now(timezone.utc).isoformat()

        # Validate the merged result, model_copy alone would not
        updated = Course(**{**course.model_dump(), **update_data})
        course_repo.put(updated)
        return {"message": "Course updated successfully", "data": updated.model_dump()}
    except HTTPException:
        raise
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error updating course {course_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{course_id}")
async def delete_course(
    course_id: str,
    current_user: dict = Depends(get_current_user),
    course_repo: CourseRepository = Depends(get_course_repository),
):
    try:
        course = _load_owned_course(course_id, current_user["userId"], course_repo, "delete")
        course_repo.delete(course_id)
        return {"message": "Course deleted successfully", "data": course.model_dump()}
    except HTTPException:
        raise
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Error deleting course {course_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/{course_id}/sections/{section_id}/chapters/{chapter_id}/get-upload-url")
async def get_upload_video_url(
    course_id: str,
    section_id: str,
    chapter_id: str,
    request: VideoUploadRequest,
    current_user: dict = Depends(get_current_user),
):
    if not request.fileName or not request.fileType:
        raise HTTPException(status_code=400, detail="File name and type are required")

    try:
        bucket_name = os.getenv("S3_BUCKET_NAME")
        if not bucket_name:
            raise HTTPException(status_code=500, detail="S3 bucket name not configured")

        unique_id = str(uuid.uuid4())
        s3_key = f"videos/{unique_id}/{request.fileName}"

        presigned_url = get_s3_client().generate_presigned_url(
            'put_object',
            Params={
                'Bucket': bucket_name,
                'Key': s3_key,
                'ContentType': request.fileType
            },
            ExpiresIn=60
        )

        video_url = f"https://{os.getenv('CLOUDFRONT_DOMAIN')}/videos/{unique_id}/{request.fileName}"
        logger.info(f"Upload URL issued for chapter {chapter_id} of course {course_id}")

        return {
            "message": "Upload URL generated successfully",
            "data": {
                "uploadUrl": presigned_url,
                "videoUrl": video_url
            }
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error generating upload URL: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
