from typing import Dict, List, Optional, Protocol, Sequence
import logging

from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from helpers.dynamodb_helper import (
    chunks,
    collect_pages,
    convert_from_dynamodb_type,
    convert_to_dynamodb_type,
    is_conditional_check_failure,
    store_errors,
)
from models.course import Course, CourseSkeleton, Enrollment

logger = logging.getLogger(__name__)

# DynamoDB caps BatchGetItem at 100 keys per request
_BATCH_GET_LIMIT = 100
_MAX_UNPROCESSED_RETRIES = 5


class CourseRepository(Protocol):
    def get(self, course_id: str) -> Optional[Course]: ...
    def get_course_skeleton(self, course_id: str) -> Optional[CourseSkeleton]: ...
    def list(self, category: Optional[str] = None) -> List[Course]: ...
    def batch_get(self, course_ids: Sequence[str]) -> List[Course]: ...
    def put(self, course: Course) -> None: ...
    def delete(self, course_id: str) -> None: ...
    def add_enrollment(self, course_id: str, user_id: str) -> bool: ...


class DynamoDBCourseRepository:
    def __init__(self, dynamodb, table_name: str):
        self._dynamodb = dynamodb
        self._table_name = table_name
        self._table = dynamodb.Table(table_name)

    def get(self, course_id: str) -> Optional[Course]:
        with store_errors("get course"):
            response = self._table.get_item(Key={'courseId': course_id})
        item = response.get('Item')
        return Course(**convert_from_dynamodb_type(item)) if item else None

    def get_course_skeleton(self, course_id: str) -> Optional[CourseSkeleton]:
        course = self.get(course_id)
        return CourseSkeleton.from_course(course) if course else None

    def list(self, category: Optional[str] = None) -> List[Course]:
        with store_errors("list courses"):
            if category and category != "all":
                items = collect_pages(
                    self._table.query,
                    IndexName='CategoryIndex',
                    KeyConditionExpression=Key('category').eq(category),
                )
            else:
                items = collect_pages(self._table.scan)
        return [Course(**convert_from_dynamodb_type(item)) for item in items]

    def batch_get(self, course_ids: Sequence[str]) -> List[Course]:
        items = []
        unique_ids = list(dict.fromkeys(course_ids))
        with store_errors("batch get courses"):
            for batch in chunks(unique_ids, _BATCH_GET_LIMIT):
                request = {self._table_name: {'Keys': [{'courseId': cid} for cid in batch]}}
                for _ in range(_MAX_UNPROCESSED_RETRIES):
                    response = self._dynamodb.batch_get_item(RequestItems=request)
                    items.extend(response.get('Responses', {}).get(self._table_name, []))
                    request = response.get('UnprocessedKeys') or {}
                    if not request:
                        break
                else:
                    logger.warning(f"Giving up on {len(request[self._table_name]['Keys'])} unprocessed course keys")
        return [Course(**convert_from_dynamodb_type(item)) for item in items]

    def put(self, course: Course) -> None:
        with store_errors("put course"):
            self._table.put_item(Item=convert_to_dynamodb_type(course.model_dump(exclude_none=True)))

    def delete(self, course_id: str) -> None:
        with store_errors("delete course"):
            self._table.delete_item(Key={'courseId': course_id})

    def add_enrollment(self, course_id: str, user_id: str) -> bool:
        """
        Append {userId} to the course's enrollments as a set union.

        Done in a single conditional update so concurrent enrollments of
        different users cannot overwrite each other. Returns False when the
        user was already enrolled.
        """
        marker = {'userId': user_id}
        with store_errors("add enrollment"):
            try:
                self._table.update_item(
                    Key={'courseId': course_id},
                    UpdateExpression='SET enrollments = list_append(if_not_exists(enrollments, :empty), :entry)',
                    ConditionExpression=Attr('courseId').exists() & ~Attr('enrollments').contains(marker),
                    ExpressionAttributeValues={':empty': [], ':entry': [marker]},
                )
            except ClientError as e:
                if is_conditional_check_failure(e):
                    return False
                raise
        return True


class InMemoryCourseRepository:
    def __init__(self) -> None:
        self._store: Dict[str, Course] = {}

    def get(self, course_id: str) -> Optional[Course]:
        course = self._store.get(course_id)
        return course.model_copy(deep=True) if course else None

    def get_course_skeleton(self, course_id: str) -> Optional[CourseSkeleton]:
        course = self._store.get(course_id)
        return CourseSkeleton.from_course(course) if course else None

    def list(self, category: Optional[str] = None) -> List[Course]:
        return [
            c.model_copy(deep=True)
            for c in self._store.values()
            if not category or category == "all" or c.category == category
        ]

    def batch_get(self, course_ids: Sequence[str]) -> List[Course]:
        return [self._store[cid].model_copy(deep=True) for cid in dict.fromkeys(course_ids) if cid in self._store]

    def put(self, course: Course) -> None:
        self._store[course.courseId] = course.model_copy(deep=True)

    def delete(self, course_id: str) -> None:
        self._store.pop(course_id, None)

    def add_enrollment(self, course_id: str, user_id: str) -> bool:
        course = self._store.get(course_id)
        if course is None or any(e.userId == user_id for e in course.enrollments):
            return False
        course.enrollments.append(Enrollment(userId=user_id))
        return True
