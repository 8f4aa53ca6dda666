from typing import Dict, List, Optional, Protocol, Tuple
import logging

from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from helpers.dynamodb_helper import (
    collect_pages,
    convert_from_dynamodb_type,
    convert_to_dynamodb_type,
    is_conditional_check_failure,
    store_errors,
)
from models.user_course_progress import UserCourseProgress

logger = logging.getLogger(__name__)


class ProgressRepository(Protocol):
    def get(self, user_id: str, course_id: str) -> Optional[UserCourseProgress]: ...
    def list_for_user(self, user_id: str) -> List[UserCourseProgress]: ...
    def create(self, record: UserCourseProgress) -> bool: ...
    def put(self, record: UserCourseProgress, expected_last_accessed: Optional[str]) -> bool: ...


class DynamoDBProgressRepository:
    """UserCourseProgress table: userId hash key, courseId range key."""

    def __init__(self, table):
        self._table = table

    def get(self, user_id: str, course_id: str) -> Optional[UserCourseProgress]:
        with store_errors("get progress"):
            response = self._table.get_item(Key={'userId': user_id, 'courseId': course_id})
        item = response.get('Item')
        if item is None:
            return None
        return UserCourseProgress(**convert_from_dynamodb_type(item))

    def list_for_user(self, user_id: str) -> List[UserCourseProgress]:
        with store_errors("query progress"):
            items = collect_pages(
                self._table.query,
                KeyConditionExpression=Key('userId').eq(user_id),
            )
        return [UserCourseProgress(**convert_from_dynamodb_type(item)) for item in items]

    def create(self, record: UserCourseProgress) -> bool:
        """Write only if no record exists for the key. False if one does."""
        return self._conditional_put(record, Attr('userId').not_exists())

    def put(self, record: UserCourseProgress, expected_last_accessed: Optional[str]) -> bool:
        """
        Overwrite the record if it still carries expected_last_accessed.

        None means the caller saw no record at all. Returns False when the
        stored record moved on in the meantime.
        """
        if expected_last_accessed is None:
            condition = Attr('userId').not_exists()
        else:
            condition = Attr('lastAccessedTimestamp').eq(expected_last_accessed)
        return self._conditional_put(record, condition)

    def _conditional_put(self, record: UserCourseProgress, condition) -> bool:
        item = convert_to_dynamodb_type(record.model_dump())
        with store_errors("put progress"):
            try:
                self._table.put_item(Item=item, ConditionExpression=condition)
            except ClientError as e:
                if is_conditional_check_failure(e):
                    return False
                raise
        return True


class InMemoryProgressRepository:
    def __init__(self) -> None:
        self._store: Dict[Tuple[str, str], UserCourseProgress] = {}

    def get(self, user_id: str, course_id: str) -> Optional[UserCourseProgress]:
        record = self._store.get((user_id, course_id))
        return record.model_copy(deep=True) if record else None

    def list_for_user(self, user_id: str) -> List[UserCourseProgress]:
        return [r.model_copy(deep=True) for (uid, _), r in self._store.items() if uid == user_id]

    def create(self, record: UserCourseProgress) -> bool:
        return self.put(record, None)

    def put(self, record: UserCourseProgress, expected_last_accessed: Optional[str]) -> bool:
        key = (record.userId, record.courseId)
        current = self._store.get(key)
        if expected_last_accessed is None and current is not None:
            return False
        if expected_last_accessed is not None and (
            current is None or current.lastAccessedTimestamp != expected_last_accessed
        ):
            return False
        self._store[key] = record.model_copy(deep=True)
        return True
