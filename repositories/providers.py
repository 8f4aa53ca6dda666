"""
FastAPI dependencies that hand out the DynamoDB-backed repositories.

Tests swap these for the in-memory repositories via app.dependency_overrides.
"""
from functools import lru_cache

from config.db_config import (
    COURSES_TABLE,
    TRANSACTIONS_TABLE,
    USER_COURSE_PROGRESS_TABLE,
    get_dynamodb_resource,
)
from repositories.course_repository import DynamoDBCourseRepository
from repositories.progress_repository import DynamoDBProgressRepository
from repositories.transaction_repository import DynamoDBTransactionRepository


@lru_cache(maxsize=1)
def _dynamodb():
    return get_dynamodb_resource()


def get_course_repository() -> DynamoDBCourseRepository:
    return DynamoDBCourseRepository(_dynamodb(), COURSES_TABLE)


def get_progress_repository() -> DynamoDBProgressRepository:
    return DynamoDBProgressRepository(_dynamodb().Table(USER_COURSE_PROGRESS_TABLE))


def get_transaction_repository() -> DynamoDBTransactionRepository:
    return DynamoDBTransactionRepository(_dynamodb().Table(TRANSACTIONS_TABLE))
