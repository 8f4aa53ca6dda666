import os
import sys
import json
import logging
from typing import Any, Dict, List

# Dynamically add the parent directory to Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dotenv import load_dotenv

# Load environment variables before the table names are read
load_dotenv()

# Import custom database configuration
from config.db_config import (
    COURSES_TABLE,
    TRANSACTIONS_TABLE,
    USER_COURSE_PROGRESS_TABLE,
    create_tables,
    get_dynamodb_resource,
)
from helpers.dynamodb_helper import convert_to_dynamodb_type
from helpers.progress_merge_helper import calculate_overall_progress
from models.user_course_progress import SectionProgress

logger = logging.getLogger(__name__)


def validate_data(data: List[Dict[str, Any]], schema: Dict[str, Any]) -> bool:
    """
    Basic validation for the data structure against a schema.
    """
    for record in data:
        for field, field_schema in schema.items():
            if field not in record:
                if field_schema.get('required', True):
                    logger.error(f"Missing required field '{field}' in record: {record}")
                    return False
            else:
                value = record[field]
                expected_type = field_schema['type']
                # bool is an int subclass, don't let it pass as a number
                if isinstance(value, bool) and bool not in (
                    expected_type if isinstance(expected_type, tuple) else (expected_type,)
                ):
                    logger.error(f"Field '{field}' has incorrect type in record: {record}")
                    return False
                if not isinstance(value, expected_type):
                    logger.error(f"Field '{field}' has incorrect type in record: {record}")
                    return False
    return True


def load_json_data(file_path: str) -> List[Dict[str, Any]]:
    """
    Load data from a JSON file located in the 'data' directory.
    """
    current_dir = os.path.dirname(os.path.abspath(__file__))
    full_path = os.path.join(current_dir, "data", file_path)

    try:
        with open(full_path, 'r') as file:
            return json.load(file)
    except FileNotFoundError:
        logger.error(f"File not found: {full_path}")
        raise
    except json.JSONDecodeError:
        logger.error(f"Invalid JSON format in file: {full_path}")
        raise


def recompute_progress(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Fixture files may carry any overallProgress; the stored value is always derived."""
    return [
        {
            **record,
            'overallProgress': calculate_overall_progress(
                [SectionProgress(**section) for section in record['sections']]
            ),
        }
        for record in records
    ]


def seed_table(table_name: str, data: List[Dict[str, Any]], schema: Dict[str, Dict[str, Any]]) -> bool:
    """
    Seed data into the specified DynamoDB table.
    """
    dynamodb = get_dynamodb_resource()
    table = dynamodb.Table(table_name)

    # Validate the data before seeding
    if not validate_data(data, schema):
        logger.error(f"Data validation failed for table: {table_name}")
        return False

    with table.batch_writer() as batch:
        for record in data:
            # Convert data to DynamoDB-compatible types
            batch.put_item(Item=convert_to_dynamodb_type(record))
    logger.info(f"Successfully seeded {len(data)} records into {table_name}")
    return True


def seed_courses():
    """
    Seed course data into the Courses table.
    """
    logger.info("Seeding courses data...")
    schema = {
        "courseId": {"type": str, "required": True},
        "teacherId": {"type": str, "required": True},
        "teacherName": {"type": str, "required": True},
        "title": {"type": str, "required": True},
        "description": {"type": str, "required": False},
        "category": {"type": str, "required": True},
        "image": {"type": str, "required": False},
        "price": {"type": int, "required": False},
        "level": {"type": str, "required": True},
        "status": {"type": str, "required": True},
        "enrollments": {"type": list, "required": True},
        "sections": {"type": list, "required": True}
    }
    return seed_table(COURSES_TABLE, load_json_data("courses.json"), schema)


def seed_transactions():
    """
    Seed transaction data into the Transactions table.
    """
    logger.info("Seeding transactions data...")
    schema = {
        "transactionId": {"type": str, "required": True},
        "userId": {"type": str, "required": True},
        "courseId": {"type": str, "required": True},
        "dateTime": {"type": str, "required": True},
        "paymentProvider": {"type": str, "required": True},
        "amount": {"type": (int, float), "required": False}
    }
    return seed_table(TRANSACTIONS_TABLE, load_json_data("transactions.json"), schema)


def seed_user_progress():
    """
    Seed user course progress data into the UserCourseProgress table.
    """
    logger.info("Seeding user course progress data...")
    schema = {
        "userId": {"type": str, "required": True},
        "courseId": {"type": str, "required": True},
        "enrollmentDate": {"type": str, "required": True},
        "sections": {"type": list, "required": True},
        "lastAccessedTimestamp": {"type": str, "required": True}
    }
    data = recompute_progress(load_json_data("userCourseProgress.json"))
    return seed_table(USER_COURSE_PROGRESS_TABLE, data, schema)


def seed_all():
    """
    Seed all data into the database.
    """
    logger.info("Starting database seeding...")
    try:
        create_tables()
        results = [seed_courses(), seed_transactions(), seed_user_progress()]
    except Exception as e:
        logger.error(f"Database seeding failed: {e}")
        raise
    if not all(results):
        raise ValueError("Database seeding finished with invalid fixture data")
    logger.info("Database seeding completed successfully!")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    seed_all()
