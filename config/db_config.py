import os
import logging
import boto3

logger = logging.getLogger(__name__)

COURSES_TABLE = os.getenv("COURSES_TABLE", "Courses")
TRANSACTIONS_TABLE = os.getenv("TRANSACTIONS_TABLE", "Transactions")
USER_COURSE_PROGRESS_TABLE = os.getenv("USER_COURSE_PROGRESS_TABLE", "UserCourseProgress")


def _connection_kwargs():
    """
    Connection settings for DynamoDB.

    When DYNAMODB_ENDPOINT_URL is set (local development) we talk to
    DynamoDB Local with dummy credentials, otherwise boto3's normal
    credential chain is used.
    """
    endpoint_url = os.getenv("DYNAMODB_ENDPOINT_URL")
    if endpoint_url:
        return {
            "endpoint_url": endpoint_url,
            "region_name": os.getenv("AWS_REGION", "local"),
            "aws_access_key_id": os.getenv("AWS_ACCESS_KEY_ID", "dummy"),
            "aws_secret_access_key": os.getenv("AWS_SECRET_ACCESS_KEY", "dummy"),
        }
    return {"region_name": os.getenv("AWS_REGION")}


# DynamoDB Configuration
def get_dynamodb_client():
    """Get DynamoDB client"""
    return boto3.client('dynamodb', **_connection_kwargs())


def get_dynamodb_resource():
    """Get DynamoDB resource"""
    return boto3.resource('dynamodb', **_connection_kwargs())


def create_tables():
    """Create DynamoDB tables if they don't exist"""
    dynamodb = get_dynamodb_resource()

    # Courses table
    try:
        table = dynamodb.create_table(
            TableName=COURSES_TABLE,
            KeySchema=[
                {'AttributeName': 'courseId', 'KeyType': 'HASH'}
            ],
            AttributeDefinitions=[
                {'AttributeName': 'courseId', 'AttributeType': 'S'},
                {'AttributeName': 'category', 'AttributeType': 'S'}
            ],
            GlobalSecondaryIndexes=[
                {
                    'IndexName': 'CategoryIndex',
                    'KeySchema': [
                        {'AttributeName': 'category', 'KeyType': 'HASH'}
                    ],
                    'Projection': {'ProjectionType': 'ALL'},
                    'ProvisionedThroughput': {
                        'ReadCapacityUnits': 5,
                        'WriteCapacityUnits': 5
                    }
                }
            ],
            ProvisionedThroughput={
                'ReadCapacityUnits': 5,
                'WriteCapacityUnits': 5
            }
        )
        logger.info(f"Creating {COURSES_TABLE} table...")
        table.wait_until_exists()
    except dynamodb.meta.client.exceptions.ResourceInUseException:
        logger.info(f"{COURSES_TABLE} table already exists")

    # Transactions table
    try:
        table = dynamodb.create_table(
            TableName=TRANSACTIONS_TABLE,
            KeySchema=[
                {'AttributeName': 'userId', 'KeyType': 'HASH'},
                {'AttributeName': 'transactionId', 'KeyType': 'RANGE'}
            ],
            AttributeDefinitions=[
                {'AttributeName': 'userId', 'AttributeType': 'S'},
                {'AttributeName': 'transactionId', 'AttributeType': 'S'},
                {'AttributeName': 'courseId', 'AttributeType': 'S'}
            ],
            GlobalSecondaryIndexes=[
                {
                    'IndexName': 'CourseTransactionsIndex',
                    'KeySchema': [
                        {'AttributeName': 'courseId', 'KeyType': 'HASH'}
                    ],
                    'Projection': {'ProjectionType': 'ALL'},
                    'ProvisionedThroughput': {
                        'ReadCapacityUnits': 5,
                        'WriteCapacityUnits': 5
                    }
                }
            ],
            ProvisionedThroughput={
                'ReadCapacityUnits': 5,
                'WriteCapacityUnits': 5
            }
        )
        logger.info(f"Creating {TRANSACTIONS_TABLE} table...")
        table.wait_until_exists()
    except dynamodb.meta.client.exceptions.ResourceInUseException:
        logger.info(f"{TRANSACTIONS_TABLE} table already exists")

    # UserCourseProgress table
    try:
        table = dynamodb.create_table(
            TableName=USER_COURSE_PROGRESS_TABLE,
            KeySchema=[
                {'AttributeName': 'userId', 'KeyType': 'HASH'},
                {'AttributeName': 'courseId', 'KeyType': 'RANGE'}
            ],
            AttributeDefinitions=[
                {'AttributeName': 'userId', 'AttributeType': 'S'},
                {'AttributeName': 'courseId', 'AttributeType': 'S'}
            ],
            ProvisionedThroughput={
                'ReadCapacityUnits': 5,
                'WriteCapacityUnits': 5
            }
        )
        logger.info(f"Creating {USER_COURSE_PROGRESS_TABLE} table...")
        table.wait_until_exists()
    except dynamodb.meta.client.exceptions.ResourceInUseException:
        logger.info(f"{USER_COURSE_PROGRESS_TABLE} table already exists")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_tables()
