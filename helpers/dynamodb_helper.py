from contextlib import contextmanager
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List
import itertools
import logging

from botocore.exceptions import BotoCoreError, ClientError

from helpers.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


def convert_to_dynamodb_type(value: Any) -> Any:
    """
    Convert various data types to DynamoDB-compatible types.
    """
    if isinstance(value, bool):
        return value  # Handle booleans first to prevent conversion to Decimal
    elif isinstance(value, (int, float)):
        try:
            return Decimal(str(value))
        except InvalidOperation:
            logger.error(f"Failed to convert numeric value: {value}")
            raise
    elif isinstance(value, dict):
        return {k: convert_to_dynamodb_type(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [convert_to_dynamodb_type(item) for item in value]
    return value


def convert_from_dynamodb_type(value: Any) -> Any:
    """
    Undo convert_to_dynamodb_type: boto3 hands numbers back as Decimal.
    """
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    elif isinstance(value, dict):
        return {k: convert_from_dynamodb_type(v) for k, v in value.items()}
    elif isinstance(value, (list, set)):
        return [convert_from_dynamodb_type(item) for item in value]
    return value


def is_conditional_check_failure(error: ClientError) -> bool:
    return error.response.get('Error', {}).get('Code') == 'ConditionalCheckFailedException'


@contextmanager
def store_errors(operation: str):
    """Translate boto3 failures into StoreUnavailableError."""
    try:
        yield
    except (ClientError, BotoCoreError) as e:
        logger.error(f"DynamoDB {operation} failed: {str(e)}")
        raise StoreUnavailableError(f"{operation} failed: {str(e)}") from e


def chunks(iterable: Iterable[Any], batch_size: int = 100):
    """Break an iterable into chunks of size batch_size."""
    it = iter(iterable)
    chunk = tuple(itertools.islice(it, batch_size))
    while chunk:
        yield chunk
        chunk = tuple(itertools.islice(it, batch_size))


def collect_pages(call, **kwargs) -> List[dict]:
    """Run a query/scan call until LastEvaluatedKey runs out."""
    items = []
    while True:
        response = call(**kwargs)
        items.extend(response.get('Items', []))
        last_key = response.get('LastEvaluatedKey')
        if not last_key:
            return items
        kwargs['ExclusiveStartKey'] = last_key
