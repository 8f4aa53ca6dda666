from typing import Dict, List, Optional, Protocol, Tuple

from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from helpers.dynamodb_helper import (
    collect_pages,
    convert_from_dynamodb_type,
    convert_to_dynamodb_type,
    is_conditional_check_failure,
    store_errors,
)
from models.transaction import Transaction


class TransactionRepository(Protocol):
    def create(self, transaction: Transaction) -> bool: ...
    def list(self, user_id: Optional[str] = None) -> List[Transaction]: ...


class DynamoDBTransactionRepository:
    def __init__(self, table):
        self._table = table

    def create(self, transaction: Transaction) -> bool:
        """Save once per (userId, transactionId). False if already recorded."""
        item = convert_to_dynamodb_type(transaction.model_dump(exclude_none=True))
        with store_errors("put transaction"):
            try:
                self._table.put_item(
                    Item=item,
                    ConditionExpression=Attr('transactionId').not_exists(),
                )
            except ClientError as e:
                if is_conditional_check_failure(e):
                    return False
                raise
        return True

    def list(self, user_id: Optional[str] = None) -> List[Transaction]:
        with store_errors("list transactions"):
            if user_id:
                items = collect_pages(self._table.query, KeyConditionExpression=Key('userId').eq(user_id))
            else:
                items = collect_pages(self._table.scan)
        return [Transaction(**convert_from_dynamodb_type(item)) for item in items]


class InMemoryTransactionRepository:
    def __init__(self) -> None:
        self._store: Dict[Tuple[str, str], Transaction] = {}

    def create(self, transaction: Transaction) -> bool:
        key = (transaction.userId, transaction.transactionId)
        if key in self._store:
            return False
        self._store[key] = transaction.model_copy()
        return True

    def list(self, user_id: Optional[str] = None) -> List[Transaction]:
        return [t.model_copy() for (uid, _), t in self._store.items() if not user_id or uid == user_id]
