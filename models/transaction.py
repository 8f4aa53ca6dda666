from typing import Literal, Optional
from pydantic import BaseModel


class Transaction(BaseModel):
    userId: str
    transactionId: str
    dateTime: str
    courseId: str
    paymentProvider: Literal["stripe"]
    amount: Optional[float] = None
