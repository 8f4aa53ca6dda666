from fastapi import APIRouter, Depends, HTTPException
from typing import Optional
import logging

from helpers.enrollment_helper import record_purchase
from helpers.exceptions import CourseNotFoundError, PartialPipelineError, StoreUnavailableError
from middleware.auth_middleware import get_current_user
from repositories.course_repository import CourseRepository
from repositories.progress_repository import ProgressRepository
from repositories.providers import (
    get_course_repository,
    get_progress_repository,
    get_transaction_repository,
)
from repositories.transaction_repository import TransactionRepository
from schemas.progress_schema import PurchaseResponse, TransactionCreate, TransactionsResponse

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("", response_model=TransactionsResponse)
async def list_transactions(
    userId: Optional[str] = None,
    transaction_repo: TransactionRepository = Depends(get_transaction_repository),
):
    """List all transactions, or only those of one user"""
    try:
        transactions = transaction_repo.list(userId)
        return {"message": "Transactions retrieved successfully", "data": transactions}
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Error retrieving transactions: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("", response_model=PurchaseResponse)
async def create_transaction(
    purchase: TransactionCreate,
    transaction_repo: TransactionRepository = Depends(get_transaction_repository),
    progress_repo: ProgressRepository = Depends(get_progress_repository),
    course_repo: CourseRepository = Depends(get_course_repository),
):
    """
    Record a completed purchase and enroll the buyer in the course.

    Payment is captured upstream by the provider; any authenticated caller may
    record a purchase for any userId, and no payment check happens here.
    """
    try:
        transaction, progress = record_purchase(
            user_id=purchase.userId,
            course_id=purchase.courseId,
            transaction_id=purchase.transactionId,
            amount=purchase.amount,
            payment_provider=purchase.paymentProvider,
            transaction_repo=transaction_repo,
            progress_repo=progress_repo,
            course_repo=course_repo,
        )
        return {
            "message": "Purchased course successfully",
            "data": {"transaction": transaction, "courseProgress": progress},
        }
    except CourseNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PartialPipelineError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating transaction and initializing enrollment: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
