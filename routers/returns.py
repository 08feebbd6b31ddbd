from fastapi import APIRouter, HTTPException, status, Query
from typing import List
import traceback

from models.borrow import BorrowRecordView
from services import ledger
from logging_config import logger

router = APIRouter()

# Borrow & return history
@router.get(
    "",
    response_model=List[BorrowRecordView],
    summary="Borrow and return history",
    description="""
    Every borrow record, open or returned, newest first.

    Returned records include `date_returned`, `condition_on_return`,
    `missing_items`, `repair_cost` and `checked_by`.
    """,
    response_description="Returns a page of borrow records"
)
async def get_history(
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(100, ge=1, le=500, description="Maximum number of records to return")
):
    try:
        logger.info(f"Getting borrow history: skip={skip} limit={limit}")
        records = await ledger.list_history(skip=skip, limit=limit)
        logger.debug(f"Found {len(records)} borrow records")
        return records
    except Exception as e:
        logger.error(f"Error getting borrow history: {str(e)}")
        logger.error(traceback.format_exc())
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error getting borrow history: {str(e)}"
        )

# Single record
@router.get(
    "/{record_id}",
    response_model=BorrowRecordView,
    summary="Get borrow record",
    description="Fetch one borrow record by id, whether it is still open or already returned.",
    response_description="Returns the borrow record with its overdue flag"
)
async def get_history_record(record_id: str):
    try:
        logger.info(f"Getting borrow record: {record_id}")
        return await ledger.get_record(record_id)
    except ledger.RecordNotFound as e:
        logger.warning(f"Borrow record not found: {record_id}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Error getting borrow record: {str(e)}")
        logger.error(traceback.format_exc())
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error getting borrow record: {str(e)}"
        )
