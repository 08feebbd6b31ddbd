from fastapi import APIRouter, HTTPException, status, Query, Body
from typing import List
import traceback

from models.borrow import BorrowRecordCreate, BorrowRecordView, ReturnCreate
from services import ledger
from logging_config import logger

router = APIRouter()

# Borrow an item
@router.post(
    "",
    response_model=BorrowRecordView,
    status_code=status.HTTP_201_CREATED,
    summary="Borrow an inventory item",
    description="""
    Lend some units of an inventory item to a borrower.

    The request is refused with **409** when `qty` exceeds the units
    currently available (`Not enough available. N left.`), or when another
    loan or edit of the same item landed while this one was being recorded.
    A refused loan leaves no record behind; a conflict can simply be retried.

    ### curl Example
    ```bash
    curl -X 'POST' \\
      'http://localhost:8000/borrow' \\
      -H 'Content-Type: application/json' \\
      -d '{
        "inventory_id": "c_3f9a1b2c4d5e",
        "borrower_name": "Ana Reyes",
        "department": "Drama Club",
        "qty": 2,
        "purpose": "Event",
        "due_date": "2024-03-15",
        "staff": "Mr. Cruz"
      }'
    ```
    """,
    response_description="Returns the new borrow record with status Borrowed"
)
async def borrow_item(
    loan: BorrowRecordCreate = Body(
        ...,
        example={
            "inventory_id": "c_3f9a1b2c4d5e",
            "borrower_name": "Ana Reyes",
            "department": "Drama Club",
            "qty": 2,
            "purpose": "Event",
            "due_date": "2024-03-15",
            "staff": "Mr. Cruz"
        }
    )
):
    try:
        logger.info(f"Borrow request: {loan.qty} x {loan.inventory_id} for {loan.borrower_name}")
        return await ledger.create_loan(loan.model_dump(mode="json"))
    except ledger.ItemNotFound as e:
        logger.warning(f"Inventory item not found: {loan.inventory_id}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except (ledger.InsufficientAvailability, ledger.LoanConflict) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ledger.StoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating borrow record: {str(e)}")
        logger.error(traceback.format_exc())
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error creating borrow record: {str(e)}"
        )

# Active borrowings
@router.get(
    "",
    response_model=List[BorrowRecordView],
    summary="List active borrowings",
    description="""
    List every loan still in status **Borrowed**, newest first.

    Each record carries `overdue`, true when today's date is past its
    `due_date`. Pass `overdue_only=true` to keep only those.
    """,
    response_description="Returns the open borrow records"
)
async def list_active_borrowings(
    overdue_only: bool = Query(False, description="Only return overdue loans")
):
    try:
        logger.info(f"Listing active borrowings (overdue_only={overdue_only})")
        records = await ledger.list_active_loans(overdue_only=overdue_only)
        logger.debug(f"Found {len(records)} active borrowings")
        return records
    except Exception as e:
        logger.error(f"Error listing active borrowings: {str(e)}")
        logger.error(traceback.format_exc())
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error listing active borrowings: {str(e)}"
        )

# Mark a loan returned
@router.post(
    "/{record_id}/return",
    response_model=BorrowRecordView,
    summary="Mark a borrowing returned",
    description="""
    Close a loan. The return details are submitted together:

    - `condition_on_return`: `Good`, `Needs Repair` or `Damaged`
    - `missing_items`: number of pieces not brought back (0 or more)
    - `repair_cost`: cost of repairs (0 or more)
    - `checked_by`: who inspected the return

    The record's status becomes **Returned** and `date_returned` is set to
    today. Closing an already returned record overwrites these fields.
    """,
    response_description="Returns the closed borrow record"
)
async def return_item(record_id: str, return_data: ReturnCreate = Body(...)):
    try:
        logger.info(f"Return of borrow record: {record_id}")
        logger.debug(f"Return data: {return_data.model_dump(mode='json')}")
        return await ledger.close_loan(record_id, return_data.model_dump(mode="json"))
    except ledger.RecordNotFound as e:
        logger.warning(f"Borrow record not found: {record_id}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ledger.StoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    except Exception as e:
        logger.error(f"Error returning borrow record: {str(e)}")
        logger.error(traceback.format_exc())
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error returning borrow record: {str(e)}"
        )
