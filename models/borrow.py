from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime, date as date_type
from enum import Enum

class BorrowStatus(str, Enum):
    BORROWED = "Borrowed"
    RETURNED = "Returned"

class ReturnCondition(str, Enum):
    GOOD = "Good"
    NEEDS_REPAIR = "Needs Repair"
    DAMAGED = "Damaged"

class BorrowRecordBase(BaseModel):
    inventory_id: str
    borrower_name: str
    department: str = ""
    qty: int = Field(1, gt=0)
    purpose: str = "Event"
    due_date: Optional[date_type] = None
    staff: str = ""

class BorrowRecordCreate(BorrowRecordBase):

    @field_validator('borrower_name')
    @classmethod
    def borrower_name_not_blank(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Borrower name is required')
        return v

class BorrowRecord(BorrowRecordBase):
    id: str
    costume_name: str = ""
    status: BorrowStatus
    date_borrowed: date_type
    date_returned: Optional[date_type] = None
    condition_on_return: Optional[str] = None
    missing_items: Optional[int] = None
    repair_cost: Optional[float] = None
    checked_by: Optional[str] = None
    created_at: Optional[datetime] = None

class BorrowRecordView(BorrowRecord):
    overdue: bool = False

class ReturnCreate(BaseModel):
    """Everything recorded when a loan comes back, submitted as one form."""
    condition_on_return: ReturnCondition = ReturnCondition.GOOD
    missing_items: int = Field(0, ge=0)
    repair_cost: float = Field(0, ge=0)
    checked_by: str = "Staff"

    @field_validator('checked_by')
    @classmethod
    def checked_by_not_blank(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Checked by is required')
        return v
