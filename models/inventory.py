from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

# Largest count the store can hold in a 64-bit integer
MAX_QUANTITY = 2**63 - 1

class InventoryItemBase(BaseModel):
    name: str
    category: str = "Accessory"
    size: str = "Free"
    color: str = ""
    quantity: int = Field(1, ge=0, le=MAX_QUANTITY)
    condition: str = "Good"
    location: str = "Storage"
    notes: str = ""

class InventoryItemCreate(InventoryItemBase):
    # Generated when omitted
    id: Optional[str] = None

class InventoryItem(InventoryItemBase):
    id: str
    version: int = 0
    created_at: Optional[datetime] = None

class InventoryItemView(InventoryItem):
    borrowed: int
    available: int

class InventoryItemUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    size: Optional[str] = None
    color: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=0, le=MAX_QUANTITY)
    condition: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None

class ImportFailure(BaseModel):
    row: int
    id: Optional[str] = None
    reason: str

class ImportSummary(BaseModel):
    imported: int
    failed: int
    created_ids: List[str] = []
    failures: List[ImportFailure] = []
