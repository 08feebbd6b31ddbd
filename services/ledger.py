"""
Inventory and loan rules on top of the store adapters.

Routers call into this module and translate the ``LedgerError`` subclasses
into HTTP responses. Store write failures are logged here and re-raised as
``StoreError``; nothing is held locally, so a failed write leaves no state
to roll back.

Loan creation guards the quantity invariant with the item's ``version``
field: the record is inserted first, then the version read at check time
is claimed with a conditional increment. If the claim misses, another
writer got in between, so the record is deleted again and the loan is
reported as a conflict.
"""

import uuid
from datetime import date
from typing import Any, Dict, List, Optional

from pymongo.errors import DuplicateKeyError, PyMongoError

from database import operations
from logging_config import logger
from models.inventory import InventoryItemCreate
from services.availability import BORROWED, available, borrowed_quantity, is_overdue, search_query
from services.csv_codec import parse_inventory_csv

RETURNED = "Returned"


class LedgerError(Exception):
    pass

class ItemNotFound(LedgerError):
    pass

class RecordNotFound(LedgerError):
    pass

class InsufficientAvailability(LedgerError):
    def __init__(self, available_qty: int):
        self.available = available_qty
        super().__init__(f"Not enough available. {available_qty} left.")

class LoanConflict(LedgerError):
    pass

class DuplicateItem(LedgerError):
    pass

class ItemOnLoan(LedgerError):
    pass

class QuantityBelowBorrowed(LedgerError):
    pass

class StoreError(LedgerError):
    pass


def generate_id(prefix: str = "id") -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"

def _today(today: Optional[date]) -> date:
    return today or date.today()

def with_availability(item: Dict[str, Any], active_records: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        **item,
        "borrowed": borrowed_quantity(active_records, item["id"]),
        "available": available(item, active_records),
    }

def with_overdue(record: Dict[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
    return {**record, "overdue": is_overdue(record, _today(today))}


# Inventory
async def list_items(text: Optional[str] = None, skip: int = 0, limit: int = 0) -> List[Dict[str, Any]]:
    items = await operations.get_inventory_items(search_query(text), skip=skip, limit=limit)
    active = await operations.get_active_borrow_records()
    return [with_availability(item, active) for item in items]

async def all_items() -> List[Dict[str, Any]]:
    return await operations.get_inventory_items()

async def get_item(item_id: str) -> Dict[str, Any]:
    item = await operations.get_inventory_item(item_id)
    if not item:
        raise ItemNotFound(f"Inventory item {item_id} not found")
    active = await operations.get_active_borrow_records(item_id)
    return with_availability(item, active)

async def add_item(item_data: Dict[str, Any]) -> Dict[str, Any]:
    item = dict(item_data)
    item["id"] = item.get("id") or generate_id("c")

    try:
        created = await operations.add_inventory_item(item)
    except DuplicateKeyError:
        logger.warning(f"Inventory item already exists: {item['id']}")
        raise DuplicateItem(f"Inventory item {item['id']} already exists")
    except (PyMongoError, OverflowError) as e:
        logger.error(f"Failed to add inventory item {item['id']}: {e}")
        raise StoreError("Failed to add inventory item") from e

    logger.info(f"Inventory item added: {created['name']} ({created['id']})")
    return with_availability(created, [])

async def update_item(item_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
    patch = {key: value for key, value in patch.items() if value is not None}
    current = await get_item(item_id)

    if "quantity" in patch and patch["quantity"] < current["borrowed"]:
        logger.warning(f"Quantity {patch['quantity']} below borrowed units for {item_id}")
        raise QuantityBelowBorrowed(
            f"Quantity cannot be lower than the {current['borrowed']} unit(s) currently on loan"
        )
    if not patch:
        return current

    try:
        updated = await operations.update_inventory_item(item_id, patch, version=current.get("version", 0))
    except (PyMongoError, OverflowError) as e:
        logger.error(f"Failed to update inventory item {item_id}: {e}")
        raise StoreError("Failed to update inventory item") from e

    if not updated:
        if not await operations.get_inventory_item(item_id):
            raise ItemNotFound(f"Inventory item {item_id} not found")
        logger.warning(f"Edit of {item_id} lost the race for version {current.get('version', 0)}")
        raise LoanConflict(f"{current['name']} changed while it was being edited; please retry")

    logger.info(f"Inventory item updated: {item_id}")
    active = await operations.get_active_borrow_records(item_id)
    return with_availability(updated, active)

async def remove_item(item_id: str) -> None:
    item = await operations.get_inventory_item(item_id)
    if not item:
        raise ItemNotFound(f"Inventory item {item_id} not found")

    active = await operations.get_active_borrow_records(item_id)
    if active:
        on_loan = borrowed_quantity(active, item_id)
        logger.warning(f"Refusing to delete {item_id}: {on_loan} unit(s) on loan")
        raise ItemOnLoan(f"{item['name']} has {on_loan} unit(s) on loan; close those loans first")

    try:
        deleted = await operations.delete_inventory_item(item_id)
    except PyMongoError as e:
        logger.error(f"Failed to delete inventory item {item_id}: {e}")
        raise StoreError("Failed to delete inventory item") from e

    if not deleted:
        raise ItemNotFound(f"Inventory item {item_id} not found")
    logger.info(f"Inventory item deleted: {item_id}")


# Loans
async def create_loan(loan_data: Dict[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
    item_id = loan_data["inventory_id"]
    item = await operations.get_inventory_item(item_id)
    if not item:
        raise ItemNotFound(f"Inventory item {item_id} not found")

    active = await operations.get_active_borrow_records(item_id)
    left = available(item, active)
    if loan_data["qty"] > left:
        logger.warning(f"Loan of {loan_data['qty']} x {item_id} refused, {left} available")
        raise InsufficientAvailability(left)

    due_date = loan_data.get("due_date")
    record = {
        **loan_data,
        "id": generate_id("b"),
        "costume_name": item["name"],
        "due_date": str(due_date) if due_date else None,
        "status": BORROWED,
        "date_borrowed": _today(today).isoformat(),
        "date_returned": None,
    }

    try:
        created = await operations.add_borrow_record(record)
    except PyMongoError as e:
        logger.error(f"Failed to record loan of {item_id}: {e}")
        raise StoreError("Failed to create borrow record") from e

    try:
        claimed = await operations.claim_inventory_version(item_id, item.get("version", 0))
    except PyMongoError as e:
        logger.error(f"Failed to claim version of {item_id}: {e}")
        claimed = False

    if not claimed:
        await _compensate_loan(created["id"])
        raise LoanConflict(f"{item['name']} changed while the loan was being recorded; please retry")

    logger.info(f"Loan created: {created['id']} {created['qty']} x {item_id} to {created['borrower_name']}")
    return with_overdue(created, today)

async def _compensate_loan(record_id: str) -> None:
    logger.warning(f"Concurrent write detected, withdrawing loan {record_id}")
    try:
        await operations.delete_borrow_record(record_id)
    except PyMongoError as e:
        # Left behind as an active record until someone closes it
        logger.error(f"Failed to withdraw loan {record_id}: {e}")
        raise StoreError("Failed to withdraw conflicting borrow record") from e

async def close_loan(record_id: str, return_data: Dict[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
    # Closing an already returned record overwrites the return fields again
    patch = {
        **return_data,
        "status": RETURNED,
        "date_returned": _today(today).isoformat(),
    }

    try:
        updated = await operations.update_borrow_record(record_id, patch)
    except PyMongoError as e:
        logger.error(f"Failed to close loan {record_id}: {e}")
        raise StoreError("Failed to close borrow record") from e

    if not updated:
        raise RecordNotFound(f"Borrow record {record_id} not found")

    logger.info(f"Loan returned: {record_id} checked by {updated.get('checked_by')}")
    return with_overdue(updated, today)

async def list_active_loans(overdue_only: bool = False, today: Optional[date] = None) -> List[Dict[str, Any]]:
    records = [with_overdue(r, today) for r in await operations.get_active_borrow_records()]
    if overdue_only:
        records = [r for r in records if r["overdue"]]
    return records

async def list_history(skip: int = 0, limit: int = 0, today: Optional[date] = None) -> List[Dict[str, Any]]:
    records = await operations.get_borrow_records(skip=skip, limit=limit)
    return [with_overdue(r, today) for r in records]

async def get_record(record_id: str, today: Optional[date] = None) -> Dict[str, Any]:
    record = await operations.get_borrow_record(record_id)
    if not record:
        raise RecordNotFound(f"Borrow record {record_id} not found")
    return with_overdue(record, today)


# CSV import
async def import_csv(text: str) -> Dict[str, Any]:
    """
    Add every row of an inventory CSV, one write per row.

    There is no transaction: rows that fail are reported and the rest are
    kept. Raises EmptyCSVError when the file has no data rows.
    """
    rows = parse_inventory_csv(text)
    created_ids = []
    failures = []

    for number, row in enumerate(rows, start=1):
        try:
            item = InventoryItemCreate(**row)
            created = await add_item(item.model_dump())
            created_ids.append(created["id"])
        except (LedgerError, ValueError) as e:
            logger.warning(f"CSV row {number} not imported: {e}")
            failures.append({"row": number, "id": row.get("id"), "reason": str(e)})

    logger.info(f"CSV import finished: {len(created_ids)} imported, {len(failures)} failed")
    return {
        "imported": len(created_ids),
        "failed": len(failures),
        "created_ids": created_ids,
        "failures": failures,
    }
