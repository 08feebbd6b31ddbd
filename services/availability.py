"""
Availability and overdue accounting.

Everything here is a pure function of the item and borrow-record dicts it
is handed, as returned by ``database.operations``. Nothing is cached;
callers recompute on every request.
"""

import re
from datetime import date
from typing import Any, Dict, Iterable, Optional

BORROWED = "Borrowed"

SEARCH_FIELDS = ("name", "category", "location")


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def borrowed_quantity(records: Iterable[Dict[str, Any]], item_id: str) -> int:
    """Units of ``item_id`` currently out on loan."""
    return sum(
        _as_int(r.get("qty"))
        for r in records
        if r.get("inventory_id") == item_id and r.get("status") == BORROWED
    )


def available(item: Dict[str, Any], records: Iterable[Dict[str, Any]]) -> int:
    return _as_int(item.get("quantity")) - borrowed_quantity(records, item["id"])


def is_overdue(record: Dict[str, Any], today: Optional[date] = None) -> bool:
    due = record.get("due_date")
    if not due or record.get("status") != BORROWED:
        return False
    today = today or date.today()
    # ISO dates compare correctly as strings
    return today.isoformat() > str(due)


def search_query(text: Optional[str]) -> Dict[str, Any]:
    """Store filter for a case-insensitive substring match on name, category or location."""
    text = (text or "").strip()
    if not text:
        return {}
    pattern = re.escape(text)
    return {"$or": [{field: {"$regex": pattern, "$options": "i"}} for field in SEARCH_FIELDS]}
