"""
CSV export and import of the inventory collection.

Columns are fixed and positional:

    id,name,category,size,color,quantity,condition,location,notes

Export quotes every text field and leaves ``quantity`` bare. Import is
quote-aware, so commas, quotes and newlines inside any field survive a
round trip. The header row is written on export and skipped on import
without looking at its content.
"""

import csv
import io
import math
from typing import Any, Dict, Iterable, List, Optional

from models.inventory import MAX_QUANTITY

CSV_COLUMNS = ["id", "name", "category", "size", "color", "quantity", "condition", "location", "notes"]
EXPORT_FILENAME = "inventory_export.csv"


class EmptyCSVError(ValueError):
    pass


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def parse_quantity(value: Optional[str]) -> int:
    """Whole units from a CSV cell; anything unusable becomes 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0
    quantity = int(number)
    return quantity if quantity <= MAX_QUANTITY else 0


def export_inventory_csv(items: Iterable[Dict[str, Any]]) -> str:
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerow(CSV_COLUMNS)

    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    for item in items:
        row = [_text(item.get(column)) for column in CSV_COLUMNS]
        row[CSV_COLUMNS.index("quantity")] = parse_quantity(item.get("quantity"))
        writer.writerow(row)

    return buffer.getvalue()


def parse_inventory_csv(text: str) -> List[Dict[str, Any]]:
    """
    Turn CSV text into item rows ready for the item-creation path.

    Short rows are padded: missing text fields become "" and a missing id
    becomes None so the caller generates one. Raises EmptyCSVError when
    there is nothing after the header.
    """
    if text.startswith("\ufeff"):
        text = text[1:]

    reader = csv.reader(io.StringIO(text, newline=""))
    rows = [row for row in reader if any(cell.strip() for cell in row)]
    if len(rows) <= 1:
        raise EmptyCSVError("No data found")

    items = []
    for row in rows[1:]:
        cells = (row + [""] * len(CSV_COLUMNS))[:len(CSV_COLUMNS)]
        item = dict(zip(CSV_COLUMNS, cells))
        item["id"] = item["id"].strip() or None
        item["quantity"] = parse_quantity(item["quantity"])
        items.append(item)
    return items
