from datetime import datetime
from typing import List, Dict, Any, Optional

from pymongo import DESCENDING

from database.db import inventory_collection, borrow_log_collection

# Helper to expose the stored _id as the string "id" field
def serialize_document(doc):
    if doc.get("_id") is not None:
        doc["id"] = str(doc["_id"])
        del doc["_id"]
    return doc

def _to_document(data: Dict[str, Any]) -> Dict[str, Any]:
    doc = dict(data)
    doc["_id"] = doc.pop("id")
    return doc

async def _collect(cursor) -> List[Dict[str, Any]]:
    docs = []
    async for doc in cursor:
        docs.append(serialize_document(doc))
    return docs

# Inventory operations
async def add_inventory_item(item_data: Dict[str, Any]) -> Dict[str, Any]:
    doc = _to_document(item_data)
    doc["version"] = 0
    doc["created_at"] = datetime.utcnow()
    await inventory_collection.insert_one(doc)
    return serialize_document(doc)

async def get_inventory_items(
    query: Optional[Dict[str, Any]] = None,
    skip: int = 0,
    limit: int = 0
) -> List[Dict[str, Any]]:
    cursor = inventory_collection.find(query or {}).sort("created_at", DESCENDING).skip(skip).limit(limit)
    return await _collect(cursor)

async def get_inventory_item(item_id: str) -> Optional[Dict[str, Any]]:
    item = await inventory_collection.find_one({"_id": item_id})
    if item:
        return serialize_document(item)
    return None

async def update_inventory_item(
    item_id: str,
    update_data: Dict[str, Any],
    version: Optional[int] = None
) -> Optional[Dict[str, Any]]:
    # With a version, the write only lands if nobody touched the item since it was read
    query: Dict[str, Any] = {"_id": item_id}
    if version is not None:
        query["version"] = version

    result = await inventory_collection.update_one(
        query,
        {"$set": update_data, "$inc": {"version": 1}}
    )

    if result.matched_count == 0:
        return None

    # Return the updated item
    return await get_inventory_item(item_id)

async def delete_inventory_item(item_id: str) -> bool:
    result = await inventory_collection.delete_one({"_id": item_id})
    return result.deleted_count > 0

async def claim_inventory_version(item_id: str, version: int) -> bool:
    """Bump the item's version only if it still equals the version read earlier.

    Returns False when another writer touched the item in between.
    """
    result = await inventory_collection.update_one(
        {"_id": item_id, "version": version},
        {"$inc": {"version": 1}}
    )
    return result.modified_count > 0

# Borrow log operations
async def add_borrow_record(record_data: Dict[str, Any]) -> Dict[str, Any]:
    doc = _to_document(record_data)
    doc["created_at"] = datetime.utcnow()
    await borrow_log_collection.insert_one(doc)
    return serialize_document(doc)

async def get_borrow_records(
    query: Optional[Dict[str, Any]] = None,
    skip: int = 0,
    limit: int = 0
) -> List[Dict[str, Any]]:
    # Newest first, matching the order records are shown in
    cursor = borrow_log_collection.find(query or {}).sort("created_at", DESCENDING).skip(skip).limit(limit)
    return await _collect(cursor)

async def get_active_borrow_records(inventory_id: Optional[str] = None) -> List[Dict[str, Any]]:
    query = {"status": "Borrowed"}
    if inventory_id is not None:
        query["inventory_id"] = inventory_id
    return await get_borrow_records(query)

async def get_borrow_record(record_id: str) -> Optional[Dict[str, Any]]:
    record = await borrow_log_collection.find_one({"_id": record_id})
    if record:
        return serialize_document(record)
    return None

async def update_borrow_record(record_id: str, update_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    result = await borrow_log_collection.update_one(
        {"_id": record_id},
        {"$set": update_data}
    )

    if result.matched_count == 0:
        return None

    return await get_borrow_record(record_id)

async def delete_borrow_record(record_id: str) -> bool:
    result = await borrow_log_collection.delete_one({"_id": record_id})
    return result.deleted_count > 0
