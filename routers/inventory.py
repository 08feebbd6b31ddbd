from fastapi import APIRouter, HTTPException, status, Query, UploadFile, File, Response
from typing import List, Optional
import traceback

from models.inventory import (
    InventoryItemCreate,
    InventoryItemUpdate,
    InventoryItemView,
    ImportSummary
)
from services import ledger
from services.csv_codec import EmptyCSVError, EXPORT_FILENAME, export_inventory_csv
from logging_config import logger

router = APIRouter()

# List / search inventory
@router.get(
    "",
    response_model=List[InventoryItemView],
    summary="List inventory items",
    description="""
    List costume inventory items, newest first.

    The optional `q` filter is a case-insensitive substring match on the item
    **name**, **category** or **location**.

    Every item carries `borrowed` (units on active loan) and `available`
    (quantity minus borrowed), computed at request time.
    """,
    response_description="Returns a page of inventory items with availability"
)
async def list_inventory_items(
    q: Optional[str] = Query(None, description="Search by name, category or location"),
    skip: int = Query(0, ge=0, description="Number of items to skip"),
    limit: int = Query(100, ge=1, le=500, description="Maximum number of items to return")
):
    try:
        logger.info(f"Listing inventory items: q={q!r} skip={skip} limit={limit}")
        items = await ledger.list_items(q, skip=skip, limit=limit)
        logger.debug(f"Found {len(items)} inventory items")
        return items
    except Exception as e:
        logger.error(f"Error listing inventory items: {str(e)}")
        logger.error(traceback.format_exc())
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error listing inventory items: {str(e)}"
        )

# Add inventory item
@router.post(
    "",
    response_model=InventoryItemView,
    status_code=status.HTTP_201_CREATED,
    summary="Add inventory item",
    description="""
    Add a new costume item to the inventory.

    Only `name` is required. The other fields default to category
    `Accessory`, size `Free`, quantity `1`, condition `Good` and location
    `Storage`. An `id` is generated when none is given; reusing an existing
    id is rejected with **409**.
    """,
    response_description="Returns the newly created item"
)
async def add_inventory_item(item: InventoryItemCreate):
    try:
        logger.info(f"Adding inventory item: {item.name}")
        logger.debug(f"Inventory item data: {item.model_dump()}")
        return await ledger.add_item(item.model_dump())
    except ledger.DuplicateItem as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ledger.StoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    except Exception as e:
        logger.error(f"Error adding inventory item: {str(e)}")
        logger.error(traceback.format_exc())
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error adding inventory item: {str(e)}"
        )

# Export inventory to CSV
@router.get(
    "/export",
    summary="Export inventory as CSV",
    description="""
    Download the whole inventory as `inventory_export.csv`.

    Columns: `id,name,category,size,color,quantity,condition,location,notes`.
    Text fields are quoted, so commas, quotes and line breaks survive a
    re-import.
    """,
    response_description="Returns the CSV file"
)
async def export_inventory():
    try:
        logger.info("Exporting inventory to CSV")
        items = await ledger.all_items()
        content = export_inventory_csv(items)
        logger.debug(f"Exported {len(items)} inventory items")
        return Response(
            content=content,
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'}
        )
    except Exception as e:
        logger.error(f"Error exporting inventory: {str(e)}")
        logger.error(traceback.format_exc())
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error exporting inventory: {str(e)}"
        )

# Import inventory from CSV
@router.post(
    "/import",
    response_model=ImportSummary,
    summary="Import inventory from CSV",
    description="""
    Upload a `.csv` file in the export column order. The first row is
    treated as a header and skipped.

    Rows are added one at a time with no transaction, so an import can
    partly succeed; the summary lists the rows that failed and why.
    Unparseable quantities become `0` and missing text fields become empty.
    """,
    response_description="Returns how many rows were imported and which failed"
)
async def import_inventory(file: UploadFile = File(..., description="CSV file to import")):
    try:
        logger.info(f"Importing inventory from: {file.filename}")

        if not (file.filename or "").lower().endswith(".csv"):
            logger.warning(f"Rejected non-CSV upload: {file.filename}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only .csv files can be imported"
            )

        raw = await file.read()
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="CSV file must be UTF-8 encoded"
            )

        return await ledger.import_csv(text)
    except HTTPException:
        raise
    except EmptyCSVError as e:
        logger.warning(f"Empty CSV upload: {file.filename}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error importing inventory: {str(e)}")
        logger.error(traceback.format_exc())
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error importing inventory: {str(e)}"
        )
    finally:
        await file.close()

# Get a single inventory item
@router.get(
    "/{item_id}",
    response_model=InventoryItemView,
    summary="Get inventory item",
    response_description="Returns the item with availability"
)
async def get_inventory_item(item_id: str):
    try:
        logger.info(f"Getting inventory item: {item_id}")
        return await ledger.get_item(item_id)
    except ledger.ItemNotFound as e:
        logger.warning(f"Inventory item not found: {item_id}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Error getting inventory item: {str(e)}")
        logger.error(traceback.format_exc())
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error getting inventory item: {str(e)}"
        )

# Edit an inventory item
@router.patch(
    "/{item_id}",
    response_model=InventoryItemView,
    summary="Update inventory item",
    description="""
    Update any subset of an item's fields.

    Lowering `quantity` below the units currently on loan is rejected with
    **409**. So is an edit that races a loan on the same item.
    """,
    response_description="Returns the updated item"
)
async def update_inventory_item(item_id: str, update_data: InventoryItemUpdate):
    try:
        logger.info(f"Updating inventory item: {item_id}")
        patch = update_data.model_dump(exclude_unset=True)
        logger.debug(f"Update data: {patch}")
        return await ledger.update_item(item_id, patch)
    except ledger.ItemNotFound as e:
        logger.warning(f"Inventory item not found: {item_id}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ledger.QuantityBelowBorrowed as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ledger.LoanConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ledger.StoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    except Exception as e:
        logger.error(f"Error updating inventory item: {str(e)}")
        logger.error(traceback.format_exc())
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error updating inventory item: {str(e)}"
        )

# Delete an inventory item
@router.delete(
    "/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete inventory item",
    description="""
    Permanently remove an item from the inventory.

    Deletion is refused with **409** while any loan of the item is still
    open. Returned loans stay in the history with the costume name they
    were recorded under.
    """,
    response_description="No content is returned on successful deletion"
)
async def delete_inventory_item(item_id: str):
    try:
        logger.info(f"Deleting inventory item: {item_id}")
        await ledger.remove_item(item_id)
        return None
    except ledger.ItemNotFound as e:
        logger.warning(f"Inventory item not found: {item_id}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ledger.ItemOnLoan as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ledger.StoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    except Exception as e:
        logger.error(f"Error deleting inventory item: {str(e)}")
        logger.error(traceback.format_exc())
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error deleting inventory item: {str(e)}"
        )
