from motor.motor_asyncio import AsyncIOMotorClient
import os
from dotenv import load_dotenv

from logging_config import logger

# Load environment variables
load_dotenv()

# MongoDB connection string
MONGO_CONNECTION_STRING = os.getenv("MONGO_CONNECTION_STRING", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "costume_logistics")

# Async client for API operations
async_client = AsyncIOMotorClient(MONGO_CONNECTION_STRING)
async_db = async_client[DATABASE_NAME]

# Collections
inventory_collection = async_db.inventory
borrow_log_collection = async_db.borrow_log

# Create indexes for better performance
async def create_indexes():
    # Inventory indexes (text filter fields)
    await inventory_collection.create_index("name")
    await inventory_collection.create_index("category")
    await inventory_collection.create_index("location")

    # Borrow log indexes
    await borrow_log_collection.create_index([("inventory_id", 1), ("status", 1)])
    await borrow_log_collection.create_index("created_at")

# Initialize database
async def init_db():
    try:
        await create_indexes()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Error initializing database: {e}")
