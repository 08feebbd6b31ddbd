from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import traceback
from starlette.middleware.base import BaseHTTPMiddleware

# Import logging
from logging_config import logger, log_request_info, log_response_info

# Import routers
from routers import inventory, borrow, returns
from database.db import init_db

# Create FastAPI app
app = FastAPI(
    title="Costume Logistics API",
    description="""
    # Costume Logistics API

    Inventory and borrow system for a costume store room.

    ## Features

    - **Inventory**: Record costume items, search by name, category or location,
      and see how many units of each are available right now
    - **Borrowing**: Lend units to borrowers; a loan is refused when not enough
      units are available
    - **Returns**: Close loans with the condition on return, missing pieces,
      repair cost and who checked them in
    - **Overdue tracking**: Active loans past their due date are flagged
    - **CSV**: Export the inventory to `inventory_export.csv` and import it back
    """,
    version="1.0.0",
    license_info={
        "name": "MIT License",
        "url": "https://opensource.org/licenses/MIT",
    },
    openapi_tags=[
        {
            "name": "Inventory",
            "description": "Costume items, availability and CSV import/export"
        },
        {
            "name": "Borrow",
            "description": "Creating loans, active loans and marking loans returned"
        },
        {
            "name": "Returns",
            "description": "Borrow and return history"
        },
        {
            "name": "Root",
            "description": "Root endpoint for the API"
        }
    ]
)

# Logging middleware
class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        log_request_info(request)
        try:
            response = await call_next(request)
            log_response_info(response)
            return response
        except Exception as e:
            logger.error(f"Request failed: {str(e)}")
            logger.error(traceback.format_exc())
            raise

# Add logging middleware
app.add_middleware(LoggingMiddleware)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # For production, specify actual origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(inventory.router, prefix="/inventory", tags=["Inventory"])
app.include_router(borrow.router, prefix="/borrow", tags=["Borrow"])
app.include_router(returns.router, prefix="/returns", tags=["Returns"])

# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    logger.info("Root endpoint accessed")
    return {"message": "Welcome to Costume Logistics API"}

# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {str(exc)}")
    logger.error(traceback.format_exc())
    return JSONResponse(
        status_code=500,
        content={"detail": f"An unexpected error occurred: {str(exc)}"}
    )

# Startup event to initialize database
@app.on_event("startup")
async def startup_event():
    logger.info("Starting application...")
    await init_db()
    logger.info("Application started successfully")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
