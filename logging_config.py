import logging
import os
import sys
from pprint import pformat

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG").upper()

# Configure logging
def setup_logging():
    # Create logger
    logger = logging.getLogger("costume_api")
    logger.setLevel(LOG_LEVEL)

    # Avoid stacking handlers when the module is reloaded
    if logger.handlers:
        return logger

    # Create console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(LOG_LEVEL)

    # Create formatter
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    console_handler.setFormatter(formatter)

    # Add handler to logger
    logger.addHandler(console_handler)

    return logger

# Get the logger
logger = setup_logging()

def log_request_info(request, message="Request received"):
    """Log detailed request information"""
    logger.info(f"{message}: {request.method} {request.url}")
    logger.debug(f"Request headers: {pformat(dict(request.headers))}")
    if request.query_params:
        logger.debug(f"Query params: {pformat(dict(request.query_params))}")

def log_response_info(response, message="Response sent"):
    """Log detailed response information"""
    logger.info(f"{message}: Status {response.status_code}")
    logger.debug(f"Response headers: {pformat(dict(response.headers))}")
    body = getattr(response, "body", None)
    if body is None:
        # Streaming responses have no buffered body
        logger.debug("Response body not buffered")
        return
    try:
        logger.debug(f"Response body: {pformat(body.decode())}")
    except UnicodeDecodeError:
        logger.debug("Could not decode response body")
