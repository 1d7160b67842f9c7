# athletrack/database/connection.py
import logging

from pymongo import MongoClient

from athletrack.config import MONGODB_URI, DB_NAME

logger = logging.getLogger(__name__)

# Initialize database connection with error handling
try:
    if not MONGODB_URI:
        raise ValueError("MONGODB_URI environment variable not set")

    client = MongoClient(MONGODB_URI, serverSelectionTimeoutMS=5000)
    db = client[DB_NAME]

    # Test connection
    client.admin.command("ping")
    logger.info(f"Database connection successful: {DB_NAME}")
except Exception as e:
    logger.warning(f"Database connection failed: {e}")
    client = None
    db = None
