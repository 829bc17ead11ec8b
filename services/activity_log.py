# services/activity_log.py
from datetime import datetime
import logging

from bson import ObjectId
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


async def log_activity(db, admin_id, action, table, description, user_id=None):
    """Append an audit entry. Failures are logged and never reach the caller."""
    entry = {
        "id": str(ObjectId()),
        "adminId": admin_id,
        "userId": user_id,
        "action": action,
        "table": table,
        "description": description,
        "createdAt": datetime.utcnow(),
    }
    try:
        await db.activity_logs.insert_one(entry)
    except PyMongoError as e:
        logger.error(f"Error logging activity {action} on {table}: {e}")
