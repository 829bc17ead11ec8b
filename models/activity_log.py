# models/activity_log.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional

LOG_ACTIONS = ("LOGIN", "INSERT", "UPDATE", "DELETE", "VIEW")

class ActivityLog(BaseModel):
    id: str
    adminId: Optional[str] = None
    userId: Optional[str] = None
    action: str
    table: Optional[str] = None
    description: Optional[str] = None
    createdAt: datetime
