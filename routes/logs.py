# routes/logs.py
from fastapi import APIRouter, HTTPException, Depends
from typing import List, Optional

from database import get_db, clean
from models.activity_log import ActivityLog, LOG_ACTIONS
from .auth import get_current_admin

router = APIRouter(prefix="/api/logs", tags=["logs"])

LOG_LIMIT = 100

@router.get("/", response_model=List[ActivityLog])
async def get_logs(
    adminId: Optional[str] = None,
    action: Optional[str] = None,
    table: Optional[str] = None,
    current_admin: dict = Depends(get_current_admin),
    db=Depends(get_db)
):
    if action and action not in LOG_ACTIONS:
        raise HTTPException(400, f"Invalid action. Must be one of {', '.join(LOG_ACTIONS)}")
    query = {}
    if adminId:
        query["adminId"] = adminId
    if action:
        query["action"] = action
    if table:
        query["table"] = table
    logs = await db.activity_logs.find(query).sort("createdAt", -1).limit(LOG_LIMIT).to_list(None)
    return [clean(log) for log in logs]
