# routes/users.py
from fastapi import APIRouter, HTTPException, Depends
from pymongo import ReturnDocument
from typing import List

from database import get_db, clean
from models.user import User, UserUpdate
from services.activity_log import log_activity
from .auth import get_current_admin

router = APIRouter(prefix="/api/users", tags=["users"])

@router.get("/", response_model=List[User])
async def get_users(current_admin: dict = Depends(get_current_admin), db=Depends(get_db)):
    users = await db.users.find().sort("createdAt", -1).to_list(None)
    await log_activity(db, current_admin["id"], "VIEW", "users", "Viewed user list")
    return [clean(user) for user in users]

@router.get("/{id}", response_model=User)
async def get_user(id: str, current_admin: dict = Depends(get_current_admin), db=Depends(get_db)):
    user = await db.users.find_one({"id": id})
    if not user:
        raise HTTPException(404, "User not found")
    await log_activity(db, current_admin["id"], "VIEW", "users", f"Viewed user {user['name']}", user["id"])
    return clean(user)

@router.put("/{id}", response_model=User)
async def update_user(id: str, user: UserUpdate, current_admin: dict = Depends(get_current_admin), db=Depends(get_db)):
    name = user.name.strip()
    if not name:
        raise HTTPException(400, "Name is required")
    updated = await db.users.find_one_and_update(
        {"id": id}, {"$set": {"name": name}}, return_document=ReturnDocument.AFTER
    )
    if not updated:
        raise HTTPException(404, "User not found")
    await log_activity(db, current_admin["id"], "UPDATE", "users", f"Updated user {name}", id)
    return clean(updated)

@router.delete("/{id}")
async def delete_user(id: str, current_admin: dict = Depends(get_current_admin), db=Depends(get_db)):
    user = await db.users.find_one_and_delete({"id": id})
    if not user:
        raise HTTPException(404, "User not found")
    await log_activity(db, current_admin["id"], "DELETE", "users", f"Deleted user {user['name']}", id)
    return {"message": "User deleted"}
