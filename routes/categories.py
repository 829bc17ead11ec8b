# routes/categories.py
from fastapi import APIRouter, HTTPException, Depends
from pymongo import ReturnDocument
from bson import ObjectId
from datetime import datetime
from typing import List

from database import get_db, clean
from models.category import Category, CategoryCreate, CategoryUpdate
from services.activity_log import log_activity
from .auth import get_current_admin, get_current_user

router = APIRouter(prefix="/api/categories", tags=["categories"])

@router.get("/", response_model=List[Category])
async def get_categories(current_admin: dict = Depends(get_current_admin), db=Depends(get_db)):
    categories = await db.categories.find().sort("createdAt", -1).to_list(None)
    await log_activity(db, current_admin["id"], "VIEW", "categories", "Viewed category list")
    return [clean(cat) for cat in categories]

@router.get("/user")
async def get_categories_for_user(current_user: dict = Depends(get_current_user), db=Depends(get_db)):
    categories = await db.categories.find().sort("createdAt", -1).to_list(None)
    return [
        {"id": cat["id"], "name": cat["name"], "imageUrl": cat.get("imageUrl", ""), "createdAt": cat["createdAt"]}
        for cat in categories
    ]

@router.post("/", response_model=Category, status_code=201)
async def add_category(category: CategoryCreate, current_admin: dict = Depends(get_current_admin), db=Depends(get_db)):
    if not category.name.strip():
        raise HTTPException(400, "Category name is required")
    category_dict = category.dict()
    category_dict["name"] = category.name.strip()
    category_dict["id"] = str(ObjectId())
    category_dict["createdBy"] = current_admin["id"]
    category_dict["createdAt"] = datetime.utcnow()
    await db.categories.insert_one(category_dict)
    await log_activity(db, current_admin["id"], "INSERT", "categories", f"Created category {category_dict['name']}")
    return clean(category_dict)

@router.put("/{id}", response_model=Category)
async def update_category(id: str, category: CategoryUpdate, current_admin: dict = Depends(get_current_admin), db=Depends(get_db)):
    update = {k: v for k, v in category.dict().items() if v is not None}
    if "name" in update and not update["name"].strip():
        raise HTTPException(400, "Category name is required")
    if not update:
        existing = await db.categories.find_one({"id": id})
        if not existing:
            raise HTTPException(404, "Category not found")
        return clean(existing)
    updated = await db.categories.find_one_and_update(
        {"id": id}, {"$set": update}, return_document=ReturnDocument.AFTER
    )
    if not updated:
        raise HTTPException(404, "Category not found")
    await log_activity(db, current_admin["id"], "UPDATE", "categories", f"Updated category {updated['name']}")
    return clean(updated)

@router.delete("/{id}")
async def delete_category(id: str, current_admin: dict = Depends(get_current_admin), db=Depends(get_db)):
    category = await db.categories.find_one_and_delete({"id": id})
    if not category:
        raise HTTPException(404, "Category not found")
    await log_activity(db, current_admin["id"], "DELETE", "categories", f"Deleted category {category['name']}")
    return {"message": "Category deleted"}
