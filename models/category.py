# models/category.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional

class CategoryCreate(BaseModel):
    name: str
    imageUrl: str = ""

class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    imageUrl: Optional[str] = None

class Category(CategoryCreate):
    id: str
    createdBy: Optional[str] = None
    createdAt: datetime
