# models/user.py
from pydantic import BaseModel
from datetime import datetime

class UserLogin(BaseModel):
    name: str

class UserUpdate(BaseModel):
    name: str

class User(BaseModel):
    id: str
    name: str
    createdAt: datetime
