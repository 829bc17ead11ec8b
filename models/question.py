# models/question.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional

OPTION_LABELS = ("A", "B", "C")
QUESTION_STATUSES = ("draft", "active", "inactive")

class QuestionCreate(BaseModel):
    text: str
    optionA: str
    optionB: str
    optionC: str
    correctLabel: str
    categoryId: str
    imageUrl: str = ""
    status: str = "draft"

class QuestionUpdate(BaseModel):
    text: Optional[str] = None
    optionA: Optional[str] = None
    optionB: Optional[str] = None
    optionC: Optional[str] = None
    correctLabel: Optional[str] = None
    categoryId: Optional[str] = None
    imageUrl: Optional[str] = None
    status: Optional[str] = None

class Question(QuestionCreate):
    id: str
    createdBy: Optional[str] = None
    createdAt: datetime
