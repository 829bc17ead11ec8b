# models/score.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

class Score(BaseModel):
    id: str
    userId: str
    categoryId: Optional[str] = None
    correct: int = 0
    incorrect: int = 0
    total: int = 0
    percentage: int = 0
    reviewedBy: Optional[str] = None
    createdAt: datetime

class ScoreCreate(BaseModel):
    userId: str
    categoryId: Optional[str] = None  # None for an aggregate not tied to a category
    correct: int = Field(0, ge=0)
    incorrect: int = Field(0, ge=0)

class ScoreUpdate(BaseModel):
    correct: int = Field(..., ge=0)
    incorrect: int = Field(..., ge=0)

class ScoreRebuild(BaseModel):
    userId: str
    categoryId: str
