# models/answer.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional
from .score import Score

class AnswerSubmit(BaseModel):
    userId: str
    questionId: str
    # Left as a plain string so an out-of-range label reaches the scoring service
    chosenLabel: str

class AnswerCorrection(BaseModel):
    isCorrect: bool

class Answer(BaseModel):
    id: str
    userId: str
    questionId: str
    categoryId: Optional[str] = None
    chosenLabel: str
    isCorrect: bool = False
    reviewedBy: Optional[str] = None
    createdAt: datetime

class SubmissionResult(Answer):
    score: Score

class CorrectionResult(Answer):
    score: Optional[Score] = None
