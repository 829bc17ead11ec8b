# routes/answers.py
from fastapi import APIRouter, HTTPException, Depends
from typing import List, Optional

from database import get_db, clean
from models.answer import Answer, AnswerSubmit, AnswerCorrection, SubmissionResult, CorrectionResult
from services.activity_log import log_activity
from services.score_accumulator import ScoreAccumulator
from .auth import get_current_admin, get_current_user

router = APIRouter(prefix="/api/answers", tags=["answers"])

@router.get("/", response_model=List[Answer])
async def get_answers(userId: Optional[str] = None, current_admin: dict = Depends(get_current_admin), db=Depends(get_db)):
    query = {"userId": userId} if userId else {}
    answers = await db.answers.find(query).sort("createdAt", -1).to_list(None)
    await log_activity(db, current_admin["id"], "VIEW", "answers", "Viewed answer list")
    return [clean(answer) for answer in answers]

@router.post("/submit", response_model=SubmissionResult, status_code=201)
async def submit_answer(submission: AnswerSubmit, current_user: dict = Depends(get_current_user), db=Depends(get_db)):
    if current_user["id"] != submission.userId:
        raise HTTPException(403, "Users can only submit their own answers")

    accumulator = ScoreAccumulator.from_db(db)
    answer, score = await accumulator.submit_answer(
        submission.userId, submission.questionId, submission.chosenLabel
    )
    await log_activity(
        db, None, "INSERT", "answers",
        f"Answer submitted for question {submission.questionId}", submission.userId
    )
    return {**answer, "score": score}

@router.put("/{id}/correction", response_model=CorrectionResult)
async def correct_answer(id: str, correction: AnswerCorrection, current_admin: dict = Depends(get_current_admin), db=Depends(get_db)):
    accumulator = ScoreAccumulator.from_db(db)
    answer, score = await accumulator.correct_answer(id, correction.isCorrect, current_admin["id"])
    await log_activity(
        db, current_admin["id"], "UPDATE", "answers",
        f"Marked answer {id} as {'correct' if correction.isCorrect else 'incorrect'}", answer["userId"]
    )
    return {**answer, "score": score}
