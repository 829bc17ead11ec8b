# routes/questions.py
from fastapi import APIRouter, HTTPException, Depends
from pymongo import ReturnDocument
from bson import ObjectId
from datetime import datetime
from typing import List, Optional
import logging

from database import get_db, clean
from models.question import Question, QuestionCreate, QuestionUpdate, OPTION_LABELS, QUESTION_STATUSES
from services.activity_log import log_activity
from .auth import get_current_admin, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/questions", tags=["questions"])

async def validate_question_fields(fields: dict, db):
    if "correctLabel" in fields and fields["correctLabel"] not in OPTION_LABELS:
        raise HTTPException(400, f"Correct label must be one of {', '.join(OPTION_LABELS)}")
    if "status" in fields and fields["status"] not in QUESTION_STATUSES:
        raise HTTPException(400, f"Invalid status. Must be one of {', '.join(QUESTION_STATUSES)}")
    for key in ("text", "optionA", "optionB", "optionC"):
        if key in fields and not fields[key].strip():
            raise HTTPException(400, f"{key} must not be empty")
    if "categoryId" in fields and not await db.categories.find_one({"id": fields["categoryId"]}):
        raise HTTPException(404, "Category not found")

@router.get("/", response_model=List[Question])
async def get_questions(categoryId: Optional[str] = None, current_admin: dict = Depends(get_current_admin), db=Depends(get_db)):
    query = {"categoryId": categoryId} if categoryId else {}
    questions = await db.questions.find(query).sort("createdAt", -1).to_list(None)
    await log_activity(db, current_admin["id"], "VIEW", "questions", "Viewed question list")
    return [clean(question) for question in questions]

@router.get("/user", response_model=List[Question])
async def get_questions_for_user(categoryId: Optional[str] = None, current_user: dict = Depends(get_current_user), db=Depends(get_db)):
    if not categoryId:
        raise HTTPException(400, "categoryId query parameter is required")
    # Only active questions are served to quiz takers
    questions = await db.questions.find({"categoryId": categoryId, "status": "active"}).sort("createdAt", -1).to_list(None)
    return [clean(question) for question in questions]

@router.post("/", response_model=Question, status_code=201)
async def add_question(question: QuestionCreate, current_admin: dict = Depends(get_current_admin), db=Depends(get_db)):
    question_dict = question.dict()
    await validate_question_fields(question_dict, db)
    question_dict["id"] = str(ObjectId())
    question_dict["createdBy"] = current_admin["id"]
    question_dict["createdAt"] = datetime.utcnow()
    await db.questions.insert_one(question_dict)
    logger.info(f"Question {question_dict['id']} created in category {question.categoryId}")
    await log_activity(db, current_admin["id"], "INSERT", "questions", "Created a new question")
    return clean(question_dict)

@router.put("/{id}", response_model=Question)
async def update_question(id: str, question: QuestionUpdate, current_admin: dict = Depends(get_current_admin), db=Depends(get_db)):
    update = {k: v for k, v in question.dict().items() if v is not None}
    await validate_question_fields(update, db)
    if not update:
        existing = await db.questions.find_one({"id": id})
        if not existing:
            raise HTTPException(404, "Question not found")
        return clean(existing)
    updated = await db.questions.find_one_and_update(
        {"id": id}, {"$set": update}, return_document=ReturnDocument.AFTER
    )
    if not updated:
        raise HTTPException(404, "Question not found")
    await log_activity(db, current_admin["id"], "UPDATE", "questions", f"Updated question {id}")
    return clean(updated)

@router.delete("/{id}")
async def delete_question(id: str, current_admin: dict = Depends(get_current_admin), db=Depends(get_db)):
    result = await db.questions.delete_one({"id": id})
    if result.deleted_count == 0:
        raise HTTPException(404, "Question not found")
    await log_activity(db, current_admin["id"], "DELETE", "questions", f"Deleted question {id}")
    return {"message": "Question deleted"}
