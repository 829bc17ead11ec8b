# routes/scores.py
from fastapi import APIRouter, HTTPException, Depends
from pymongo.errors import DuplicateKeyError
from typing import List, Optional

from database import get_db, clean
from models.score import Score, ScoreCreate, ScoreUpdate, ScoreRebuild
from services.activity_log import log_activity
from services.score_accumulator import ScoreAccumulator
from services.stores import ScoreStore
from .auth import get_current_admin, get_current_user

router = APIRouter(prefix="/api/scores", tags=["scores"])

@router.get("/", response_model=List[Score])
async def get_scores(
    userId: Optional[str] = None,
    categoryId: Optional[str] = None,
    current_admin: dict = Depends(get_current_admin),
    db=Depends(get_db)
):
    query = {}
    if userId:
        query["userId"] = userId
    if categoryId:
        query["categoryId"] = categoryId
    scores = await db.scores.find(query).sort("createdAt", -1).to_list(None)
    await log_activity(db, current_admin["id"], "VIEW", "scores", "Viewed score list")
    return [clean(score) for score in scores]

@router.get("/user", response_model=List[Score])
async def get_scores_for_user(current_user: dict = Depends(get_current_user), db=Depends(get_db)):
    scores = await db.scores.find({"userId": current_user["id"]}).sort("createdAt", -1).to_list(None)
    return [clean(score) for score in scores]

@router.post("/", response_model=Score, status_code=201)
async def add_score(score: ScoreCreate, current_admin: dict = Depends(get_current_admin), db=Depends(get_db)):
    if not await db.users.find_one({"id": score.userId}):
        raise HTTPException(404, "User not found")
    if score.categoryId and not await db.categories.find_one({"id": score.categoryId}):
        raise HTTPException(404, "Category not found")
    score_dict = score.dict()
    score_dict["reviewedBy"] = current_admin["id"]
    try:
        created = await ScoreStore(db).create(score_dict)
    except DuplicateKeyError:
        raise HTTPException(400, "A score already exists for this user and category")
    await log_activity(db, current_admin["id"], "INSERT", "scores", "Created a score", score.userId)
    return created

@router.put("/{id}", response_model=Score)
async def update_score(id: str, score: ScoreUpdate, current_admin: dict = Depends(get_current_admin), db=Depends(get_db)):
    updated = await ScoreStore(db).replace_counts(id, score.correct, score.incorrect, current_admin["id"])
    await log_activity(db, current_admin["id"], "UPDATE", "scores", f"Updated score {id}", updated["userId"])
    return updated

@router.post("/rebuild", response_model=Score)
async def rebuild_score(request: ScoreRebuild, current_admin: dict = Depends(get_current_admin), db=Depends(get_db)):
    if not await db.users.find_one({"id": request.userId}):
        raise HTTPException(404, "User not found")
    if not await db.categories.find_one({"id": request.categoryId}):
        raise HTTPException(404, "Category not found")
    accumulator = ScoreAccumulator.from_db(db)
    score = await accumulator.rebuild_score(request.userId, request.categoryId, current_admin["id"])
    await log_activity(
        db, current_admin["id"], "UPDATE", "scores",
        f"Rebuilt score for category {request.categoryId} from answers", request.userId
    )
    return score
