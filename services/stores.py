# services/stores.py
"""Persistence for the documents the score accumulator reads and writes.

Each store wraps one Motor collection. Documents are returned as plain dicts
without Mongo's ``_id``.
"""
from datetime import datetime
from typing import Callable, Optional, Tuple
import logging

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

import config
from database import clean
from errors import NotFound, PersistenceFailure
from services.scoring import score_fields

logger = logging.getLogger(__name__)


class QuestionStore:
    def __init__(self, db):
        self.collection = db.questions

    async def find_by_id(self, question_id: str) -> Optional[dict]:
        return clean(await self.collection.find_one({"id": question_id}))


class AnswerStore:
    def __init__(self, db):
        self.collection = db.answers

    async def create(self, answer: dict) -> dict:
        answer_dict = dict(answer)
        answer_dict["id"] = str(ObjectId())
        answer_dict.setdefault("reviewedBy", None)
        answer_dict["createdAt"] = datetime.utcnow()
        await self.collection.insert_one(answer_dict)
        return clean(answer_dict)

    async def update_correction(self, answer_id: str, is_correct: bool, reviewer_id: str) -> Optional[Tuple[bool, dict]]:
        """Overwrite the correctness flag and reviewer in one atomic write.

        Returns ``(previous_is_correct, updated_answer)``, or None when the
        answer does not exist.
        """
        previous = await self.collection.find_one_and_update(
            {"id": answer_id},
            {"$set": {"isCorrect": is_correct, "reviewedBy": reviewer_id}},
            return_document=ReturnDocument.BEFORE,
        )
        if not previous:
            return None
        updated = clean(previous)
        was_correct = updated.get("isCorrect", False)
        updated.update({"isCorrect": is_correct, "reviewedBy": reviewer_id})
        return was_correct, updated

    async def count_for(self, user_id: str, category_id: str) -> Tuple[int, int]:
        """Return (correct, incorrect) over every answer of a user in a category."""
        query = {"userId": user_id, "categoryId": category_id}
        total = await self.collection.count_documents(query)
        correct = await self.collection.count_documents({**query, "isCorrect": True})
        return correct, total - correct


class ScoreStore:
    """Running score records, one per (user, category).

    Count updates go through a compare-and-swap on ``version`` so that
    concurrent writers for the same key never lose an increment, while
    writers for different keys never touch the same document.
    """

    def __init__(self, db, max_retries: int = None):
        self.collection = db.scores
        self.max_retries = max_retries or config.SCORE_UPDATE_MAX_RETRIES

    async def find_by_user_and_category(self, user_id: str, category_id: Optional[str]) -> Optional[dict]:
        return clean(await self.collection.find_one({"userId": user_id, "categoryId": category_id}))

    async def create(self, score: dict) -> dict:
        """Insert a new record. Raises DuplicateKeyError if the key is taken."""
        score_dict = {
            "id": str(ObjectId()),
            "userId": score["userId"],
            "categoryId": score.get("categoryId"),
            **score_fields(score.get("correct", 0), score.get("incorrect", 0)),
            "reviewedBy": score.get("reviewedBy"),
            "version": 0,
            "createdAt": datetime.utcnow(),
        }
        await self.collection.insert_one(score_dict)
        return clean(score_dict)

    async def find_or_create(self, user_id: str, category_id: Optional[str]) -> dict:
        """Return the record for the key, creating an empty one atomically if absent."""
        key = {"userId": user_id, "categoryId": category_id}
        on_insert = {
            "id": str(ObjectId()),
            **score_fields(0, 0),
            "reviewedBy": None,
            "version": 0,
            "createdAt": datetime.utcnow(),
        }
        try:
            score = await self.collection.find_one_and_update(
                key,
                {"$setOnInsert": on_insert},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            # Another request upserted the same key first
            score = await self.collection.find_one(key)
        return clean(score)

    async def increment_and_recompute(self, score_id: str, was_correct: bool) -> dict:
        if was_correct:
            return await self._update_counts(score_id, lambda c, i: (c + 1, i))
        return await self._update_counts(score_id, lambda c, i: (c, i + 1))

    async def shift_correction(self, score_id: str, now_correct: bool) -> Optional[dict]:
        """Move one answer between the correct and incorrect columns.

        Returns None when the source column is already empty, meaning the
        record no longer reflects the answers and needs a rebuild.
        """
        def shift(correct, incorrect):
            if now_correct:
                return (correct + 1, incorrect - 1) if incorrect > 0 else None
            return (correct - 1, incorrect + 1) if correct > 0 else None

        return await self._update_counts(score_id, shift)

    async def replace_counts(self, score_id: str, correct: int, incorrect: int, reviewer_id: str = None) -> dict:
        extra = {"reviewedBy": reviewer_id} if reviewer_id else None
        return await self._update_counts(score_id, lambda c, i: (correct, incorrect), extra)

    async def _update_counts(
        self,
        score_id: str,
        compute: Callable[[int, int], Optional[Tuple[int, int]]],
        extra: dict = None,
    ) -> Optional[dict]:
        for attempt in range(self.max_retries):
            current = await self.collection.find_one({"id": score_id})
            if not current:
                raise NotFound(f"Score {score_id} not found")
            counts = compute(current.get("correct", 0), current.get("incorrect", 0))
            if counts is None:
                return None
            update = {"$set": {**score_fields(*counts), **(extra or {})}, "$inc": {"version": 1}}
            updated = await self.collection.find_one_and_update(
                {"id": score_id, "version": current.get("version", 0)},
                update,
                return_document=ReturnDocument.AFTER,
            )
            if updated:
                return clean(updated)
            logger.debug(f"Version conflict on score {score_id}, attempt {attempt + 1}")
        logger.error(f"Gave up updating score {score_id} after {self.max_retries} attempts")
        raise PersistenceFailure(f"Score {score_id} is too contended to update")
