import asyncio

import pytest
from pymongo.errors import PyMongoError

from errors import InvalidInput, NotFound, PersistenceFailure
from services.score_accumulator import ScoreAccumulator
from services.scoring import compute_percentage
from services.stores import AnswerStore, QuestionStore, ScoreStore


class YieldingCollection:
    """Collection proxy that yields to the event loop before every read and write,
    so concurrent submissions interleave between them."""

    def __init__(self, collection):
        self._collection = collection

    async def find_one(self, *args, **kwargs):
        await asyncio.sleep(0)
        return await self._collection.find_one(*args, **kwargs)

    async def find_one_and_update(self, *args, **kwargs):
        await asyncio.sleep(0)
        return await self._collection.find_one_and_update(*args, **kwargs)

    def __getattr__(self, name):
        return getattr(self._collection, name)


class UntouchableQuestionStore:
    async def find_by_id(self, question_id):
        raise AssertionError("question store must not be consulted")


class BrokenScoreStore(ScoreStore):
    async def increment_and_recompute(self, score_id, was_correct):
        raise PyMongoError("connection reset")


class BrokenAnswerStore(AnswerStore):
    async def create(self, answer):
        raise PyMongoError("write concern error")


@pytest.fixture
def accumulator(db):
    return ScoreAccumulator.from_db(db)


def assert_consistent(score):
    assert score["total"] == score["correct"] + score["incorrect"]
    assert score["percentage"] == compute_percentage(score["correct"], score["total"])


async def test_first_correct_submission_creates_score(accumulator, user, question, category):
    answer, score = await accumulator.submit_answer(user["id"], question["id"], "B")

    assert answer["isCorrect"] is True
    assert answer["reviewedBy"] is None
    assert answer["chosenLabel"] == "B"
    assert answer["categoryId"] == category["id"]
    assert score["userId"] == user["id"]
    assert score["categoryId"] == category["id"]
    assert (score["correct"], score["incorrect"], score["total"], score["percentage"]) == (1, 0, 1, 100)


async def test_first_incorrect_submission_creates_score(accumulator, user, question):
    answer, score = await accumulator.submit_answer(user["id"], question["id"], "C")

    assert answer["isCorrect"] is False
    assert (score["correct"], score["incorrect"], score["total"], score["percentage"]) == (0, 1, 1, 0)


async def test_second_incorrect_submission_halves_percentage(accumulator, user, question):
    _, first = await accumulator.submit_answer(user["id"], question["id"], "B")
    _, second = await accumulator.submit_answer(user["id"], question["id"], "A")

    assert second["id"] == first["id"]
    assert (second["correct"], second["incorrect"], second["total"], second["percentage"]) == (1, 1, 2, 50)
    assert second["createdAt"] == first["createdAt"]


@pytest.mark.parametrize("label,expected", [("A", False), ("B", True), ("C", False)])
async def test_correctness_matches_label(accumulator, user, question, label, expected):
    answer, _ = await accumulator.submit_answer(user["id"], question["id"], label)
    assert answer["isCorrect"] is expected


async def test_unknown_question_writes_nothing(accumulator, db, user):
    with pytest.raises(NotFound):
        await accumulator.submit_answer(user["id"], "missing", "A")

    assert await db.answers.count_documents({}) == 0
    assert await db.scores.count_documents({}) == 0


@pytest.mark.parametrize("label", ["D", "a", "", "AB"])
async def test_invalid_label_rejected_before_store_access(db, user, label):
    accumulator = ScoreAccumulator(UntouchableQuestionStore(), AnswerStore(db), ScoreStore(db))

    with pytest.raises(InvalidInput):
        await accumulator.submit_answer(user["id"], "any", label)

    assert await db.answers.count_documents({}) == 0


async def test_identical_submissions_are_counted_twice(accumulator, db, user, question):
    first, _ = await accumulator.submit_answer(user["id"], question["id"], "B")
    second, score = await accumulator.submit_answer(user["id"], question["id"], "B")

    assert first["id"] != second["id"]
    assert await db.answers.count_documents({"userId": user["id"]}) == 2
    assert score["total"] == 2
    assert score["correct"] == 2


async def test_scores_are_kept_per_category(accumulator, db, user, make_question):
    history = await make_question("history", correct_label="A")
    science = await make_question("science", correct_label="C")

    await accumulator.submit_answer(user["id"], history["id"], "A")
    await accumulator.submit_answer(user["id"], science["id"], "A")

    assert await db.scores.count_documents({"userId": user["id"]}) == 2
    history_score = await db.scores.find_one({"userId": user["id"], "categoryId": "history"})
    science_score = await db.scores.find_one({"userId": user["id"], "categoryId": "science"})
    assert history_score["percentage"] == 100
    assert science_score["percentage"] == 0


async def test_invariants_hold_after_every_submission(accumulator, user, question):
    for label in ["B", "A", "A", "B", "C", "B", "B", "A"]:
        _, score = await accumulator.submit_answer(user["id"], question["id"], label)
        assert_consistent(score)

    assert (score["correct"], score["incorrect"], score["total"], score["percentage"]) == (4, 4, 8, 50)


async def test_concurrent_submissions_lose_no_updates(db, user, question):
    scores = ScoreStore(db)
    scores.collection = YieldingCollection(scores.collection)
    accumulator = ScoreAccumulator(QuestionStore(db), AnswerStore(db), scores)
    labels = ["B"] * 12 + ["A"] * 5 + ["C"] * 3

    await asyncio.gather(*[
        accumulator.submit_answer(user["id"], question["id"], label) for label in labels
    ])

    assert await db.scores.count_documents({"userId": user["id"]}) == 1
    score = await db.scores.find_one({"userId": user["id"]})
    assert (score["correct"], score["incorrect"], score["total"], score["percentage"]) == (12, 8, 20, 60)
    assert score["version"] == 20
    assert await db.answers.count_documents({"userId": user["id"]}) == 20


async def test_concurrent_submissions_for_different_users_are_independent(db, make_question, category):
    question = await make_question(category["id"], correct_label="A")
    scores = ScoreStore(db)
    scores.collection = YieldingCollection(scores.collection)
    accumulator = ScoreAccumulator(QuestionStore(db), AnswerStore(db), scores)

    await asyncio.gather(*[
        accumulator.submit_answer(f"user-{i % 4}", question["id"], "A") for i in range(16)
    ])

    for i in range(4):
        score = await db.scores.find_one({"userId": f"user-{i}", "categoryId": category["id"]})
        assert score["total"] == 4
        assert score["percentage"] == 100


async def test_score_failure_reports_persisted_answer(db, user, question):
    accumulator = ScoreAccumulator(QuestionStore(db), AnswerStore(db), BrokenScoreStore(db))

    with pytest.raises(PersistenceFailure) as excinfo:
        await accumulator.submit_answer(user["id"], question["id"], "B")

    answer_id = excinfo.value.answer_id
    assert answer_id is not None
    assert await db.answers.find_one({"id": answer_id}) is not None
    score = await db.scores.find_one({"userId": user["id"]})
    assert score["total"] == 0


async def test_rebuild_recovers_from_score_failure(db, user, question, category):
    broken = ScoreAccumulator(QuestionStore(db), AnswerStore(db), BrokenScoreStore(db))
    with pytest.raises(PersistenceFailure):
        await broken.submit_answer(user["id"], question["id"], "B")

    score = await ScoreAccumulator.from_db(db).rebuild_score(user["id"], category["id"])

    assert (score["correct"], score["incorrect"], score["total"], score["percentage"]) == (1, 0, 1, 100)


async def test_answer_failure_writes_no_score(db, user, question):
    accumulator = ScoreAccumulator(QuestionStore(db), BrokenAnswerStore(db), ScoreStore(db))

    with pytest.raises(PersistenceFailure) as excinfo:
        await accumulator.submit_answer(user["id"], question["id"], "B")

    assert excinfo.value.answer_id is None
    assert await db.scores.count_documents({}) == 0


async def test_correction_flips_answer_and_moves_score(accumulator, db, user, question):
    answer, _ = await accumulator.submit_answer(user["id"], question["id"], "A")
    await accumulator.submit_answer(user["id"], question["id"], "A")

    corrected, score = await accumulator.correct_answer(answer["id"], True, "admin-1")

    assert corrected["isCorrect"] is True
    assert corrected["reviewedBy"] == "admin-1"
    stored = await db.answers.find_one({"id": answer["id"]})
    assert stored["isCorrect"] is True
    assert stored["reviewedBy"] == "admin-1"
    assert (score["correct"], score["incorrect"], score["total"], score["percentage"]) == (1, 1, 2, 50)


async def test_correction_without_change_keeps_score(accumulator, user, question):
    answer, before = await accumulator.submit_answer(user["id"], question["id"], "B")

    corrected, score = await accumulator.correct_answer(answer["id"], True, "admin-1")

    assert corrected["reviewedBy"] == "admin-1"
    assert (score["correct"], score["total"]) == (before["correct"], before["total"])


async def test_repeated_corrections_overwrite(accumulator, user, question):
    answer, _ = await accumulator.submit_answer(user["id"], question["id"], "B")

    await accumulator.correct_answer(answer["id"], False, "admin-1")
    corrected, score = await accumulator.correct_answer(answer["id"], True, "admin-2")

    assert corrected["reviewedBy"] == "admin-2"
    assert (score["correct"], score["incorrect"], score["percentage"]) == (1, 0, 100)


async def test_correction_rebuilds_missing_score(accumulator, db, user, question, category):
    answer, _ = await accumulator.submit_answer(user["id"], question["id"], "A")
    await db.scores.delete_many({})

    _, score = await accumulator.correct_answer(answer["id"], True, "admin-1")

    assert score["categoryId"] == category["id"]
    assert (score["correct"], score["incorrect"], score["total"]) == (1, 0, 1)


async def test_correction_of_unknown_answer(accumulator):
    with pytest.raises(NotFound):
        await accumulator.correct_answer("missing", True, "admin-1")


async def test_rebuild_overwrites_drifted_counts(accumulator, db, user, question, category):
    for label in ["B", "A", "B"]:
        await accumulator.submit_answer(user["id"], question["id"], label)
    await db.scores.update_one(
        {"userId": user["id"]},
        {"$set": {"correct": 10, "incorrect": 10, "total": 20, "percentage": 50}}
    )

    score = await accumulator.rebuild_score(user["id"], category["id"], "admin-1")

    assert (score["correct"], score["incorrect"], score["total"], score["percentage"]) == (2, 1, 3, 67)
    assert score["reviewedBy"] == "admin-1"


class VanishingScoreStore(ScoreStore):
    """Deletes the record just before shifting it, as a concurrent admin delete would."""

    async def shift_correction(self, score_id, now_correct):
        await self.collection.delete_one({"id": score_id})
        return await super().shift_correction(score_id, now_correct)


async def test_correction_rebuilds_score_deleted_mid_shift(db, user, question, category):
    accumulator = ScoreAccumulator(QuestionStore(db), AnswerStore(db), VanishingScoreStore(db))
    answer, _ = await accumulator.submit_answer(user["id"], question["id"], "A")

    corrected, score = await accumulator.correct_answer(answer["id"], True, "admin-1")

    assert corrected["isCorrect"] is True
    stored = await db.answers.find_one({"id": answer["id"]})
    assert stored["isCorrect"] is True
    assert score["categoryId"] == category["id"]
    assert (score["correct"], score["incorrect"], score["total"], score["percentage"]) == (1, 0, 1, 100)
