# services/score_accumulator.py
"""Answer submission and the running per-category scores it feeds.

Answer records are the source of truth. The score record of a
(user, category) pair is a running tally kept in step with them on every
submission and correction, and can always be rebuilt from the answers.
"""
from typing import Optional, Tuple
import logging

from pymongo.errors import PyMongoError

from errors import InvalidInput, NotFound, PersistenceFailure
from models.question import OPTION_LABELS
from services.stores import AnswerStore, QuestionStore, ScoreStore

logger = logging.getLogger(__name__)


class ScoreAccumulator:
    def __init__(self, questions: QuestionStore, answers: AnswerStore, scores: ScoreStore):
        self.questions = questions
        self.answers = answers
        self.scores = scores

    @classmethod
    def from_db(cls, db):
        return cls(QuestionStore(db), AnswerStore(db), ScoreStore(db))

    async def submit_answer(self, user_id: str, question_id: str, chosen_label: str) -> Tuple[dict, dict]:
        """Record one answer and count it toward the user's score in the question's category.

        Raises InvalidInput for a label outside A/B/C and NotFound for an
        unknown question, in both cases before anything is written. Raises
        PersistenceFailure if either write fails; when the answer was
        already stored the exception carries its id.
        """
        if chosen_label not in OPTION_LABELS:
            raise InvalidInput(f"Chosen label must be one of {', '.join(OPTION_LABELS)}")

        try:
            question = await self.questions.find_by_id(question_id)
        except PyMongoError as e:
            raise PersistenceFailure(f"Could not load question {question_id}: {e}")
        if not question:
            raise NotFound(f"Question {question_id} not found")

        is_correct = chosen_label == question["correctLabel"]
        category_id = question["categoryId"]

        try:
            answer = await self.answers.create({
                "userId": user_id,
                "questionId": question_id,
                "categoryId": category_id,
                "chosenLabel": chosen_label,
                "isCorrect": is_correct,
            })
        except PyMongoError as e:
            logger.error(f"Answer insert failed for user {user_id}, question {question_id}: {e}")
            raise PersistenceFailure(f"Could not save answer: {e}")

        try:
            score = await self.scores.find_or_create(user_id, category_id)
            score = await self.scores.increment_and_recompute(score["id"], is_correct)
        except PyMongoError as e:
            logger.error(f"Score update failed after answer {answer['id']} was saved: {e}")
            raise PersistenceFailure(f"Answer saved but score not updated: {e}", answer_id=answer["id"])
        except PersistenceFailure as e:
            e.answer_id = answer["id"]
            raise

        logger.info(
            f"User {user_id} answered question {question_id} ({'correct' if is_correct else 'incorrect'}), "
            f"score {score['correct']}/{score['total']}"
        )
        return answer, score

    async def correct_answer(self, answer_id: str, is_correct: bool, reviewer_id: str) -> Tuple[dict, Optional[dict]]:
        """Override an answer's correctness and move it between score columns.

        Returns the updated answer and the score record after adjustment
        (None for answers that carry no category).
        """
        try:
            result = await self.answers.update_correction(answer_id, is_correct, reviewer_id)
        except PyMongoError as e:
            raise PersistenceFailure(f"Could not correct answer {answer_id}: {e}")
        if not result:
            raise NotFound(f"Answer {answer_id} not found")
        was_correct, answer = result

        category_id = answer.get("categoryId")
        if category_id is None:
            return answer, None

        try:
            score = await self.scores.find_by_user_and_category(answer["userId"], category_id)
            if score and was_correct == is_correct:
                return answer, score
            if score:
                try:
                    shifted = await self.scores.shift_correction(score["id"], is_correct)
                except NotFound:
                    # Record removed since it was looked up
                    shifted = None
                if shifted:
                    return answer, shifted
            logger.warning(f"Score for user {answer['userId']} in category {category_id} out of step, rebuilding")
            return answer, await self.rebuild_score(answer["userId"], category_id)
        except PyMongoError as e:
            logger.error(f"Score adjustment failed after correcting answer {answer_id}: {e}")
            raise PersistenceFailure(f"Answer corrected but score not updated: {e}", answer_id=answer_id)

    async def rebuild_score(self, user_id: str, category_id: str, reviewer_id: str = None) -> dict:
        """Recompute a score record from the stored answers."""
        correct, incorrect = await self.answers.count_for(user_id, category_id)
        score = await self.scores.find_or_create(user_id, category_id)
        score = await self.scores.replace_counts(score["id"], correct, incorrect, reviewer_id)
        logger.info(f"Rebuilt score for user {user_id} in category {category_id}: {correct}/{correct + incorrect}")
        return score
