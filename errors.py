# errors.py
from typing import Optional


class QuizError(Exception):
    """Base class for failures raised by the scoring services."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(QuizError):
    status_code = 404


class InvalidInput(QuizError):
    status_code = 400


class PersistenceFailure(QuizError):
    """The store rejected a write or was unreachable.

    When raised after the answer record was already written, ``answer_id``
    names it so the caller can resubmit or trigger a score rebuild.
    """

    status_code = 500

    def __init__(self, message: str, answer_id: Optional[str] = None):
        super().__init__(message)
        self.answer_id = answer_id
