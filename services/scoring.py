# services/scoring.py


def compute_percentage(correct: int, total: int) -> int:
    """Whole-number percentage of correct answers, halves rounded up.

    An empty tally scores 0.
    """
    if total <= 0:
        return 0
    return (200 * correct + total) // (2 * total)


def score_fields(correct: int, incorrect: int) -> dict:
    total = correct + incorrect
    return {
        "correct": correct,
        "incorrect": incorrect,
        "total": total,
        "percentage": compute_percentage(correct, total),
    }
