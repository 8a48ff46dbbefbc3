"""Map quiz outcomes onto SM-2 quality ratings."""

from typing import Literal

Confidence = Literal["high", "medium", "low", "guess"]


def quality_from_answer(correct: bool, confidence: Confidence | None = None) -> int:
    """
    Auto-rate a graded quiz answer.

    Scale:
        5 = correct, high confidence (perfect response)
        4 = correct, medium or unknown confidence (after some hesitation)
        3 = correct, low confidence or a guess (serious difficulty)
        1 = incorrect, but the learner felt high/medium confidence (recognized it)
        0 = incorrect otherwise (blackout)
    """
    level = (confidence or "").lower()
    if correct:
        if level == "high":
            return 5
        if level in ("low", "guess"):
            return 3
        return 4

    if level in ("high", "medium"):
        return 1
    return 0
