"""Business rules for learner onboarding and chapter progress."""
from __future__ import annotations
import math
from typing import Any, Optional

from curriculum_api.domain.common.result import Result
from curriculum_api.domain.learner.identity import parse_date_of_birth
from curriculum_api.domain.learner.models import ChapterProgress, LessonStats


def is_onboarding_complete(board_id: Optional[str], subject_id: Optional[str]) -> bool:
    """Onboarding is complete once both a board and a subject resolve to stored records."""
    return bool(board_id) and bool(subject_id)


def normalize_chapter_number(value: Any) -> int:
    """Coerce a chapter reference to a positive int (fractions truncate); anything else means chapter 1."""
    if isinstance(value, bool):
        return 1
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 1
    if not math.isfinite(number) or number <= 0:
        return 1
    return int(number)


def looks_like_chapter_number(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    try:
        float(str(value).strip())
    except ValueError:
        return False
    return True


def validate_date_of_birth(value: Any) -> Result[Optional[str]]:
    """Empty clears the date; otherwise it must parse as YYYY-MM-DD."""
    if value is None or str(value).strip() == "":
        return Result.ok(None)
    parsed = parse_date_of_birth(value)
    if parsed is None:
        return Result.fail("Invalid dateOfBirth format. Use YYYY-MM-DD.")
    return Result.ok(parsed.isoformat())


def apply_answer(
    progress: ChapterProgress,
    lesson_title: str,
    is_correct: bool,
    delta_score: float,
    now: str,
    reset_lesson: bool = False,
) -> LessonStats:
    """Merge one answered question into the lesson's running stats."""
    stats = progress.lesson(lesson_title)
    if reset_lesson:
        stats.reset(now)
    stats.record_answer(is_correct, delta_score, now)
    return stats
