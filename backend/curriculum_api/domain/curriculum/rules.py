"""Business rules for curriculum imports and hierarchy naming."""
from __future__ import annotations
import re
from typing import Any, Optional

from curriculum_api.domain.common.result import Result
from curriculum_api.domain.curriculum.models import HierarchyNames


def normalize_title(title: Any) -> str:
    """Key used to match an incoming lesson to an existing module."""
    if title is None:
        return ""
    return str(title).strip().casefold()


def class_order(class_name: str) -> int:
    """Numeric sort order of a class level: its integer value, else 1."""
    try:
        value = int(str(class_name).strip())
    except ValueError:
        return 1
    return value or 1


_NUMBER = re.compile(r"\d+")


def title_order(title: str) -> int:
    """Order of a chapter or unit from the first number in its title ("Chapter 9: Family" -> 9)."""
    match = _NUMBER.search(str(title))
    if not match:
        return 1
    return int(match.group()) or 1


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def names_from_payload(payload: dict) -> HierarchyNames:
    """Pull the (optional) level names out of an import payload.

    `class_title` is frequently sent as a number (``6``), so every name is
    coerced to a string before use.
    """
    return HierarchyNames(
        board=_text(payload.get("board_title")),
        class_level=_text(payload.get("class_title")),
        subject=_text(payload.get("subject_title")),
        chapter=_text(payload.get("chapter_title")),
        unit=_text(payload.get("unit_title")),
    )


def validate_import_payload(payload: Any) -> Result[list]:
    """An import needs a `lessons` list whose entries are objects."""
    if not isinstance(payload, dict) or not isinstance(payload.get("lessons"), list):
        return Result.fail(
            "Invalid payload. Expect { board_title?, class_title?, subject_title?, "
            "chapter_title?, unit_title?, lessons[] }"
        )
    lessons = payload["lessons"]
    for index, lesson in enumerate(lessons):
        if not isinstance(lesson, dict):
            return Result.fail(f"Lesson at position {index + 1} must be an object.")
        concepts = lesson.get("concepts")
        if concepts is not None and not isinstance(concepts, list):
            return Result.fail(f"Lesson at position {index + 1}: 'concepts' must be a list.")
    return Result.ok(lessons)
