"""Concept classification — turns a loosely-shaped authored concept into a tagged item payload.

Authors send concepts with missing, aliased or wrong ``type`` values. The
declared type is only a hint: the fields present decide as much as the tag
does. Rules are checked in a fixed priority order (statement, multiple
choice, fill in the blank, rearrange) and the last resort is always a
statement, so a concept that carries anything at all yields exactly one item.
"""
from __future__ import annotations
import json
from typing import Any, List, Optional, Union

from curriculum_api.domain.curriculum.models import (
    ClassifiedConcept,
    FillInTheBlankItem,
    ItemMedia,
    MultipleChoiceItem,
    RearrangeItem,
    Rejected,
    StatementItem,
)

STATEMENT_TYPES = {"statement", "concept", "text"}
MULTIPLE_CHOICE_TYPES = {"multiple-choice", "mcq"}
FILL_IN_THE_BLANK_TYPES = {"fill-in-the-blank", "fillups", "fill-in", "fib", "blank"}
REARRANGE_TYPES = {"rearrange"}


def _dump(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


def _first_text(*values: Any) -> Optional[str]:
    for value in values:
        if value is None:
            continue
        text = value if isinstance(value, str) else str(value)
        if text.strip():
            return text
    return None


def _answer(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, list):
        return " ".join(str(v) for v in value if v is not None)
    return value if isinstance(value, str) else str(value)


def _clean_list(values: Any) -> List[str]:
    if isinstance(values, str):
        values = [values]
    if not isinstance(values, list):
        return []
    return [str(v) for v in values if v is not None and str(v).strip()]


def _media(concept: dict) -> ItemMedia:
    return ItemMedia(
        image_url=_first_text(concept.get("imageUrl"), concept.get("image")),
        images=_clean_list(concept.get("images")),
    )


def classify(concept: Any) -> Union[ClassifiedConcept, Rejected]:
    if concept is None:
        return Rejected("concept is empty")
    if isinstance(concept, str):
        if not concept.strip():
            return Rejected("concept is an empty string")
        return ClassifiedConcept(StatementItem(text=concept))
    if not isinstance(concept, dict):
        return ClassifiedConcept(StatementItem(text=_dump(concept)))

    declared = str(concept.get("type") or "").strip().lower()
    question = concept.get("question")
    has_question = bool(_first_text(question))
    has_options = isinstance(concept.get("options"), list)
    has_words = isinstance(concept.get("words"), list)
    has_answer = "answer" in concept
    free_text = _first_text(concept.get("text"), concept.get("content"))

    is_mcq = declared in MULTIPLE_CHOICE_TYPES or (has_options and has_question)
    is_fib = declared in FILL_IN_THE_BLANK_TYPES or (
        has_question and has_answer and not has_options and not has_words
    )
    is_rearrange = declared in REARRANGE_TYPES or has_words
    is_statement = declared in STATEMENT_TYPES or (
        not is_mcq and not is_fib and not is_rearrange and free_text is not None
    )

    # Question kinds accept the statement fields as aliases so nothing is dropped
    prompt = _first_text(question, free_text) or ""
    media = _media(concept)

    if is_statement:
        payload = StatementItem(text=free_text or _dump(concept))
    elif is_mcq:
        payload = MultipleChoiceItem(
            question=prompt,
            options=_clean_list(concept.get("options")),
            answer=_answer(concept.get("answer")),
        )
    elif is_fib:
        payload = FillInTheBlankItem(question=prompt, answer=_answer(concept.get("answer")))
    elif is_rearrange:
        words = concept.get("words") if has_words else concept.get("options")
        if not isinstance(words, list):
            words = []
        payload = RearrangeItem(
            question=prompt,
            words=[str(w) for w in words if w is not None],
            answer=_answer(concept.get("answer")),
        )
    else:
        payload = StatementItem(text=_first_text(free_text, question) or _dump(concept))

    return ClassifiedConcept(payload=payload, media=media)
