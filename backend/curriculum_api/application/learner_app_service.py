"""Application service — learner accounts, onboarding selections and chapter progress."""
from __future__ import annotations
import logging
import sqlite3
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple

from curriculum_api.application.selection_backfiller import SelectionBackfiller
from curriculum_api.domain.common.result import ErrorCode, Result
from curriculum_api.domain.learner.identity import identity_for
from curriculum_api.domain.learner.models import CREDENTIAL_DOB, CREDENTIAL_PASSWORD, ChapterProgress, Learner
from curriculum_api.domain.learner.rules import (
    apply_answer,
    looks_like_chapter_number,
    normalize_chapter_number,
    validate_date_of_birth,
)
from curriculum_api.persistence.interfaces.curriculum_repository import CurriculumRepository
from curriculum_api.persistence.interfaces.learner_repository import LearnerRepository

logger = logging.getLogger(__name__)

UNKNOWN_SUBJECT = "Unknown"

# Profile fields copied verbatim from an onboarding update when present
_PROFILE_FIELDS = (
    ("board", "board"),
    ("subject", "subject"),
    ("chapter", "chapter"),
    ("name", "name"),
    ("phone", "phone"),
    ("classLevel", "class_level"),
    ("email", "email"),
)
_SCALAR_FIELDS = tuple(key for key, _ in _PROFILE_FIELDS) + ("username", "classTitle", "age")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _non_scalar_field(data: dict) -> Optional[str]:
    """First profile key holding a list or object instead of a single value."""
    for key in _SCALAR_FIELDS:
        if isinstance(data.get(key), (dict, list)):
            return key
    return None


def _parse_delta(value: Any) -> Optional[float]:
    """Score delta as a number (int when integral); None when not numeric."""
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return int(number) if number.is_integer() else number


@dataclass
class ProgressSummary:
    learner_id: str
    total_chapters: int = 0
    total_points: float = 0
    total_correct: int = 0
    total_wrong: int = 0
    chapters: List[ChapterProgress] = field(default_factory=list)


class LearnerAppService:
    def __init__(
        self,
        learners: LearnerRepository,
        curriculum: CurriculumRepository,
        backfiller: SelectionBackfiller,
    ):
        self._learners = learners
        self._curriculum = curriculum
        self._backfiller = backfiller

    # ------------------------------------------------------------------
    # ACCOUNTS
    # ------------------------------------------------------------------
    def register(self, data: dict) -> Result[Learner]:
        bad_field = _non_scalar_field(data)
        if bad_field:
            return Result.fail(f"{bad_field} must be a single value")
        username = _clean(data.get("username"))
        if not username:
            return Result.fail("username is required")
        dob = validate_date_of_birth(data.get("dateOfBirth"))
        if not dob.is_success:
            return Result.fail(dob.error)
        if dob.value is None:
            return Result.fail("dateOfBirth is required")
        if self._learners.username_exists(username):
            return Result.conflict("Username already taken")

        learner = Learner(
            id=str(uuid.uuid4()),
            username=username,
            name=data.get("name"),
            email=data.get("email"),
            phone=data.get("phone"),
            age=data.get("age"),
            date_of_birth=dob.value,
            credential_scheme=CREDENTIAL_DOB,
            class_level=_clean(data.get("classLevel")),
            board=_clean(data.get("board")),
            subject=_clean(data.get("subject")),
            chapter=_clean(data.get("chapter")),
        )
        self._backfiller.reconcile(learner, class_hint=_clean(data.get("classTitle")))

        try:
            self._learners.create(learner)
        except sqlite3.IntegrityError:
            # Lost a race with another registration for the same name
            return Result.conflict("Username already taken")
        logger.info("Registered learner %s (%s)", learner.username, learner.id)
        return Result.ok(learner)

    def authenticate(
        self,
        username: Optional[str],
        date_of_birth: Optional[str] = None,
        password: Optional[str] = None,
    ) -> Result[Learner]:
        username = _clean(username)
        if not username or not (date_of_birth or password):
            return Result.fail("Please provide a username and date of birth")

        learner = self._learners.get_by_username(username)
        if not learner or not identity_for(learner).verify(date_of_birth=date_of_birth, password=password):
            return Result.fail("Invalid credentials", code=ErrorCode.UNAUTHORIZED)
        return Result.ok(learner)

    def get_learner(self, learner_id: str) -> Optional[Learner]:
        return self._learners.get_by_id(learner_id)

    def is_username_available(self, username: Optional[str]) -> Result[bool]:
        username = _clean(username)
        if not username:
            return Result.fail("username is required")
        return Result.ok(not self._learners.username_exists(username))

    # ------------------------------------------------------------------
    # ONBOARDING
    # ------------------------------------------------------------------
    def update_onboarding(self, data: dict) -> Result[Learner]:
        learner_id = data.get("userId")
        if not learner_id:
            return Result.fail("userId is required")
        learner = self._learners.get_by_id(str(learner_id))
        if not learner:
            return Result.not_found("User not found")
        bad_field = _non_scalar_field(data)
        if bad_field:
            return Result.fail(f"{bad_field} must be a single value")

        username = _clean(data.get("username"))
        if username and username != learner.username:
            if self._learners.username_exists(username, exclude_id=learner.id):
                return Result.conflict("Username already taken")
            learner.username = username

        for key, attr in _PROFILE_FIELDS:
            if data.get(key) is not None:
                setattr(learner, attr, _clean(data[key]))

        if data.get("dateOfBirth") is not None:
            dob = validate_date_of_birth(data["dateOfBirth"])
            if not dob.is_success:
                return Result.fail(dob.error)
            if dob.value is None and learner.credential_scheme == CREDENTIAL_DOB:
                return Result.fail("dateOfBirth cannot be cleared")
            learner.date_of_birth = dob.value
            if dob.value and learner.credential_scheme == CREDENTIAL_PASSWORD:
                learner.credential_scheme = CREDENTIAL_DOB
                learner.password_hash = None
                logger.info("Learner %s moved to date-of-birth sign-in", learner.id)

        self._backfiller.reconcile(learner, class_hint=_clean(data.get("classTitle")))

        try:
            self._learners.save(learner)
        except sqlite3.IntegrityError:
            return Result.conflict("Username already taken")
        return Result.ok(learner)

    # ------------------------------------------------------------------
    # PROGRESS
    # ------------------------------------------------------------------
    def get_progress(self, learner_id: str) -> Result[List[ChapterProgress]]:
        learner = self._learners.get_by_id(learner_id)
        if not learner:
            return Result.not_found("User not found")
        return Result.ok(learner.chapters_progress)

    def get_module_progress(
        self,
        learner_id: str,
        subject: Optional[str],
        chapter: Any,
    ) -> Result[Optional[ChapterProgress]]:
        learner = self._learners.get_by_id(learner_id)
        if not learner:
            return Result.not_found("User not found")
        if not looks_like_chapter_number(chapter):
            return Result.ok(None)
        return Result.ok(learner.progress_for(normalize_chapter_number(chapter), subject))

    def update_progress(self, data: dict) -> Result[List[ChapterProgress]]:
        learner_id = data.get("userId")
        if not learner_id:
            return Result.fail("userId is required")
        delta = _parse_delta(data.get("deltaScore"))
        if delta is None:
            return Result.fail("deltaScore must be a number")
        learner = self._learners.get_by_id(str(learner_id))
        if not learner:
            return Result.not_found("User not found")

        chapter_number, module_id = self._resolve_chapter(data.get("chapter"), _clean(data.get("moduleId")))
        subject = data.get("subject") or UNKNOWN_SUBJECT
        concept_completed = data.get("conceptCompleted")
        quiz_completed = data.get("quizCompleted")
        now = _now_iso()

        entry = learner.progress_for(chapter_number, subject)
        if entry is None:
            entry = ChapterProgress(
                chapter=chapter_number,
                subject=subject,
                concept_completed=concept_completed is True,
                quiz_completed=quiz_completed is True,
            )
            learner.chapters_progress.append(entry)
        else:
            if isinstance(concept_completed, bool):
                entry.concept_completed = concept_completed
            if isinstance(quiz_completed, bool):
                entry.quiz_completed = quiz_completed

        if module_id and isinstance(concept_completed, bool):
            entry.mark_module(module_id, concept_completed)

        lesson_title = _clean(data.get("lessonTitle"))
        is_correct = data.get("isCorrect")
        if lesson_title and isinstance(is_correct, bool):
            stats = apply_answer(
                entry, lesson_title, is_correct, delta, now,
                reset_lesson=data.get("resetLesson") is True,
            )
            logger.debug(
                "Learner %s chapter %s lesson '%s': last=%s best=%s",
                learner.id, chapter_number, lesson_title, stats.last_score, stats.best_score,
            )

        entry.updated_at = now
        self._learners.save_progress(learner)
        return Result.ok(learner.chapters_progress)

    def progress_summary(self, learner_id: str) -> Result[ProgressSummary]:
        learner = self._learners.get_by_id(learner_id)
        if not learner:
            return Result.not_found("User not found")
        summary = ProgressSummary(
            learner_id=learner.id,
            total_chapters=len(learner.chapters_progress),
            chapters=learner.chapters_progress,
        )
        for entry in learner.chapters_progress:
            for stats in entry.stats.values():
                summary.total_points += stats.best_score
                summary.total_correct += stats.correct
                summary.total_wrong += stats.wrong
        return Result.ok(summary)

    def _resolve_chapter(self, chapter: Any, module_id: Optional[str]) -> Tuple[int, Optional[str]]:
        """Chapter number for a progress entry plus the module id to track, if any.

        A non-numeric ``chapter`` is taken as a module id, as is an explicit
        ``moduleId`` sent without a chapter; the chapter number then comes
        from the module's chapter order.
        """
        if looks_like_chapter_number(chapter):
            return normalize_chapter_number(chapter), module_id

        candidate = _clean(chapter) or module_id
        if not candidate:
            return 1, None
        module = self._curriculum.get_module(candidate)
        if module is None:
            logger.warning("Progress module %s not found; using chapter 1", candidate)
            return 1, module_id
        parent = self._curriculum.get_chapter(module.chapter_id)
        if parent is None:
            logger.warning("Module %s points at missing chapter %s", module.id, module.chapter_id)
            return 1, module.id
        return parent.order or 1, module.id
