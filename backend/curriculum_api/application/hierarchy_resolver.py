"""Hierarchy resolution — names to board/class/subject/chapter/unit records.

Two directions:

* ``ensure_path`` (imports) finds or creates every level, parent before
  child, so re-running an import never duplicates an ancestor.
* ``resolve_selection`` (learner selections, read endpoints) only looks
  records up. Each level is tried with the most specific scope first and
  relaxed step by step. A subject is matched by name alone only when no
  board resolved, and a chapter by title alone only when no subject did. A
  level that cannot be found stays unresolved and a lookup error is recorded
  rather than raised. Parents still missing after the name search are taken
  from a found child's own parent reference.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Generic, List, Optional, Tuple, TypeVar

from curriculum_api.core.config import Settings
from curriculum_api.domain.curriculum.models import (
    Board,
    Chapter,
    ClassLevel,
    HierarchyNames,
    HierarchyPath,
    Subject,
)
from curriculum_api.domain.curriculum.rules import class_order, title_order
from curriculum_api.persistence.interfaces.curriculum_repository import CurriculumRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResolutionStatus(str, Enum):
    RESOLVED = "resolved"
    NO_MATCH = "no_match"
    ERROR = "error"


@dataclass
class LevelResolution(Generic[T]):
    level: str
    status: ResolutionStatus = ResolutionStatus.NO_MATCH
    record: Optional[T] = None
    error: Optional[str] = None
    via: Optional[str] = None  # which lookup produced the record

    @property
    def id(self) -> Optional[str]:
        return self.record.id if self.record is not None else None

    @property
    def resolved(self) -> bool:
        return self.status is ResolutionStatus.RESOLVED


@dataclass
class SelectionResolution:
    board: LevelResolution[Board] = field(default_factory=lambda: LevelResolution("board"))
    class_level: LevelResolution[ClassLevel] = field(default_factory=lambda: LevelResolution("class"))
    subject: LevelResolution[Subject] = field(default_factory=lambda: LevelResolution("subject"))
    chapter: LevelResolution[Chapter] = field(default_factory=lambda: LevelResolution("chapter"))

    @property
    def levels(self) -> List[LevelResolution]:
        return [self.board, self.class_level, self.subject, self.chapter]


class HierarchyResolver:
    def __init__(self, repo: CurriculumRepository, settings: Settings):
        self._repo = repo
        self._settings = settings

    # ------------------------------------------------------------------
    # Forward (import) mode
    # ------------------------------------------------------------------
    def ensure_path(self, names: HierarchyNames) -> HierarchyPath:
        board_name = names.board or self._settings.default_board
        class_name = names.class_level or self._settings.default_class
        subject_name = names.subject or self._settings.default_subject
        chapter_title = names.chapter or self._settings.default_chapter

        board = self._repo.get_or_create_board(board_name)
        class_level = self._repo.get_or_create_class(board.id, class_name, class_order(class_name))
        subject = self._repo.get_or_create_subject(board.id, class_level.id, subject_name)
        chapter = self._repo.get_or_create_chapter(subject.id, chapter_title, title_order(chapter_title))
        unit = None
        if names.unit:
            unit = self._repo.get_or_create_unit(chapter.id, names.unit, title_order(names.unit))

        logger.debug(
            "Resolved path %s / %s / %s / %s / %s",
            board.name, class_level.name, subject.name, chapter.title, unit.title if unit else "-",
        )
        return HierarchyPath(board=board, class_level=class_level, subject=subject, chapter=chapter, unit=unit)

    # ------------------------------------------------------------------
    # Lookup mode
    # ------------------------------------------------------------------
    def resolve_selection(
        self,
        board: Optional[str] = None,
        class_level: Optional[str] = None,
        subject: Optional[str] = None,
        chapter: Optional[str] = None,
    ) -> SelectionResolution:
        result = SelectionResolution()
        board = _clean(board)
        class_level = _clean(class_level)
        subject = _clean(subject)
        chapter = _clean(chapter)

        if board:
            self._attempt(result.board, [("name", lambda: self._repo.find_board(board))])

        if class_level:
            board_id = result.board.id
            steps = []
            if board_id:
                steps.append(("board+name", lambda: self._repo.find_class(class_level, board_id=board_id)))
            else:
                steps.append(("name", lambda: self._repo.find_class(class_level)))
            self._attempt(result.class_level, steps)

        if subject:
            board_id, class_id = result.board.id, result.class_level.id
            steps = []
            if board_id and class_id:
                steps.append((
                    "board+class+name",
                    lambda: self._repo.find_subject(subject, board_id=board_id, class_id=class_id),
                ))
            if board_id:
                steps.append(("board+name", lambda: self._repo.find_subject(subject, board_id=board_id)))
            else:
                # Name-only matching is limited to selections without a known board
                steps.append(("name", lambda: self._repo.find_subject(subject)))
            self._attempt(result.subject, steps)

        if chapter:
            subject_id = result.subject.id
            steps = []
            if subject_id:
                steps.append(("subject+title", lambda: self._repo.find_chapter(chapter, subject_id=subject_id)))
            else:
                steps.append(("title", lambda: self._repo.find_chapter(chapter)))
            self._attempt(result.chapter, steps)

        self.backfill_parents(result)

        for level in result.levels:
            if level.status is ResolutionStatus.NO_MATCH:
                logger.debug("Selection level %s unresolved", level.level)
        return result

    def backfill_parents(self, result: SelectionResolution) -> None:
        """Fill missing parents from the stored parent ids of the levels that did resolve."""
        chapter = result.chapter.record
        if not result.subject.resolved and chapter is not None:
            self._attempt(result.subject, [("chapter.subject_id", lambda: self._repo.get_subject(chapter.subject_id))])

        subject = result.subject.record
        if not result.class_level.resolved and subject is not None and subject.class_id:
            self._attempt(result.class_level, [("subject.class_id", lambda: self._repo.get_class(subject.class_id))])

        if not result.board.resolved:
            class_level = result.class_level.record
            board_id = (subject.board_id if subject is not None else None) or (
                class_level.board_id if class_level is not None else None
            )
            if board_id:
                self._attempt(result.board, [("parent.board_id", lambda: self._repo.get_board(board_id))])

    @staticmethod
    def _attempt(resolution: LevelResolution, steps: List[Tuple[str, Callable]]) -> None:
        """Run lookups in order until one matches; errors are recorded, not raised."""
        for step_name, lookup in steps:
            try:
                record = lookup()
            except Exception as e:
                logger.warning("Lookup of %s by %s failed", resolution.level, step_name, exc_info=True)
                resolution.status = ResolutionStatus.ERROR
                resolution.error = str(e)
                return
            if record is not None:
                resolution.status = ResolutionStatus.RESOLVED
                resolution.record = record
                resolution.via = step_name
                resolution.error = None
                return


def _clean(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
