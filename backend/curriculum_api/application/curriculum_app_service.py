"""Application service — curriculum import, browsing queries and retrofit utilities."""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from curriculum_api.application.hierarchy_resolver import HierarchyResolver
from curriculum_api.application.lesson_merger import LessonMerger
from curriculum_api.core.config import Settings
from curriculum_api.domain.common.result import ErrorCode, Result
from curriculum_api.domain.curriculum.models import (
    Board,
    Chapter,
    ClassLevel,
    CurriculumItem,
    HierarchyPath,
    ImportSummary,
    Module,
    Subject,
    Unit,
)
from curriculum_api.domain.curriculum.rules import class_order, names_from_payload, title_order, validate_import_payload
from curriculum_api.persistence.interfaces.curriculum_repository import CurriculumRepository
from curriculum_api.persistence.interfaces.learner_repository import LearnerRepository

logger = logging.getLogger(__name__)


@dataclass
class ImportOutcome:
    path: HierarchyPath
    summary: ImportSummary


@dataclass
class SubjectBackfill:
    board: Board
    class_level: ClassLevel
    subject: Subject
    updated_chapters: int


@dataclass
class UnitBackfill:
    chapters_processed: int = 0
    units_created: int = 0
    modules_assigned: int = 0


def _truthy(value: Any) -> bool:
    return value is True or str(value).strip().lower() == "true"


class CurriculumAppService:
    def __init__(
        self,
        repo: CurriculumRepository,
        learners: LearnerRepository,
        resolver: HierarchyResolver,
        settings: Settings,
    ):
        self._repo = repo
        self._learners = learners
        self._resolver = resolver
        self._merger = LessonMerger(repo)
        self._settings = settings

    # ------------------------------------------------------------------
    # IMPORT
    # ------------------------------------------------------------------
    def import_curriculum(self, payload: Any) -> Result[ImportOutcome]:
        validation = validate_import_payload(payload)
        if not validation.is_success:
            return Result.fail(validation.error)

        path = self._resolver.ensure_path(names_from_payload(payload))
        summary = self._merger.merge(path, validation.value)
        outcome = ImportOutcome(path=path, summary=summary)
        logger.info(
            "Imported %d items (%d skipped) into %s / %s / %s",
            summary.imported_items, summary.skipped, path.board.name, path.subject.name, path.chapter.title,
        )

        if summary.imported_items == 0 and summary.skipped > 0:
            return Result(
                is_success=False,
                value=outcome,
                error=f"None of the {summary.skipped} concepts could be imported.",
                code=ErrorCode.UNPROCESSABLE,
            )
        return Result.ok(outcome)

    # ------------------------------------------------------------------
    # READ
    # ------------------------------------------------------------------
    def list_boards(self) -> List[Board]:
        return self._repo.list_boards()

    def list_classes(self, board: Optional[str] = None) -> List[ClassLevel]:
        b = self._repo.find_board(board or self._settings.default_board)
        if not b:
            return []
        return self._repo.list_classes(b.id)

    def list_subjects(
        self,
        board: Optional[str] = None,
        class_title: Optional[str] = None,
        learner_id: Optional[str] = None,
    ) -> List[Subject]:
        if learner_id:
            learner = self._learners.get_by_id(learner_id)
            if learner and (learner.board_id or learner.class_id):
                return self._repo.list_subjects(board_id=learner.board_id, class_id=learner.class_id)

        b = self._repo.find_board(board or self._settings.default_board)
        if not b:
            return []
        class_id = None
        if class_title:
            cls = self._repo.find_class(str(class_title), board_id=b.id)
            if not cls:
                return []
            class_id = cls.id
        return self._repo.list_subjects(board_id=b.id, class_id=class_id)

    def list_chapters(
        self,
        board: Optional[str] = None,
        subject: Optional[str] = None,
        class_title: Optional[str] = None,
        learner_id: Optional[str] = None,
    ) -> List[Chapter]:
        if learner_id:
            learner = self._learners.get_by_id(learner_id)
            if learner and learner.subject_id:
                return self._repo.list_chapters(subject_id=learner.subject_id)

        b = self._repo.find_board(board or self._settings.default_board)
        if not b:
            return []
        class_id = None
        if class_title:
            cls = self._repo.find_class(str(class_title), board_id=b.id)
            if not cls:
                return []
            class_id = cls.id
        s = self._repo.find_subject(subject or self._settings.default_subject, board_id=b.id, class_id=class_id)
        if not s:
            return []
        return self._repo.list_chapters(subject_id=s.id)

    def list_units(self, chapter_id: Optional[str]) -> Result[List[Unit]]:
        if not chapter_id:
            return Result.fail("chapterId is required")
        return Result.ok(self._repo.list_units(chapter_id))

    def list_modules(self, chapter_id: Optional[str] = None, unit_id: Optional[str] = None) -> Result[List[Module]]:
        if not chapter_id and not unit_id:
            return Result.fail("chapterId or unitId is required")
        return Result.ok(self._repo.list_modules(chapter_id=chapter_id, unit_id=unit_id))

    def list_items(self, module_id: Optional[str]) -> Result[List[CurriculumItem]]:
        if not module_id:
            return Result.fail("moduleId is required")
        return Result.ok(self._repo.list_items(module_id))

    # ------------------------------------------------------------------
    # ITEM IMAGES
    # ------------------------------------------------------------------
    def set_item_image(
        self,
        item_id: str,
        image_url: Optional[str] = None,
        public_id: Optional[str] = None,
        images: Optional[list] = None,
        image_public_ids: Optional[list] = None,
        append: Any = False,
    ) -> Result[CurriculumItem]:
        if not image_url and not isinstance(images, list):
            return Result.fail("imageUrl or images[] is required")

        item = self._repo.get_item(item_id)
        if not item:
            return Result.not_found("Item not found")

        if image_url:
            item.image_url = image_url
            item.image_public_id = public_id
        if isinstance(images, list):
            new_images = [str(i) for i in images if i]
            new_ids = [str(i) for i in (image_public_ids or []) if i]
            if _truthy(append):
                item.images = item.images + new_images
                item.image_public_ids = item.image_public_ids + new_ids
            else:
                item.images = new_images
                item.image_public_ids = new_ids

        self._repo.save_item_images(item)
        return Result.ok(item)

    # ------------------------------------------------------------------
    # RETROFIT UTILITIES
    # ------------------------------------------------------------------
    def backfill_subjects(
        self,
        board_title: Optional[str] = None,
        class_title: Optional[str] = None,
        subject_title: Optional[str] = None,
    ) -> SubjectBackfill:
        """Move a board-only subject onto its board+class shape."""
        board_name = str(board_title or self._settings.default_board)
        class_name = str(class_title or self._settings.default_class)
        subject_name = str(subject_title or self._settings.default_subject)

        board = self._repo.get_or_create_board(board_name)
        cls = self._repo.get_or_create_class(board.id, class_name, class_order(class_name))
        legacy = self._repo.find_legacy_subject(board.id, subject_name)
        canonical = self._repo.find_subject(subject_name, board_id=board.id, class_id=cls.id)

        moved = 0
        if canonical is None and legacy is not None:
            self._repo.attach_subject_class(legacy.id, cls.id)
            legacy.class_id = cls.id
            canonical = legacy
            logger.info("Upgraded legacy subject %s in place (class %s)", subject_name, class_name)
        elif canonical is None:
            canonical = self._repo.get_or_create_subject(board.id, cls.id, subject_name)
        elif legacy is not None:
            moved = self._repo.move_chapters(legacy.id, canonical.id)
            if self._repo.delete_subject_if_empty(legacy.id):
                logger.info("Removed emptied legacy subject %s", legacy.id)

        return SubjectBackfill(board=board, class_level=cls, subject=canonical, updated_chapters=moved)

    def backfill_units(self, chapter_id: Optional[str] = None) -> UnitBackfill:
        """Give every chapter (or the one named) a unit and attach unit-less modules to it."""
        if chapter_id:
            chapter = self._repo.get_chapter(chapter_id)
            chapters = [chapter] if chapter else []
        else:
            chapters = self._repo.list_chapters()

        unit_title = self._settings.default_unit
        report = UnitBackfill(chapters_processed=len(chapters))
        for chapter in chapters:
            units = self._repo.list_units(chapter.id)
            if units:
                unit = units[0]
            else:
                unit = self._repo.get_or_create_unit(chapter.id, unit_title, title_order(unit_title))
                report.units_created += 1
            report.modules_assigned += self._repo.assign_unitless_modules(chapter.id, unit.id)
        return report
