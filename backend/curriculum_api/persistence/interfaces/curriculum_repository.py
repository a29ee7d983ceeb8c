"""Abstract repository interface for the curriculum hierarchy."""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List, Optional

from curriculum_api.domain.curriculum.models import (
    Board,
    Chapter,
    ClassLevel,
    ClassifiedConcept,
    CurriculumItem,
    Module,
    Subject,
    Unit,
)


class CurriculumRepository(ABC):

    # ------------------------------------------------------------------
    # Find-or-create. Each is an insert-if-absent that returns the stored
    # row, so two callers racing on the same name get the same record.
    # ------------------------------------------------------------------
    @abstractmethod
    def get_or_create_board(self, name: str) -> Board:
        ...

    @abstractmethod
    def get_or_create_class(self, board_id: str, name: str, order: int) -> ClassLevel:
        ...

    @abstractmethod
    def get_or_create_subject(self, board_id: str, class_id: Optional[str], name: str) -> Subject:
        ...

    @abstractmethod
    def get_or_create_chapter(self, subject_id: str, title: str, order: int = 1) -> Chapter:
        ...

    @abstractmethod
    def get_or_create_unit(self, chapter_id: str, title: str, order: int = 1) -> Unit:
        ...

    # ------------------------------------------------------------------
    # Lookups. Optional scope arguments narrow the match when given.
    # ------------------------------------------------------------------
    @abstractmethod
    def find_board(self, name: str) -> Optional[Board]:
        ...

    @abstractmethod
    def find_class(self, name: str, board_id: Optional[str] = None) -> Optional[ClassLevel]:
        ...

    @abstractmethod
    def find_subject(
        self,
        name: str,
        board_id: Optional[str] = None,
        class_id: Optional[str] = None,
    ) -> Optional[Subject]:
        """Match by name, narrowed to the board and/or class when those are given."""
        ...

    @abstractmethod
    def find_legacy_subject(self, board_id: str, name: str) -> Optional[Subject]:
        """Return the board-only (class-less) subject with this name, if one survives."""
        ...

    @abstractmethod
    def find_chapter(self, title: str, subject_id: Optional[str] = None) -> Optional[Chapter]:
        ...

    @abstractmethod
    def get_board(self, board_id: str) -> Optional[Board]:
        ...

    @abstractmethod
    def get_class(self, class_id: str) -> Optional[ClassLevel]:
        ...

    @abstractmethod
    def get_subject(self, subject_id: str) -> Optional[Subject]:
        ...

    @abstractmethod
    def get_chapter(self, chapter_id: str) -> Optional[Chapter]:
        ...

    @abstractmethod
    def get_module(self, module_id: str) -> Optional[Module]:
        ...

    @abstractmethod
    def get_item(self, item_id: str) -> Optional[CurriculumItem]:
        ...

    # ------------------------------------------------------------------
    # Listings (sorted the way clients display them)
    # ------------------------------------------------------------------
    @abstractmethod
    def list_boards(self) -> List[Board]:
        """Boards by name."""
        ...

    @abstractmethod
    def list_classes(self, board_id: str) -> List[ClassLevel]:
        """Classes of a board by order, then name."""
        ...

    @abstractmethod
    def list_subjects(self, board_id: Optional[str] = None, class_id: Optional[str] = None) -> List[Subject]:
        """Subjects by name."""
        ...

    @abstractmethod
    def list_chapters(self, subject_id: Optional[str] = None) -> List[Chapter]:
        """Chapters by order; all chapters when no subject is given."""
        ...

    @abstractmethod
    def list_units(self, chapter_id: str) -> List[Unit]:
        ...

    @abstractmethod
    def list_modules(self, chapter_id: Optional[str] = None, unit_id: Optional[str] = None) -> List[Module]:
        """Modules by order, filtered by unit when given, else by chapter."""
        ...

    @abstractmethod
    def list_items(self, module_id: str) -> List[CurriculumItem]:
        ...

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    @abstractmethod
    def create_module(self, chapter_id: str, unit_id: Optional[str], title: str, order: int) -> Module:
        """Insert a module; on a title clash within the chapter return the existing one."""
        ...

    @abstractmethod
    def set_module_unit(self, module_id: str, unit_id: str) -> None:
        ...

    @abstractmethod
    def assign_unitless_modules(self, chapter_id: str, unit_id: str) -> int:
        """Attach every module of the chapter that has no unit. Returns the count."""
        ...

    @abstractmethod
    def add_item(self, module_id: str, order: int, concept: ClassifiedConcept) -> CurriculumItem:
        ...

    @abstractmethod
    def delete_items(self, module_id: str) -> int:
        """Delete all items of a module. Returns the count."""
        ...

    @abstractmethod
    def save_item_images(self, item: CurriculumItem) -> None:
        """Persist the image fields of an item."""
        ...

    @abstractmethod
    def attach_subject_class(self, subject_id: str, class_id: str) -> None:
        ...

    @abstractmethod
    def move_chapters(self, from_subject_id: str, to_subject_id: str) -> int:
        """Reparent chapters, leaving behind any whose title already exists on the target."""
        ...

    @abstractmethod
    def delete_subject_if_empty(self, subject_id: str) -> bool:
        ...
