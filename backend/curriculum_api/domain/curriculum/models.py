"""Curriculum domain models — pure Python, no DB or HTTP dependencies."""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, List, Optional, Union


@dataclass
class Board:
    id: str
    name: str
    created_at: str = ""


@dataclass
class ClassLevel:
    id: str
    board_id: str
    name: str
    order: int = 1
    created_at: str = ""


@dataclass
class Subject:
    id: str
    board_id: str
    name: str
    # None only for subjects written before subjects were scoped by class
    class_id: Optional[str] = None
    created_at: str = ""


@dataclass
class Chapter:
    id: str
    subject_id: str
    title: str
    order: int = 1
    created_at: str = ""


@dataclass
class Unit:
    id: str
    chapter_id: str
    title: str
    order: int = 1
    created_at: str = ""


@dataclass
class Module:
    id: str
    chapter_id: str
    title: str
    order: int = 1
    unit_id: Optional[str] = None
    created_at: str = ""


# ------------------------------------------------------------------
# Curriculum items: one payload type per kind
# ------------------------------------------------------------------
class ItemKind(str, Enum):
    STATEMENT = "statement"
    MULTIPLE_CHOICE = "multiple-choice"
    FILL_IN_THE_BLANK = "fill-in-the-blank"
    REARRANGE = "rearrange"


@dataclass
class StatementItem:
    text: str
    kind: ClassVar[ItemKind] = ItemKind.STATEMENT


@dataclass
class MultipleChoiceItem:
    question: str
    options: List[str]
    answer: Optional[str]
    kind: ClassVar[ItemKind] = ItemKind.MULTIPLE_CHOICE


@dataclass
class FillInTheBlankItem:
    question: str
    answer: Optional[str]
    kind: ClassVar[ItemKind] = ItemKind.FILL_IN_THE_BLANK


@dataclass
class RearrangeItem:
    question: str
    words: List[str]
    answer: Optional[str]
    kind: ClassVar[ItemKind] = ItemKind.REARRANGE


ItemPayload = Union[StatementItem, MultipleChoiceItem, FillInTheBlankItem, RearrangeItem]


@dataclass
class ItemMedia:
    image_url: Optional[str] = None
    images: List[str] = field(default_factory=list)


@dataclass
class ClassifiedConcept:
    """Output of the classifier: a tagged payload plus its media, not yet placed in a module."""
    payload: ItemPayload
    media: ItemMedia = field(default_factory=ItemMedia)

    @property
    def kind(self) -> ItemKind:
        return self.payload.kind


@dataclass
class Rejected:
    reason: str


@dataclass
class CurriculumItem:
    id: str
    module_id: str
    order: int
    payload: ItemPayload
    image_url: Optional[str] = None
    image_public_id: Optional[str] = None
    images: List[str] = field(default_factory=list)
    image_public_ids: List[str] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""

    @property
    def kind(self) -> ItemKind:
        return self.payload.kind


# ------------------------------------------------------------------
# Import / resolution values
# ------------------------------------------------------------------
@dataclass
class HierarchyNames:
    board: Optional[str] = None
    class_level: Optional[str] = None
    subject: Optional[str] = None
    chapter: Optional[str] = None
    unit: Optional[str] = None


@dataclass
class HierarchyPath:
    board: Board
    class_level: ClassLevel
    subject: Subject
    chapter: Chapter
    unit: Optional[Unit] = None


@dataclass
class LessonSummary:
    lesson: Optional[str]
    module_id: str
    items: int
    skipped: int = 0
    replaced: bool = False


@dataclass
class ImportSummary:
    imported_items: int = 0
    skipped: int = 0
    per_lesson: List[LessonSummary] = field(default_factory=list)
