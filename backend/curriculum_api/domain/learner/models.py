"""Learner domain models — pure Python, no DB or HTTP dependencies."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional

CREDENTIAL_DOB = "date_of_birth"
CREDENTIAL_PASSWORD = "password"


@dataclass
class LessonStats:
    correct: int = 0
    wrong: int = 0
    best_score: int = 0
    last_score: int = 0
    last_reviewed_at: Optional[str] = None

    def record_answer(self, is_correct: bool, delta_score: float, now: str) -> None:
        """Count the answer and move the running score; best score never goes down."""
        if is_correct:
            self.correct += 1
        else:
            self.wrong += 1
        self.last_score = max(0, self.last_score + delta_score)
        self.best_score = max(self.best_score, self.last_score)
        self.last_reviewed_at = now

    def reset(self, now: str) -> None:
        """Start a fresh attempt at the lesson, keeping the best score."""
        self.correct = 0
        self.wrong = 0
        self.last_score = 0
        self.last_reviewed_at = now


@dataclass
class ChapterProgress:
    chapter: int
    subject: str
    concept_completed: bool = False
    quiz_completed: bool = False
    # Insertion-ordered, no duplicates
    completed_modules: List[str] = field(default_factory=list)
    # Lesson title -> stats, in the order lessons were first seen
    stats: Dict[str, LessonStats] = field(default_factory=dict)
    updated_at: str = ""

    def mark_module(self, module_id: str, completed: bool) -> None:
        if completed and module_id not in self.completed_modules:
            self.completed_modules.append(module_id)
        elif not completed and module_id in self.completed_modules:
            self.completed_modules.remove(module_id)

    def lesson(self, title: str) -> LessonStats:
        if title not in self.stats:
            self.stats[title] = LessonStats()
        return self.stats[title]


@dataclass
class Learner:
    id: str
    username: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    age: Optional[int] = None
    date_of_birth: Optional[str] = None  # YYYY-MM-DD
    password_hash: Optional[str] = None
    credential_scheme: str = CREDENTIAL_DOB

    # Legacy human-readable selections
    class_level: Optional[str] = None
    board: Optional[str] = None
    subject: Optional[str] = None
    chapter: Optional[str] = None

    # Normalized references, derived from the strings above
    board_id: Optional[str] = None
    class_id: Optional[str] = None
    subject_id: Optional[str] = None
    chapter_id: Optional[str] = None
    onboarding_completed: bool = False

    chapters_progress: List[ChapterProgress] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""

    def progress_for(self, chapter: int, subject: Optional[str]) -> Optional[ChapterProgress]:
        for entry in self.chapters_progress:
            if entry.chapter == chapter and entry.subject == subject:
                return entry
        return None
