"""Abstract repository interfaces for learners and their review log."""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List, Optional

from curriculum_api.domain.learner.models import Learner


class LearnerRepository(ABC):

    @abstractmethod
    def create(self, learner: Learner) -> None:
        """Insert a new learner. Raises sqlite3.IntegrityError on a taken username."""
        ...

    @abstractmethod
    def save(self, learner: Learner) -> None:
        """Update the learner row and replace its chapter progress entries."""
        ...

    @abstractmethod
    def save_progress(self, learner: Learner) -> None:
        """Write only the chapter progress entries of a learner."""
        ...

    @abstractmethod
    def get_by_id(self, learner_id: str) -> Optional[Learner]:
        """Return the learner with chapters_progress populated, or None."""
        ...

    @abstractmethod
    def get_by_username(self, username: str) -> Optional[Learner]:
        ...

    @abstractmethod
    def username_exists(self, username: str, exclude_id: Optional[str] = None) -> bool:
        ...


class ReviewRepository(ABC):

    @abstractmethod
    def record_incorrect(
        self,
        learner_id: str,
        question_id: str,
        module_id: Optional[str],
        chapter_id: Optional[str],
        now: str,
    ) -> dict:
        """Upsert one incorrect answer: count += 1, last_seen = now, first_seen kept."""
        ...

    @abstractmethod
    def list_incorrect(
        self,
        learner_id: str,
        module_id: Optional[str] = None,
        chapter_id: Optional[str] = None,
        limit: int = 200,
    ) -> List[dict]:
        """Newest first."""
        ...

    @abstractmethod
    def list_missing_module(self, limit: int) -> List[dict]:
        ...

    @abstractmethod
    def set_module(self, learner_id: str, question_id: str, module_id: str) -> None:
        ...
