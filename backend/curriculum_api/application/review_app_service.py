"""Application service — per-learner log of incorrectly answered questions."""
from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import List, Optional

from curriculum_api.domain.common.result import Result
from curriculum_api.persistence.interfaces.learner_repository import LearnerRepository, ReviewRepository

logger = logging.getLogger(__name__)

LIST_LIMIT = 200


def module_id_from_question(question_id: Optional[str]) -> Optional[str]:
    """Question ids are ``<moduleId>_<n>``; the part before the first ``_``."""
    if not question_id:
        return None
    head = str(question_id).split("_", 1)[0]
    return head or None


class ReviewAppService:
    def __init__(self, reviews: ReviewRepository, learners: LearnerRepository):
        self._reviews = reviews
        self._learners = learners

    def record_incorrect(
        self,
        learner_id: Optional[str],
        question_id: Optional[str],
        module_id: Optional[str] = None,
        chapter_id: Optional[str] = None,
    ) -> Result[dict]:
        if not learner_id or not question_id:
            return Result.fail("userId and questionId are required")
        if not self._learners.get_by_id(str(learner_id)):
            return Result.not_found("User not found")

        row = self._reviews.record_incorrect(
            str(learner_id),
            str(question_id),
            str(module_id) if module_id else None,
            str(chapter_id) if chapter_id else None,
            datetime.now(timezone.utc).isoformat(),
        )
        logger.debug("Learner %s missed %s (%d times)", learner_id, question_id, row["count"])
        return Result.ok(row)

    def list_incorrect(
        self,
        learner_id: Optional[str],
        module_id: Optional[str] = None,
        chapter_id: Optional[str] = None,
    ) -> Result[List[dict]]:
        if not learner_id:
            return Result.fail("userId is required")
        return Result.ok(
            self._reviews.list_incorrect(str(learner_id), module_id=module_id, chapter_id=chapter_id, limit=LIST_LIMIT)
        )

    def backfill_module_ids(self, limit: int = 1000) -> dict:
        """Fill missing module ids on logged questions from their question id prefix."""
        missing = self._reviews.list_missing_module(limit)
        updated = 0
        for row in missing:
            module_id = module_id_from_question(row["question_id"])
            if not module_id:
                continue
            self._reviews.set_module(row["learner_id"], row["question_id"], module_id)
            updated += 1
        logger.info("Review backfill: %d of %d rows updated", updated, len(missing))
        return {"updated": updated, "scanned": len(missing)}
