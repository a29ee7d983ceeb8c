"""Re-derive a learner's normalized curriculum ids from their string selections."""
from __future__ import annotations
import logging
from typing import Optional

from curriculum_api.application.hierarchy_resolver import (
    HierarchyResolver,
    LevelResolution,
    ResolutionStatus,
)
from curriculum_api.domain.learner.models import Learner
from curriculum_api.domain.learner.rules import is_onboarding_complete

logger = logging.getLogger(__name__)


def _next_id(current: Optional[str], resolution: LevelResolution) -> Optional[str]:
    # A failed lookup keeps whatever was stored; only a clean miss clears it
    if resolution.status is ResolutionStatus.ERROR:
        return current
    return resolution.id


class SelectionBackfiller:
    def __init__(self, resolver: HierarchyResolver):
        self._resolver = resolver

    def reconcile(self, learner: Learner, class_hint: Optional[str] = None) -> Learner:
        """Update board/class/subject/chapter ids and the onboarding flag in place.

        ``class_hint`` is the older ``classTitle`` field, used when the learner
        has no ``class_level`` string of their own.
        """
        try:
            resolution = self._resolver.resolve_selection(
                board=learner.board,
                class_level=learner.class_level or class_hint,
                subject=learner.subject,
                chapter=learner.chapter,
            )
        except Exception:
            logger.exception("Selection reconcile failed for learner %s; keeping stored ids", learner.id)
            return learner

        for level in resolution.levels:
            if level.status is ResolutionStatus.ERROR:
                logger.warning("Learner %s: %s lookup errored: %s", learner.id, level.level, level.error)
            elif level.resolved:
                logger.debug("Learner %s: %s resolved via %s", learner.id, level.level, level.via)

        learner.board_id = _next_id(learner.board_id, resolution.board)
        learner.class_id = _next_id(learner.class_id, resolution.class_level)
        learner.subject_id = _next_id(learner.subject_id, resolution.subject)
        learner.chapter_id = _next_id(learner.chapter_id, resolution.chapter)
        learner.onboarding_completed = is_onboarding_complete(learner.board_id, learner.subject_id)
        return learner
