"""Lesson/module merge for curriculum imports.

Overwrite policy is per lesson: a lesson whose title (trimmed, case-folded)
matches a module already in the chapter reuses that module and has all of
its items replaced; modules the payload does not mention are left alone.
New lessons become modules ordered after the chapter's current last one.
"""
from __future__ import annotations
import logging
import sqlite3
from typing import Dict, List, Set

from curriculum_api.domain.curriculum.classifier import classify
from curriculum_api.domain.curriculum.models import (
    HierarchyPath,
    ImportSummary,
    LessonSummary,
    Module,
    Rejected,
)
from curriculum_api.domain.curriculum.rules import normalize_title
from curriculum_api.persistence.interfaces.curriculum_repository import CurriculumRepository

logger = logging.getLogger(__name__)


def lesson_title(lesson: dict, position: int) -> str:
    title = str(lesson.get("lesson_title") or "").strip()
    return title or f"Lesson {position}"


class LessonMerger:
    def __init__(self, repo: CurriculumRepository):
        self._repo = repo

    def merge(self, path: HierarchyPath, lessons: List[dict]) -> ImportSummary:
        chapter = path.chapter
        unit_id = path.unit.id if path.unit else None

        existing = self._repo.list_modules(chapter_id=chapter.id)
        by_title: Dict[str, Module] = {normalize_title(m.title): m for m in existing}
        next_order = max((m.order for m in existing), default=0)
        # Modules already filled by this run; a repeated title appends instead of wiping
        filled: Dict[str, int] = {}
        replaced: Set[str] = set()

        summary = ImportSummary()
        for position, lesson in enumerate(lessons, start=1):
            title = lesson_title(lesson, position)
            key = normalize_title(title)
            module = by_title.get(key)

            if module is None:
                next_order += 1
                module = self._repo.create_module(chapter.id, unit_id, title, next_order)
                by_title[key] = module
                filled[module.id] = 0
            elif module.id not in filled:
                removed = self._repo.delete_items(module.id)
                replaced.add(module.id)
                filled[module.id] = 0
                if unit_id and module.unit_id is None:
                    self._repo.set_module_unit(module.id, unit_id)
                    module.unit_id = unit_id
                logger.info("Replacing %d items of module '%s'", removed, module.title)

            created, skipped = self._add_concepts(module, lesson.get("concepts") or [], filled)
            summary.imported_items += created
            summary.skipped += skipped
            summary.per_lesson.append(
                LessonSummary(
                    lesson=lesson.get("lesson_title"),
                    module_id=module.id,
                    items=created,
                    skipped=skipped,
                    replaced=module.id in replaced,
                )
            )
            logger.info("Lesson '%s': %d items imported, %d skipped", title, created, skipped)

        return summary

    def _add_concepts(self, module: Module, concepts: list, filled: Dict[str, int]) -> tuple:
        created = skipped = 0
        for index, concept in enumerate(concepts, start=1):
            classified = classify(concept)
            if isinstance(classified, Rejected):
                skipped += 1
                logger.warning("Skipping concept %d of '%s': %s", index, module.title, classified.reason)
                continue
            order = filled[module.id] + 1
            try:
                self._repo.add_item(module.id, order, classified)
            except (sqlite3.Error, ValueError, TypeError) as e:
                skipped += 1
                logger.warning("Could not store concept %d of '%s': %s", index, module.title, e)
                continue
            filled[module.id] = order
            created += 1
        return created, skipped
