"""Curriculum API — import, hierarchy browsing, item images and retrofit endpoints."""
from __future__ import annotations
import logging
from dataclasses import asdict
from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from pydantic import BaseModel

from curriculum_api.api.errors import status_for, unwrap
from curriculum_api.application.curriculum_app_service import CurriculumAppService, ImportOutcome
from curriculum_api.container import get_curriculum_app_service
from curriculum_api.domain.curriculum.models import (
    Board,
    Chapter,
    ClassLevel,
    CurriculumItem,
    Module,
    RearrangeItem,
    Subject,
    Unit,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/curriculum", tags=["curriculum"])


# ------------------------------------------------------------------
# Pydantic schemas
# ------------------------------------------------------------------
class ItemImageBody(BaseModel):
    imageUrl: Optional[str] = None
    publicId: Optional[str] = None
    images: Optional[List[Optional[str]]] = None
    imagePublicIds: Optional[List[Optional[str]]] = None
    append: Optional[Any] = False


class BackfillSubjectsBody(BaseModel):
    board_title: Optional[Any] = None
    class_title: Optional[Any] = None
    subject_title: Optional[Any] = None


class BackfillUnitsBody(BaseModel):
    chapterId: Optional[str] = None


# ------------------------------------------------------------------
# Serializers
# ------------------------------------------------------------------
def _serialize_board(b: Board) -> dict:
    return {"id": b.id, "name": b.name, "createdAt": b.created_at}


def _serialize_class(c: ClassLevel) -> dict:
    return {"id": c.id, "boardId": c.board_id, "name": c.name, "order": c.order, "createdAt": c.created_at}


def _serialize_subject(s: Subject) -> dict:
    return {"id": s.id, "boardId": s.board_id, "classId": s.class_id, "name": s.name, "createdAt": s.created_at}


def _serialize_chapter(c: Chapter) -> dict:
    return {"id": c.id, "subjectId": c.subject_id, "title": c.title, "order": c.order, "createdAt": c.created_at}


def _serialize_unit(u: Unit) -> dict:
    return {"id": u.id, "chapterId": u.chapter_id, "title": u.title, "order": u.order, "createdAt": u.created_at}


def _serialize_module(m: Module) -> dict:
    return {
        "id": m.id,
        "chapterId": m.chapter_id,
        "unitId": m.unit_id,
        "title": m.title,
        "order": m.order,
        "createdAt": m.created_at,
    }


def _serialize_item(item: CurriculumItem) -> dict:
    data = {
        "id": item.id,
        "moduleId": item.module_id,
        "order": item.order,
        "type": item.kind.value,
    }
    data.update(asdict(item.payload))
    if isinstance(item.payload, RearrangeItem):
        data["options"] = list(item.payload.words)
    data.update(
        imageUrl=item.image_url,
        imagePublicId=item.image_public_id,
        images=list(item.images),
        imagePublicIds=list(item.image_public_ids),
        createdAt=item.created_at,
        updatedAt=item.updated_at,
    )
    return data


def _serialize_import(outcome: ImportOutcome) -> dict:
    path, summary = outcome.path, outcome.summary
    return {
        "board": path.board.name,
        "class": path.class_level.name,
        "subject": path.subject.name,
        "chapter": path.chapter.title,
        "unit": path.unit.title if path.unit else None,
        "importedItems": summary.imported_items,
        "skipped": summary.skipped,
        "perLesson": [
            {
                "lesson": lesson.lesson,
                "moduleId": lesson.module_id,
                "items": lesson.items,
                "skipped": lesson.skipped,
                "replaced": lesson.replaced,
            }
            for lesson in summary.per_lesson
        ],
    }


# ------------------------------------------------------------------
# Import
# ------------------------------------------------------------------
@router.post("/import", status_code=status.HTTP_201_CREATED)
def import_curriculum(
    payload: Any = Body(...),
    svc: CurriculumAppService = Depends(get_curriculum_app_service),
):
    result = svc.import_curriculum(payload)
    if not result.is_success and result.value is not None:
        detail = _serialize_import(result.value)
        detail["message"] = result.error
        raise HTTPException(status_code=status_for(result), detail=detail)
    return _serialize_import(unwrap(result))


# ------------------------------------------------------------------
# Hierarchy browsing
# ------------------------------------------------------------------
@router.get("/boards")
def list_boards(svc: CurriculumAppService = Depends(get_curriculum_app_service)):
    return [_serialize_board(b) for b in svc.list_boards()]


@router.get("/classes")
def list_classes(
    board: Optional[str] = Query(None),
    svc: CurriculumAppService = Depends(get_curriculum_app_service),
):
    return [_serialize_class(c) for c in svc.list_classes(board)]


@router.get("/subjects")
def list_subjects(
    board: Optional[str] = Query(None),
    classTitle: Optional[str] = Query(None),
    userId: Optional[str] = Query(None),
    svc: CurriculumAppService = Depends(get_curriculum_app_service),
):
    return [_serialize_subject(s) for s in svc.list_subjects(board, classTitle, userId)]


@router.get("/chapters")
def list_chapters(
    board: Optional[str] = Query(None),
    subject: Optional[str] = Query(None),
    classTitle: Optional[str] = Query(None),
    userId: Optional[str] = Query(None),
    svc: CurriculumAppService = Depends(get_curriculum_app_service),
):
    return [_serialize_chapter(c) for c in svc.list_chapters(board, subject, classTitle, userId)]


@router.get("/units")
def list_units(
    chapterId: Optional[str] = Query(None),
    svc: CurriculumAppService = Depends(get_curriculum_app_service),
):
    return [_serialize_unit(u) for u in unwrap(svc.list_units(chapterId))]


@router.get("/modules")
def list_modules(
    chapterId: Optional[str] = Query(None),
    unitId: Optional[str] = Query(None),
    svc: CurriculumAppService = Depends(get_curriculum_app_service),
):
    return [_serialize_module(m) for m in unwrap(svc.list_modules(chapterId, unitId))]


@router.get("/items")
def list_items(
    moduleId: Optional[str] = Query(None),
    svc: CurriculumAppService = Depends(get_curriculum_app_service),
):
    return [_serialize_item(i) for i in unwrap(svc.list_items(moduleId))]


@router.put("/items/{item_id}/image")
def set_item_image(
    item_id: str,
    body: ItemImageBody,
    svc: CurriculumAppService = Depends(get_curriculum_app_service),
):
    result = svc.set_item_image(
        item_id,
        image_url=body.imageUrl,
        public_id=body.publicId,
        images=body.images,
        image_public_ids=body.imagePublicIds,
        append=body.append,
    )
    return _serialize_item(unwrap(result))


# ------------------------------------------------------------------
# Retrofit utilities (raw error text is returned on failure)
# ------------------------------------------------------------------
@router.post("/backfill-subjects")
def backfill_subjects(
    body: Optional[BackfillSubjectsBody] = None,
    svc: CurriculumAppService = Depends(get_curriculum_app_service),
):
    body = body or BackfillSubjectsBody()
    try:
        report = svc.backfill_subjects(body.board_title, body.class_title, body.subject_title)
    except Exception as e:
        logger.exception("backfill-subjects failed")
        raise HTTPException(status_code=500, detail=f"Server Error: {e}")
    return {
        "board": report.board.name,
        "class": report.class_level.name,
        "subject": report.subject.name,
        "updatedChapters": report.updated_chapters,
    }


@router.post("/backfill-units")
def backfill_units(
    body: Optional[BackfillUnitsBody] = None,
    svc: CurriculumAppService = Depends(get_curriculum_app_service),
):
    body = body or BackfillUnitsBody()
    try:
        report = svc.backfill_units(body.chapterId)
    except Exception as e:
        logger.exception("backfill-units failed")
        raise HTTPException(status_code=500, detail=f"Server Error: {e}")
    return {
        "chaptersProcessed": report.chapters_processed,
        "unitsCreated": report.units_created,
        "modulesAssigned": report.modules_assigned,
    }
