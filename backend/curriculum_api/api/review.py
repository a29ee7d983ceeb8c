"""Review API — incorrect-question log per learner."""
from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from curriculum_api.api.errors import unwrap
from curriculum_api.application.review_app_service import ReviewAppService
from curriculum_api.container import get_review_app_service

router = APIRouter(prefix="/api/review", tags=["review"])


class IncorrectBody(BaseModel):
    userId: Optional[str] = None
    questionId: Optional[str] = None
    moduleId: Optional[str] = None
    chapterId: Optional[str] = None


class BackfillBody(BaseModel):
    limit: int = 1000


@router.post("/incorrect", status_code=status.HTTP_201_CREATED)
def record_incorrect(body: IncorrectBody, svc: ReviewAppService = Depends(get_review_app_service)):
    return unwrap(svc.record_incorrect(body.userId, body.questionId, body.moduleId, body.chapterId))


@router.get("/incorrect")
def list_incorrect(
    userId: Optional[str] = Query(None),
    moduleId: Optional[str] = Query(None),
    chapterId: Optional[str] = Query(None),
    svc: ReviewAppService = Depends(get_review_app_service),
):
    return unwrap(svc.list_incorrect(userId, moduleId, chapterId))


@router.post("/backfill")
def backfill(body: Optional[BackfillBody] = None, svc: ReviewAppService = Depends(get_review_app_service)):
    body = body or BackfillBody()
    return svc.backfill_module_ids(body.limit)
