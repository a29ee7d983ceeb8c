"""Auth API — learner registration, login, onboarding and progress endpoints."""
from __future__ import annotations
from dataclasses import asdict
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from jose import JWTError, jwt

from curriculum_api.api.errors import unwrap
from curriculum_api.application.learner_app_service import LearnerAppService
from curriculum_api.container import get_context, get_learner_app_service
from curriculum_api.domain.learner.models import ChapterProgress, Learner, LessonStats

router = APIRouter(prefix="/api/auth", tags=["auth"])

_bearer = HTTPBearer(auto_error=False)


# ------------------------------------------------------------------
# Pydantic schemas
# ------------------------------------------------------------------
class RegisterRequest(BaseModel):
    username: str
    dateOfBirth: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    age: Optional[int] = None
    classLevel: Optional[Any] = None
    classTitle: Optional[Any] = None
    board: Optional[str] = None
    subject: Optional[str] = None
    chapter: Optional[Any] = None


class LoginRequest(BaseModel):
    username: str
    dateOfBirth: Optional[str] = None
    password: Optional[str] = None


class OnboardingRequest(BaseModel):
    userId: Optional[str] = None
    username: Optional[str] = None
    board: Optional[str] = None
    subject: Optional[str] = None
    chapter: Optional[Any] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    classLevel: Optional[Any] = None
    classTitle: Optional[Any] = None
    dateOfBirth: Optional[str] = None
    email: Optional[str] = None


class ProgressRequest(BaseModel):
    userId: Optional[str] = None
    chapter: Optional[Any] = None
    moduleId: Optional[str] = None
    subject: Optional[str] = None
    conceptCompleted: Optional[bool] = None
    quizCompleted: Optional[bool] = None
    lessonTitle: Optional[str] = None
    isCorrect: Optional[bool] = None
    deltaScore: Optional[Any] = 0
    resetLesson: bool = False


# ------------------------------------------------------------------
# JWT helpers
# ------------------------------------------------------------------
def _create_token(learner_id: str) -> str:
    settings = get_context().settings
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    payload = {"sub": learner_id, "exp": expire}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def _decode_token(token: str) -> dict:
    settings = get_context().settings
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=f"Invalid token: {e}")


# ------------------------------------------------------------------
# Dependency: get current learner from Bearer token
# ------------------------------------------------------------------
def get_current_learner(credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer)) -> dict:
    if not credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return _decode_token(credentials.credentials)


# ------------------------------------------------------------------
# Serializers
# ------------------------------------------------------------------
def serialize_learner(learner: Learner) -> dict:
    return {
        "id": learner.id,
        "username": learner.username,
        "name": learner.name,
        "email": learner.email,
        "phone": learner.phone,
        "age": learner.age,
        "dateOfBirth": learner.date_of_birth,
        "classLevel": learner.class_level,
        "board": learner.board,
        "subject": learner.subject,
        "chapter": learner.chapter,
        "onboardingCompleted": learner.onboarding_completed,
        "boardId": learner.board_id,
        "classId": learner.class_id,
        "subjectId": learner.subject_id,
        "chapterId": learner.chapter_id,
    }


def _serialize_stats(stats: LessonStats) -> dict:
    data = asdict(stats)
    return {
        "correct": data["correct"],
        "wrong": data["wrong"],
        "bestScore": data["best_score"],
        "lastScore": data["last_score"],
        "lastReviewedAt": data["last_reviewed_at"],
    }


def serialize_progress(entry: ChapterProgress) -> dict:
    return {
        "chapter": entry.chapter,
        "subject": entry.subject,
        "conceptCompleted": entry.concept_completed,
        "quizCompleted": entry.quiz_completed,
        "completedModules": list(entry.completed_modules),
        "stats": {title: _serialize_stats(s) for title, s in entry.stats.items()},
        "updatedAt": entry.updated_at,
    }


def _with_token(learner: Learner) -> dict:
    data = serialize_learner(learner)
    data["token"] = _create_token(learner.id)
    return data


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------
@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, svc: LearnerAppService = Depends(get_learner_app_service)):
    learner = unwrap(svc.register(body.model_dump()))
    return _with_token(learner)


@router.post("/login")
def login(body: LoginRequest, svc: LearnerAppService = Depends(get_learner_app_service)):
    learner = unwrap(svc.authenticate(body.username, date_of_birth=body.dateOfBirth, password=body.password))
    return _with_token(learner)


@router.get("/profile")
def get_profile(
    current_learner: dict = Depends(get_current_learner),
    svc: LearnerAppService = Depends(get_learner_app_service),
):
    learner = svc.get_learner(current_learner["sub"])
    if not learner:
        raise HTTPException(status_code=404, detail="User not found")
    return serialize_learner(learner)


@router.get("/user/{user_id}")
def get_user(user_id: str, svc: LearnerAppService = Depends(get_learner_app_service)):
    learner = svc.get_learner(user_id)
    if not learner:
        raise HTTPException(status_code=404, detail="User not found")
    return serialize_learner(learner)


@router.get("/check-username")
def check_username(
    username: Optional[str] = Query(None),
    svc: LearnerAppService = Depends(get_learner_app_service),
):
    return {"available": unwrap(svc.is_username_available(username))}


@router.put("/onboarding")
def update_onboarding(body: OnboardingRequest, svc: LearnerAppService = Depends(get_learner_app_service)):
    learner = unwrap(svc.update_onboarding(body.model_dump()))
    return serialize_learner(learner)


@router.get("/progress/{user_id}")
def get_progress(user_id: str, svc: LearnerAppService = Depends(get_learner_app_service)):
    return [serialize_progress(p) for p in unwrap(svc.get_progress(user_id))]


@router.get("/module-progress/{user_id}")
def get_module_progress(
    user_id: str,
    subject: Optional[str] = Query(None),
    chapter: Optional[str] = Query(None),
    svc: LearnerAppService = Depends(get_learner_app_service),
):
    entry = unwrap(svc.get_module_progress(user_id, subject, chapter))
    if entry is None:
        return {"completedModules": []}
    return {
        "completedModules": list(entry.completed_modules),
        "conceptCompleted": entry.concept_completed,
        "quizCompleted": entry.quiz_completed,
    }


@router.put("/progress")
def update_progress(body: ProgressRequest, svc: LearnerAppService = Depends(get_learner_app_service)):
    return [serialize_progress(p) for p in unwrap(svc.update_progress(body.model_dump()))]


@router.get("/verify-storage/{user_id}")
def verify_storage(user_id: str, svc: LearnerAppService = Depends(get_learner_app_service)):
    summary = unwrap(svc.progress_summary(user_id))
    return {
        "userId": summary.learner_id,
        "totalChapters": summary.total_chapters,
        "totalPoints": summary.total_points,
        "totalCorrect": summary.total_correct,
        "totalWrong": summary.total_wrong,
        "chaptersProgress": [serialize_progress(p) for p in summary.chapters],
    }
