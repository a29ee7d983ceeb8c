"""Dependency injection container — wires implementations to interfaces.

Everything hangs off one ``AppContext`` (settings + database handle) that is
built once per process; ``reset()`` drops the cached graph so tests can point
at a fresh database.
"""
from __future__ import annotations
from dataclasses import dataclass
from functools import lru_cache

from curriculum_api.application.curriculum_app_service import CurriculumAppService
from curriculum_api.application.hierarchy_resolver import HierarchyResolver
from curriculum_api.application.learner_app_service import LearnerAppService
from curriculum_api.application.review_app_service import ReviewAppService
from curriculum_api.application.selection_backfiller import SelectionBackfiller
from curriculum_api.core.config import Settings, get_settings
from curriculum_api.persistence.db import Database
from curriculum_api.persistence.repositories.sqlite.sqlite_curriculum_repository import SqliteCurriculumRepository
from curriculum_api.persistence.repositories.sqlite.sqlite_learner_repository import (
    SqliteLearnerRepository,
    SqliteReviewRepository,
)
from curriculum_api.persistence.storage.supabase_asset_store import SupabaseAssetStore


@dataclass(frozen=True)
class AppContext:
    settings: Settings
    db: Database


@lru_cache(maxsize=1)
def get_context() -> AppContext:
    settings = get_settings()
    return AppContext(settings=settings, db=Database(settings.database_path))


@lru_cache(maxsize=1)
def get_curriculum_repo() -> SqliteCurriculumRepository:
    return SqliteCurriculumRepository(get_context().db)


@lru_cache(maxsize=1)
def get_learner_repo() -> SqliteLearnerRepository:
    return SqliteLearnerRepository(get_context().db)


@lru_cache(maxsize=1)
def get_review_repo() -> SqliteReviewRepository:
    return SqliteReviewRepository(get_context().db)


@lru_cache(maxsize=1)
def get_asset_store() -> SupabaseAssetStore:
    settings = get_context().settings
    return SupabaseAssetStore(
        base_url=settings.supabase_url,
        api_key=settings.supabase_key,
        bucket=settings.supabase_bucket,
        default_folder=settings.upload_folder,
    )


@lru_cache(maxsize=1)
def get_hierarchy_resolver() -> HierarchyResolver:
    return HierarchyResolver(repo=get_curriculum_repo(), settings=get_context().settings)


@lru_cache(maxsize=1)
def get_curriculum_app_service() -> CurriculumAppService:
    return CurriculumAppService(
        repo=get_curriculum_repo(),
        learners=get_learner_repo(),
        resolver=get_hierarchy_resolver(),
        settings=get_context().settings,
    )


@lru_cache(maxsize=1)
def get_learner_app_service() -> LearnerAppService:
    return LearnerAppService(
        learners=get_learner_repo(),
        curriculum=get_curriculum_repo(),
        backfiller=SelectionBackfiller(get_hierarchy_resolver()),
    )


@lru_cache(maxsize=1)
def get_review_app_service() -> ReviewAppService:
    return ReviewAppService(reviews=get_review_repo(), learners=get_learner_repo())


_PROVIDERS = (
    get_context,
    get_curriculum_repo,
    get_learner_repo,
    get_review_repo,
    get_asset_store,
    get_hierarchy_resolver,
    get_curriculum_app_service,
    get_learner_app_service,
    get_review_app_service,
)


def reset() -> None:
    get_settings.cache_clear()
    for provider in _PROVIDERS:
        provider.cache_clear()
