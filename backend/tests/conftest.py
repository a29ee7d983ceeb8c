"""Shared fixtures: every test gets its own SQLite file."""
import pytest
from fastapi.testclient import TestClient

from curriculum_api import container
from curriculum_api.application.curriculum_app_service import CurriculumAppService
from curriculum_api.application.hierarchy_resolver import HierarchyResolver
from curriculum_api.application.learner_app_service import LearnerAppService
from curriculum_api.application.selection_backfiller import SelectionBackfiller
from curriculum_api.core.config import Settings
from curriculum_api.persistence.db import Database
from curriculum_api.persistence.repositories.sqlite.sqlite_curriculum_repository import SqliteCurriculumRepository
from curriculum_api.persistence.repositories.sqlite.sqlite_learner_repository import (
    SqliteLearnerRepository,
    SqliteReviewRepository,
)


@pytest.fixture
def settings(tmp_path):
    return Settings(database_path=str(tmp_path / "curriculum.db"), secret_key="test-secret")


@pytest.fixture
def db(settings):
    database = Database(settings.database_path)
    database.init()
    return database


@pytest.fixture
def curriculum_repo(db):
    return SqliteCurriculumRepository(db)


@pytest.fixture
def learner_repo(db):
    return SqliteLearnerRepository(db)


@pytest.fixture
def review_repo(db):
    return SqliteReviewRepository(db)


@pytest.fixture
def resolver(curriculum_repo, settings):
    return HierarchyResolver(curriculum_repo, settings)


@pytest.fixture
def curriculum_service(curriculum_repo, learner_repo, resolver, settings):
    return CurriculumAppService(curriculum_repo, learner_repo, resolver, settings)


@pytest.fixture
def learner_service(learner_repo, curriculum_repo, resolver):
    return LearnerAppService(learner_repo, curriculum_repo, SelectionBackfiller(resolver))


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "api.db"))
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("SUPABASE_URL", "")
    monkeypatch.setenv("SUPABASE_KEY", "")
    container.reset()

    from curriculum_api.main import app

    with TestClient(app) as test_client:
        yield test_client
    container.reset()
