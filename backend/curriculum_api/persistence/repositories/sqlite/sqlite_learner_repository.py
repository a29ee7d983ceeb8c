"""SQLite implementations of LearnerRepository and ReviewRepository."""
from __future__ import annotations
import json
import sqlite3
from dataclasses import asdict
from datetime import datetime, timezone
from typing import List, Optional

from curriculum_api.domain.learner.models import ChapterProgress, Learner, LessonStats
from curriculum_api.persistence.db import Database
from curriculum_api.persistence.interfaces.learner_repository import LearnerRepository, ReviewRepository

_LEARNER_COLUMNS = (
    "id", "username", "name", "email", "phone", "age", "date_of_birth",
    "password_hash", "credential_scheme", "class_level", "board", "subject",
    "chapter", "board_id", "class_id", "subject_id", "chapter_id",
    "onboarding_completed", "created_at", "updated_at",
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_progress(row) -> ChapterProgress:
    stats = json.loads(row["stats"] or "{}")
    return ChapterProgress(
        chapter=row["chapter"],
        subject=row["subject"],
        concept_completed=bool(row["concept_completed"]),
        quiz_completed=bool(row["quiz_completed"]),
        completed_modules=json.loads(row["completed_modules"] or "[]"),
        stats={title: LessonStats(**values) for title, values in stats.items()},
        updated_at=row["updated_at"],
    )


def _row_to_learner(row, progress: List[ChapterProgress]) -> Learner:
    data = {column: row[column] for column in _LEARNER_COLUMNS}
    data["onboarding_completed"] = bool(data["onboarding_completed"])
    return Learner(**data, chapters_progress=progress)


def _learner_params(learner: Learner) -> dict:
    params = {column: getattr(learner, column) for column in _LEARNER_COLUMNS}
    params["onboarding_completed"] = int(learner.onboarding_completed)
    return params


class SqliteLearnerRepository(LearnerRepository):

    def __init__(self, db: Database):
        self._db = db

    def create(self, learner: Learner) -> None:
        learner.created_at = learner.updated_at = _now_iso()
        columns = ", ".join(_LEARNER_COLUMNS)
        placeholders = ", ".join(f":{c}" for c in _LEARNER_COLUMNS)
        with self._db.connection() as conn:
            conn.execute(
                f"INSERT INTO learners ({columns}) VALUES ({placeholders})",
                _learner_params(learner),
            )
            self._write_progress(conn, learner)

    def save(self, learner: Learner) -> None:
        learner.updated_at = _now_iso()
        assignments = ", ".join(f"{c} = :{c}" for c in _LEARNER_COLUMNS if c not in ("id", "created_at"))
        with self._db.connection() as conn:
            conn.execute(f"UPDATE learners SET {assignments} WHERE id = :id", _learner_params(learner))
            self._write_progress(conn, learner)

    def save_progress(self, learner: Learner) -> None:
        with self._db.connection() as conn:
            self._write_progress(conn, learner)

    @staticmethod
    def _write_progress(conn: sqlite3.Connection, learner: Learner) -> None:
        conn.execute("DELETE FROM chapter_progress WHERE learner_id = ?", (learner.id,))
        for position, entry in enumerate(learner.chapters_progress):
            conn.execute(
                """
                INSERT INTO chapter_progress (
                    learner_id, position, chapter, subject, concept_completed,
                    quiz_completed, completed_modules, stats, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    learner.id,
                    position,
                    entry.chapter,
                    entry.subject,
                    int(entry.concept_completed),
                    int(entry.quiz_completed),
                    json.dumps(entry.completed_modules),
                    json.dumps({title: asdict(stats) for title, stats in entry.stats.items()}),
                    entry.updated_at or _now_iso(),
                ),
            )

    def _load(self, conn: sqlite3.Connection, row) -> Learner:
        progress_rows = conn.execute(
            "SELECT * FROM chapter_progress WHERE learner_id = ? ORDER BY position ASC",
            (row["id"],),
        ).fetchall()
        return _row_to_learner(row, [_row_to_progress(r) for r in progress_rows])

    def get_by_id(self, learner_id: str) -> Optional[Learner]:
        with self._db.connection() as conn:
            row = conn.execute("SELECT * FROM learners WHERE id = ?", (learner_id,)).fetchone()
            return self._load(conn, row) if row else None

    def get_by_username(self, username: str) -> Optional[Learner]:
        with self._db.connection() as conn:
            row = conn.execute("SELECT * FROM learners WHERE username = ?", (username,)).fetchone()
            return self._load(conn, row) if row else None

    def username_exists(self, username: str, exclude_id: Optional[str] = None) -> bool:
        with self._db.connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM learners WHERE username = ? AND id IS NOT ?",
                (username, exclude_id),
            ).fetchone()
        return row is not None


def _row_to_incorrect(row) -> dict:
    return {
        "questionId": row["question_id"],
        "moduleId": row["module_id"],
        "chapterId": row["chapter_id"],
        "count": row["count"],
        "firstSeenAt": row["first_seen_at"],
        "lastSeenAt": row["last_seen_at"],
    }


class SqliteReviewRepository(ReviewRepository):

    def __init__(self, db: Database):
        self._db = db

    def record_incorrect(
        self,
        learner_id: str,
        question_id: str,
        module_id: Optional[str],
        chapter_id: Optional[str],
        now: str,
    ) -> dict:
        with self._db.connection() as conn:
            conn.execute(
                """
                INSERT INTO incorrect_questions (
                    learner_id, question_id, module_id, chapter_id, first_seen_at, last_seen_at, count
                ) VALUES (:learner_id, :question_id, :module_id, :chapter_id, :now, :now, 1)
                ON CONFLICT (learner_id, question_id) DO UPDATE SET
                    last_seen_at = excluded.last_seen_at,
                    count        = incorrect_questions.count + 1,
                    module_id    = COALESCE(excluded.module_id, incorrect_questions.module_id),
                    chapter_id   = COALESCE(excluded.chapter_id, incorrect_questions.chapter_id)
                """,
                {
                    "learner_id": learner_id,
                    "question_id": question_id,
                    "module_id": module_id,
                    "chapter_id": chapter_id,
                    "now": now,
                },
            )
            row = conn.execute(
                "SELECT * FROM incorrect_questions WHERE learner_id = ? AND question_id = ?",
                (learner_id, question_id),
            ).fetchone()
        return _row_to_incorrect(row)

    def list_incorrect(
        self,
        learner_id: str,
        module_id: Optional[str] = None,
        chapter_id: Optional[str] = None,
        limit: int = 200,
    ) -> List[dict]:
        clauses, params = ["learner_id = ?"], [learner_id]
        if module_id:
            clauses.append("module_id = ?")
            params.append(module_id)
        if chapter_id:
            clauses.append("chapter_id = ?")
            params.append(chapter_id)
        params.append(limit)
        with self._db.connection() as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM incorrect_questions
                WHERE {' AND '.join(clauses)}
                ORDER BY last_seen_at DESC
                LIMIT ?
                """,
                params,
            ).fetchall()
        return [_row_to_incorrect(r) for r in rows]

    def list_missing_module(self, limit: int) -> List[dict]:
        with self._db.connection() as conn:
            rows = conn.execute(
                """
                SELECT learner_id, question_id FROM incorrect_questions
                WHERE module_id IS NULL OR module_id = ''
                LIMIT ?
                """,
                (limit,),
            ).fetchall()
        return [dict(r) for r in rows]

    def set_module(self, learner_id: str, question_id: str, module_id: str) -> None:
        with self._db.connection() as conn:
            conn.execute(
                "UPDATE incorrect_questions SET module_id = ? WHERE learner_id = ? AND question_id = ?",
                (module_id, learner_id, question_id),
            )
