"""SQLite implementation of CurriculumRepository."""
from __future__ import annotations
import json
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from curriculum_api.domain.curriculum.models import (
    Board,
    Chapter,
    ClassLevel,
    ClassifiedConcept,
    CurriculumItem,
    FillInTheBlankItem,
    ItemKind,
    ItemPayload,
    Module,
    MultipleChoiceItem,
    RearrangeItem,
    StatementItem,
    Subject,
    Unit,
)
from curriculum_api.persistence.db import Database
from curriculum_api.persistence.interfaces.curriculum_repository import CurriculumRepository


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return str(uuid.uuid4())


# ------------------------------------------------------------------
# Row mappers
# ------------------------------------------------------------------
def _row_to_board(row) -> Board:
    return Board(id=row["id"], name=row["name"], created_at=row["created_at"])


def _row_to_class(row) -> ClassLevel:
    return ClassLevel(
        id=row["id"],
        board_id=row["board_id"],
        name=row["name"],
        order=row["sort_order"],
        created_at=row["created_at"],
    )


def _row_to_subject(row) -> Subject:
    return Subject(
        id=row["id"],
        board_id=row["board_id"],
        class_id=row["class_id"],
        name=row["name"],
        created_at=row["created_at"],
    )


def _row_to_chapter(row) -> Chapter:
    return Chapter(
        id=row["id"],
        subject_id=row["subject_id"],
        title=row["title"],
        order=row["sort_order"],
        created_at=row["created_at"],
    )


def _row_to_unit(row) -> Unit:
    return Unit(
        id=row["id"],
        chapter_id=row["chapter_id"],
        title=row["title"],
        order=row["sort_order"],
        created_at=row["created_at"],
    )


def _row_to_module(row) -> Module:
    return Module(
        id=row["id"],
        chapter_id=row["chapter_id"],
        unit_id=row["unit_id"],
        title=row["title"],
        order=row["sort_order"],
        created_at=row["created_at"],
    )


def _row_to_payload(row) -> ItemPayload:
    kind = ItemKind(row["type"])
    if kind is ItemKind.MULTIPLE_CHOICE:
        return MultipleChoiceItem(
            question=row["question"] or "",
            options=json.loads(row["options"] or "[]"),
            answer=row["answer"],
        )
    if kind is ItemKind.FILL_IN_THE_BLANK:
        return FillInTheBlankItem(question=row["question"] or "", answer=row["answer"])
    if kind is ItemKind.REARRANGE:
        return RearrangeItem(
            question=row["question"] or "",
            words=json.loads(row["words"] or "[]"),
            answer=row["answer"],
        )
    return StatementItem(text=row["text"] or "")


def _row_to_item(row) -> CurriculumItem:
    return CurriculumItem(
        id=row["id"],
        module_id=row["module_id"],
        order=row["sort_order"],
        payload=_row_to_payload(row),
        image_url=row["image_url"],
        image_public_id=row["image_public_id"],
        images=json.loads(row["images"] or "[]"),
        image_public_ids=json.loads(row["image_public_ids"] or "[]"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _payload_columns(payload: ItemPayload) -> dict:
    """Flatten a tagged payload into the item table's columns."""
    columns = {
        "type": payload.kind.value,
        "text": None,
        "question": None,
        "options": "[]",
        "answer": None,
        "words": "[]",
    }
    if isinstance(payload, StatementItem):
        columns["text"] = payload.text
    elif isinstance(payload, MultipleChoiceItem):
        columns.update(question=payload.question, options=json.dumps(payload.options), answer=payload.answer)
    elif isinstance(payload, FillInTheBlankItem):
        columns.update(question=payload.question, answer=payload.answer)
    elif isinstance(payload, RearrangeItem):
        # Older readers look for the word list under `options`
        words = json.dumps(payload.words)
        columns.update(question=payload.question, words=words, options=words, answer=payload.answer)
    return columns


class SqliteCurriculumRepository(CurriculumRepository):

    def __init__(self, db: Database):
        self._db = db

    def _one(self, sql: str, params=()) -> Optional[sqlite3.Row]:
        with self._db.connection() as conn:
            return conn.execute(sql, params).fetchone()

    def _all(self, sql: str, params=()) -> List[sqlite3.Row]:
        with self._db.connection() as conn:
            return conn.execute(sql, params).fetchall()

    # ------------------------------------------------------------------
    # Find-or-create
    # ------------------------------------------------------------------
    def get_or_create_board(self, name: str) -> Board:
        with self._db.connection() as conn:
            conn.execute(
                "INSERT INTO boards (id, name, created_at) VALUES (?, ?, ?) ON CONFLICT DO NOTHING",
                (_new_id(), name, _now_iso()),
            )
            row = conn.execute("SELECT * FROM boards WHERE name = ?", (name,)).fetchone()
        return _row_to_board(row)

    def get_or_create_class(self, board_id: str, name: str, order: int) -> ClassLevel:
        with self._db.connection() as conn:
            conn.execute(
                """
                INSERT INTO class_levels (id, board_id, name, sort_order, created_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT DO NOTHING
                """,
                (_new_id(), board_id, name, order, _now_iso()),
            )
            row = conn.execute(
                "SELECT * FROM class_levels WHERE board_id = ? AND name = ?",
                (board_id, name),
            ).fetchone()
        return _row_to_class(row)

    def get_or_create_subject(self, board_id: str, class_id: Optional[str], name: str) -> Subject:
        with self._db.connection() as conn:
            conn.execute(
                """
                INSERT INTO subjects (id, board_id, class_id, name, created_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT DO NOTHING
                """,
                (_new_id(), board_id, class_id, name, _now_iso()),
            )
            row = conn.execute(
                "SELECT * FROM subjects WHERE board_id = ? AND class_id IS ? AND name = ?",
                (board_id, class_id, name),
            ).fetchone()
        return _row_to_subject(row)

    def get_or_create_chapter(self, subject_id: str, title: str, order: int = 1) -> Chapter:
        with self._db.connection() as conn:
            conn.execute(
                """
                INSERT INTO chapters (id, subject_id, title, sort_order, created_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT DO NOTHING
                """,
                (_new_id(), subject_id, title, order, _now_iso()),
            )
            row = conn.execute(
                "SELECT * FROM chapters WHERE subject_id = ? AND title = ?",
                (subject_id, title),
            ).fetchone()
        return _row_to_chapter(row)

    def get_or_create_unit(self, chapter_id: str, title: str, order: int = 1) -> Unit:
        with self._db.connection() as conn:
            conn.execute(
                """
                INSERT INTO units (id, chapter_id, title, sort_order, created_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT DO NOTHING
                """,
                (_new_id(), chapter_id, title, order, _now_iso()),
            )
            row = conn.execute(
                "SELECT * FROM units WHERE chapter_id = ? AND title = ?",
                (chapter_id, title),
            ).fetchone()
        return _row_to_unit(row)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def find_board(self, name: str) -> Optional[Board]:
        row = self._one("SELECT * FROM boards WHERE name = ?", (name,))
        return _row_to_board(row) if row else None

    def find_class(self, name: str, board_id: Optional[str] = None) -> Optional[ClassLevel]:
        if board_id:
            row = self._one(
                "SELECT * FROM class_levels WHERE board_id = ? AND name = ?",
                (board_id, name),
            )
        else:
            row = self._one(
                "SELECT * FROM class_levels WHERE name = ? ORDER BY created_at LIMIT 1",
                (name,),
            )
        return _row_to_class(row) if row else None

    def find_subject(
        self,
        name: str,
        board_id: Optional[str] = None,
        class_id: Optional[str] = None,
    ) -> Optional[Subject]:
        clauses, params = ["name = ?"], [name]
        if board_id:
            clauses.append("board_id = ?")
            params.append(board_id)
        if class_id:
            clauses.append("class_id = ?")
            params.append(class_id)
        row = self._one(
            f"SELECT * FROM subjects WHERE {' AND '.join(clauses)} ORDER BY created_at LIMIT 1",
            params,
        )
        return _row_to_subject(row) if row else None

    def find_legacy_subject(self, board_id: str, name: str) -> Optional[Subject]:
        row = self._one(
            "SELECT * FROM subjects WHERE board_id = ? AND name = ? AND class_id IS NULL",
            (board_id, name),
        )
        return _row_to_subject(row) if row else None

    def find_chapter(self, title: str, subject_id: Optional[str] = None) -> Optional[Chapter]:
        if subject_id:
            row = self._one(
                "SELECT * FROM chapters WHERE subject_id = ? AND title = ?",
                (subject_id, title),
            )
        else:
            row = self._one(
                "SELECT * FROM chapters WHERE title = ? ORDER BY created_at LIMIT 1",
                (title,),
            )
        return _row_to_chapter(row) if row else None

    def get_board(self, board_id: str) -> Optional[Board]:
        row = self._one("SELECT * FROM boards WHERE id = ?", (board_id,))
        return _row_to_board(row) if row else None

    def get_class(self, class_id: str) -> Optional[ClassLevel]:
        row = self._one("SELECT * FROM class_levels WHERE id = ?", (class_id,))
        return _row_to_class(row) if row else None

    def get_subject(self, subject_id: str) -> Optional[Subject]:
        row = self._one("SELECT * FROM subjects WHERE id = ?", (subject_id,))
        return _row_to_subject(row) if row else None

    def get_chapter(self, chapter_id: str) -> Optional[Chapter]:
        row = self._one("SELECT * FROM chapters WHERE id = ?", (chapter_id,))
        return _row_to_chapter(row) if row else None

    def get_module(self, module_id: str) -> Optional[Module]:
        row = self._one("SELECT * FROM modules WHERE id = ?", (module_id,))
        return _row_to_module(row) if row else None

    def get_item(self, item_id: str) -> Optional[CurriculumItem]:
        row = self._one("SELECT * FROM curriculum_items WHERE id = ?", (item_id,))
        return _row_to_item(row) if row else None

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------
    def list_boards(self) -> List[Board]:
        return [_row_to_board(r) for r in self._all("SELECT * FROM boards ORDER BY name ASC")]

    def list_classes(self, board_id: str) -> List[ClassLevel]:
        rows = self._all(
            "SELECT * FROM class_levels WHERE board_id = ? ORDER BY sort_order ASC, name ASC",
            (board_id,),
        )
        return [_row_to_class(r) for r in rows]

    def list_subjects(self, board_id: Optional[str] = None, class_id: Optional[str] = None) -> List[Subject]:
        clauses, params = [], []
        if board_id:
            clauses.append("board_id = ?")
            params.append(board_id)
        if class_id:
            clauses.append("class_id = ?")
            params.append(class_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self._all(f"SELECT * FROM subjects {where} ORDER BY name ASC", params)
        return [_row_to_subject(r) for r in rows]

    def list_chapters(self, subject_id: Optional[str] = None) -> List[Chapter]:
        if subject_id:
            rows = self._all(
                "SELECT * FROM chapters WHERE subject_id = ? ORDER BY sort_order ASC, created_at ASC",
                (subject_id,),
            )
        else:
            rows = self._all("SELECT * FROM chapters ORDER BY sort_order ASC, created_at ASC")
        return [_row_to_chapter(r) for r in rows]

    def list_units(self, chapter_id: str) -> List[Unit]:
        rows = self._all(
            "SELECT * FROM units WHERE chapter_id = ? ORDER BY sort_order ASC, created_at ASC",
            (chapter_id,),
        )
        return [_row_to_unit(r) for r in rows]

    def list_modules(self, chapter_id: Optional[str] = None, unit_id: Optional[str] = None) -> List[Module]:
        if unit_id:
            rows = self._all(
                "SELECT * FROM modules WHERE unit_id = ? ORDER BY sort_order ASC, created_at ASC",
                (unit_id,),
            )
        else:
            rows = self._all(
                "SELECT * FROM modules WHERE chapter_id = ? ORDER BY sort_order ASC, created_at ASC",
                (chapter_id,),
            )
        return [_row_to_module(r) for r in rows]

    def list_items(self, module_id: str) -> List[CurriculumItem]:
        rows = self._all(
            "SELECT * FROM curriculum_items WHERE module_id = ? ORDER BY sort_order ASC",
            (module_id,),
        )
        return [_row_to_item(r) for r in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def create_module(self, chapter_id: str, unit_id: Optional[str], title: str, order: int) -> Module:
        module = Module(
            id=_new_id(),
            chapter_id=chapter_id,
            unit_id=unit_id,
            title=title,
            order=order,
            created_at=_now_iso(),
        )
        try:
            with self._db.connection() as conn:
                conn.execute(
                    """
                    INSERT INTO modules (id, chapter_id, unit_id, title, sort_order, created_at)
                    VALUES (:id, :chapter_id, :unit_id, :title, :sort_order, :created_at)
                    """,
                    {
                        "id": module.id,
                        "chapter_id": module.chapter_id,
                        "unit_id": module.unit_id,
                        "title": module.title,
                        "sort_order": module.order,
                        "created_at": module.created_at,
                    },
                )
        except sqlite3.IntegrityError:
            # Another import created it first
            row = self._one(
                "SELECT * FROM modules WHERE chapter_id = ? AND title = ?",
                (chapter_id, title),
            )
            if row is None:
                raise
            return _row_to_module(row)
        return module

    def set_module_unit(self, module_id: str, unit_id: str) -> None:
        with self._db.connection() as conn:
            conn.execute("UPDATE modules SET unit_id = ? WHERE id = ?", (unit_id, module_id))

    def assign_unitless_modules(self, chapter_id: str, unit_id: str) -> int:
        with self._db.connection() as conn:
            cur = conn.execute(
                "UPDATE modules SET unit_id = ? WHERE chapter_id = ? AND unit_id IS NULL",
                (unit_id, chapter_id),
            )
            return cur.rowcount

    def add_item(self, module_id: str, order: int, concept: ClassifiedConcept) -> CurriculumItem:
        now = _now_iso()
        item = CurriculumItem(
            id=_new_id(),
            module_id=module_id,
            order=order,
            payload=concept.payload,
            image_url=concept.media.image_url,
            images=list(concept.media.images),
            created_at=now,
            updated_at=now,
        )
        params = {
            "id": item.id,
            "module_id": item.module_id,
            "sort_order": item.order,
            "image_url": item.image_url,
            "images": json.dumps(item.images),
            "created_at": now,
            "updated_at": now,
        }
        params.update(_payload_columns(item.payload))
        with self._db.connection() as conn:
            conn.execute(
                """
                INSERT INTO curriculum_items (
                    id, module_id, sort_order, type, text, question, options, answer, words,
                    image_url, images, created_at, updated_at
                ) VALUES (
                    :id, :module_id, :sort_order, :type, :text, :question, :options, :answer, :words,
                    :image_url, :images, :created_at, :updated_at
                )
                """,
                params,
            )
        return item

    def delete_items(self, module_id: str) -> int:
        with self._db.connection() as conn:
            cur = conn.execute("DELETE FROM curriculum_items WHERE module_id = ?", (module_id,))
            return cur.rowcount

    def save_item_images(self, item: CurriculumItem) -> None:
        item.updated_at = _now_iso()
        with self._db.connection() as conn:
            conn.execute(
                """
                UPDATE curriculum_items SET
                    image_url        = :image_url,
                    image_public_id  = :image_public_id,
                    images           = :images,
                    image_public_ids = :image_public_ids,
                    updated_at       = :updated_at
                WHERE id = :id
                """,
                {
                    "id": item.id,
                    "image_url": item.image_url,
                    "image_public_id": item.image_public_id,
                    "images": json.dumps(item.images),
                    "image_public_ids": json.dumps(item.image_public_ids),
                    "updated_at": item.updated_at,
                },
            )

    def attach_subject_class(self, subject_id: str, class_id: str) -> None:
        with self._db.connection() as conn:
            conn.execute("UPDATE subjects SET class_id = ? WHERE id = ?", (class_id, subject_id))

    def move_chapters(self, from_subject_id: str, to_subject_id: str) -> int:
        with self._db.connection() as conn:
            cur = conn.execute(
                """
                UPDATE chapters SET subject_id = :to_id
                WHERE subject_id = :from_id
                  AND title NOT IN (SELECT title FROM chapters WHERE subject_id = :to_id)
                """,
                {"from_id": from_subject_id, "to_id": to_subject_id},
            )
            return cur.rowcount

    def delete_subject_if_empty(self, subject_id: str) -> bool:
        with self._db.connection() as conn:
            remaining = conn.execute(
                "SELECT COUNT(*) FROM chapters WHERE subject_id = ?", (subject_id,)
            ).fetchone()[0]
            if remaining:
                return False
            cur = conn.execute("DELETE FROM subjects WHERE id = ?", (subject_id,))
            return cur.rowcount > 0
