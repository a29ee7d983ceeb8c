"""Hierarchy resolution tests (find-or-create and lookup chain)."""
from curriculum_api.application.hierarchy_resolver import ResolutionStatus
from curriculum_api.domain.curriculum.models import HierarchyNames


def test_ensure_path_is_idempotent(resolver):
    names = HierarchyNames(board="CBSE", class_level="6", subject="Social Studies", chapter="Chapter 9", unit="Unit 1")
    first = resolver.ensure_path(names)
    second = resolver.ensure_path(names)

    assert first.board.id == second.board.id
    assert first.class_level.id == second.class_level.id
    assert first.subject.id == second.subject.id
    assert first.chapter.id == second.chapter.id
    assert first.unit.id == second.unit.id
    assert first.class_level.order == 6
    assert first.chapter.order == 9


def test_ensure_path_applies_defaults(resolver, settings):
    path = resolver.ensure_path(HierarchyNames())
    assert path.board.name == settings.default_board
    assert path.class_level.name == settings.default_class
    assert path.subject.name == settings.default_subject
    assert path.chapter.title == settings.default_chapter
    assert path.unit is None


def test_same_subject_name_in_two_classes_is_two_subjects(resolver):
    five = resolver.ensure_path(HierarchyNames(board="CBSE", class_level="5", subject="Science", chapter="Light"))
    six = resolver.ensure_path(HierarchyNames(board="CBSE", class_level="6", subject="Science", chapter="Light"))
    assert five.board.id == six.board.id
    assert five.subject.id != six.subject.id
    assert five.chapter.id != six.chapter.id


def test_resolve_selection_full_chain(resolver):
    path = resolver.ensure_path(HierarchyNames(board="CBSE", class_level="5", subject="Science", chapter="Chapter 1"))
    result = resolver.resolve_selection(board="CBSE", class_level="5", subject="Science", chapter="Chapter 1")

    assert result.board.id == path.board.id
    assert result.class_level.id == path.class_level.id
    assert result.subject.id == path.subject.id
    assert result.subject.via == "board+class+name"
    assert result.chapter.id == path.chapter.id
    assert result.chapter.via == "subject+title"


def test_resolve_selection_relaxes_subject_scope(resolver):
    path = resolver.ensure_path(HierarchyNames(board="CBSE", class_level="5", subject="Science"))
    # Class 7 does not exist, so the subject is found by board + name
    result = resolver.resolve_selection(board="CBSE", class_level="7", subject="Science")
    assert result.class_level.via == "subject.class_id"
    assert result.subject.id == path.subject.id
    assert result.subject.via == "board+name"


def test_parents_backfilled_from_chapter(resolver):
    path = resolver.ensure_path(HierarchyNames(board="ICSE", class_level="8", subject="Maths", chapter="Fractions"))
    result = resolver.resolve_selection(chapter="Fractions")

    assert result.chapter.id == path.chapter.id
    assert result.subject.id == path.subject.id
    assert result.subject.via == "chapter.subject_id"
    assert result.class_level.id == path.class_level.id
    assert result.board.id == path.board.id


def test_unknown_names_stay_unresolved(resolver):
    result = resolver.resolve_selection(board="Nowhere", subject="Alchemy")
    assert result.board.status is ResolutionStatus.NO_MATCH
    assert result.subject.status is ResolutionStatus.NO_MATCH
    assert result.board.id is None


def test_lookup_errors_are_recorded_not_raised(resolver, curriculum_repo, monkeypatch):
    path = resolver.ensure_path(HierarchyNames(board="CBSE", subject="Science", chapter="Chapter 2"))

    def broken(*args, **kwargs):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(curriculum_repo, "find_chapter", broken)
    result = resolver.resolve_selection(board="CBSE", subject="Science", chapter="Chapter 2")

    assert result.chapter.status is ResolutionStatus.ERROR
    assert "store unavailable" in result.chapter.error
    assert result.chapter.id is None
    assert result.board.id == path.board.id
    assert result.subject.id == path.subject.id


def test_subject_under_another_board_is_not_matched(resolver, curriculum_repo):
    resolver.ensure_path(HierarchyNames(board="ICSE", class_level="5", subject="Science", chapter="Chapter 1"))
    cbse = curriculum_repo.get_or_create_board("CBSE")

    result = resolver.resolve_selection(board="CBSE", subject="Science")
    assert result.board.id == cbse.id
    assert result.subject.status is ResolutionStatus.NO_MATCH
    assert result.subject.id is None
    assert result.class_level.id is None


def test_subject_name_only_match_without_board(resolver):
    path = resolver.ensure_path(HierarchyNames(board="ICSE", class_level="5", subject="Science"))
    result = resolver.resolve_selection(subject="Science")
    assert result.subject.id == path.subject.id
    assert result.subject.via == "name"
    assert result.board.id == path.board.id


def test_chapter_under_another_subject_is_not_matched(resolver):
    resolver.ensure_path(HierarchyNames(board="CBSE", class_level="5", subject="Maths", chapter="Fractions"))
    science = resolver.ensure_path(HierarchyNames(board="CBSE", class_level="5", subject="Science"))

    result = resolver.resolve_selection(board="CBSE", class_level="5", subject="Science", chapter="Fractions")
    assert result.subject.id == science.subject.id
    assert result.chapter.status is ResolutionStatus.NO_MATCH
    assert result.chapter.id is None
