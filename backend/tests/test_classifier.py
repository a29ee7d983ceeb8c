"""Concept classification tests."""
import pytest

from curriculum_api.domain.curriculum.classifier import classify
from curriculum_api.domain.curriculum.models import (
    FillInTheBlankItem,
    ItemKind,
    MultipleChoiceItem,
    RearrangeItem,
    Rejected,
    StatementItem,
)


def test_declared_statement():
    result = classify({"type": "Statement", "text": "Plants make food."})
    assert result.kind is ItemKind.STATEMENT
    assert result.payload == StatementItem(text="Plants make food.")


def test_untyped_text_is_statement():
    result = classify({"content": "Water boils at 100 C."})
    assert result.payload == StatementItem(text="Water boils at 100 C.")


def test_options_and_question_win_over_garbled_type():
    result = classify({"type": "qustion??", "question": "Capital of India?", "options": ["Delhi", "", "Pune"], "answer": "Delhi"})
    assert isinstance(result.payload, MultipleChoiceItem)
    assert result.payload.options == ["Delhi", "Pune"]
    assert result.payload.answer == "Delhi"


def test_mcq_alias():
    result = classify({"type": "MCQ", "question": "Pick one", "options": ["a", "b"]})
    assert result.kind is ItemKind.MULTIPLE_CHOICE
    assert result.payload.answer is None


@pytest.mark.parametrize("alias", ["fill-in-the-blank", "fillups", "fill-in", "fib", "blank"])
def test_fill_in_the_blank_aliases(alias):
    result = classify({"type": alias, "question": "The sun is a ___.", "answer": "star"})
    assert result.payload == FillInTheBlankItem(question="The sun is a ___.", answer="star")


def test_question_with_answer_infers_fill_in_the_blank():
    result = classify({"question": "2 + 2 = ___", "answer": 4})
    assert result.payload == FillInTheBlankItem(question="2 + 2 = ___", answer="4")


def test_words_infer_rearrange_and_list_answer_is_joined():
    result = classify({"question": "Order the words", "words": ["is", "Sky", "blue"], "answer": ["Sky", "is", "blue"]})
    assert isinstance(result.payload, RearrangeItem)
    assert result.payload.words == ["is", "Sky", "blue"]
    assert result.payload.answer == "Sky is blue"


def test_declared_rearrange_falls_back_to_options():
    result = classify({"type": "rearrange", "question": "Order", "options": ["b", "a"]})
    # An options list plus a question reads as multiple choice first
    assert result.kind is ItemKind.MULTIPLE_CHOICE

    result = classify({"type": "rearrange", "options": ["b", "a"]})
    assert result.payload == RearrangeItem(question="", words=["b", "a"], answer=None)


def test_concept_without_any_known_field_still_yields_one_item():
    result = classify({"foo": "bar"})
    assert isinstance(result.payload, StatementItem)
    assert "foo" in result.payload.text


def test_empty_mapping_yields_statement():
    result = classify({})
    assert result.payload == StatementItem(text="{}")


def test_non_mapping_inputs():
    assert isinstance(classify(None), Rejected)
    assert isinstance(classify("   "), Rejected)
    assert classify("Just text").payload == StatementItem(text="Just text")
    assert classify(42).payload == StatementItem(text="42")


def test_media_aliases():
    result = classify({"text": "Look", "image": "a.png", "images": ["b.png", "", None, "c.png"]})
    assert result.media.image_url == "a.png"
    assert result.media.images == ["b.png", "c.png"]

    result = classify({"text": "Look", "imageUrl": "x.png", "image": "a.png"})
    assert result.media.image_url == "x.png"
