import pytest

from conftest import make_objective, make_subjective
from quizrunner.models import Question, UserAnswer, revise_question


def test_question_reads_camel_case_records():
    question = Question.model_validate(
        {
            "id": 6,
            "question": "Explain ACID",
            "type": "subjective",
            "keywords": ["atomicity"],
            "minKeywords": 1,
            "maxLength": 200,
            "expectedAnswer": "reference",
        }
    )

    assert question.text == "Explain ACID"
    assert question.min_keywords == 1
    assert question.max_length == 200
    assert question.version == 1
    assert question.to_record()["expectedAnswer"] == "reference"


def test_user_answer_record_uses_camel_case():
    record = UserAnswer(question_id=1, answer="where", is_correct=True).to_record()

    assert record["questionId"] == 1
    assert record["isCorrect"] is True
    assert record["grade"] is None
    assert "submittedAt" in record


def test_revise_question_bumps_version():
    old = make_objective(version=3)

    revised = revise_question(old, {"expectedAnswer": "HAVING", "hints": ["groups"]})

    assert revised.version == 4
    assert revised.expected_answer == "HAVING"
    assert revised.hints == ["groups"]
    assert old.version == 3
    assert old.expected_answer == "WHERE"


def test_revise_question_ignores_patched_version():
    revised = revise_question(make_objective(version=2), {"version": 99})

    assert revised.version == 3


@pytest.mark.parametrize("patch", [{"id": 2}, {"type": "objective"}, {"colour": "red"}])
def test_revise_question_rejects_identity_changes(patch):
    with pytest.raises(ValueError):
        revise_question(make_subjective(), patch)
