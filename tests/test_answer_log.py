import pytest

from quizrunner.answer_log import AnswerLog
from quizrunner.models import UserAnswer
from quizrunner.store import ANSWERS

pytestmark = pytest.mark.anyio


def answer(question_id, text, is_correct=False):
    return UserAnswer(question_id=question_id, answer=text, is_correct=is_correct)


async def test_append_grows_history_by_one(store):
    log = AnswerLog(store)

    await log.append(1, answer(1, "first"))
    await log.append(1, answer(1, "second", True))

    history = await log.get_all_by_question(1)
    assert [a.answer for a in history] == ["first", "second"]
    assert history[-1].is_correct


async def test_history_is_one_record_per_question(store):
    log = AnswerLog(store)
    await log.append(3, answer(3, "a"))
    await log.append(3, answer(3, "b"))

    records = await store.get_all(ANSWERS)

    assert len(records) == 1
    assert records[0]["questionId"] == 3
    assert len(records[0]["answers"]) == 2


async def test_get_all_flattens_histories(store):
    log = AnswerLog(store)
    await log.append(2, answer(2, "x"))
    await log.append(1, answer(1, "y"))
    await log.append(2, answer(2, "z"))

    assert [(a.question_id, a.answer) for a in await log.get_all()] == [
        (1, "y"),
        (2, "x"),
        (2, "z"),
    ]


async def test_unanswered_question_has_empty_history(store):
    assert await AnswerLog(store).get_all_by_question(5) == []


async def test_clear_all(store):
    log = AnswerLog(store)
    await log.append(1, answer(1, "x"))

    await log.clear_all()

    assert await log.get_all() == []
