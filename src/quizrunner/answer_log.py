import logging
from typing import List

from .models import UserAnswer
from .store import ANSWERS, Store

logger = logging.getLogger(__name__)


class AnswerLog:
    """Per-question answer history.

    The store keeps one record per question, ``{"questionId": ..., "answers":
    [...]}``, and ``append`` rewrites that whole record. Two concurrent appends
    for the same question can therefore lose one of the answers; callers must
    not submit in parallel.
    """

    def __init__(self, store: Store):
        self.store = store

    async def append(self, question_id: int, answer: UserAnswer) -> None:
        record = await self.store.get_by_id(ANSWERS, question_id) or {
            "questionId": question_id,
            "answers": [],
        }
        record["answers"].append(answer.to_record())
        await self.store.save(ANSWERS, record)

    async def get_all_by_question(self, question_id: int) -> List[UserAnswer]:
        record = await self.store.get_by_id(ANSWERS, question_id)
        if not record:
            return []
        return [UserAnswer.model_validate(a) for a in record["answers"]]

    async def get_all(self) -> List[UserAnswer]:
        records = await self.store.get_all(ANSWERS)
        return [
            UserAnswer.model_validate(a)
            for record in records
            for a in record["answers"]
        ]

    async def clear_all(self) -> None:
        await self.store.clear(ANSWERS)
        logger.info("Answer log cleared")
