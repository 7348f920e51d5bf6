import logging
from typing import Iterable, List, Optional

from .models import Question
from .store import QUESTIONS, Store

logger = logging.getLogger(__name__)


# --- Service Layer: Question Bank ---
class QuestionBank:
    """Versioned question records kept in the store."""

    def __init__(self, store: Store):
        self.store = store

    async def get_all(self) -> List[Question]:
        records = await self.store.get_all(QUESTIONS)
        return [Question.model_validate(record) for record in records]

    async def get_by_id(self, question_id: int) -> Optional[Question]:
        record = await self.store.get_by_id(QUESTIONS, question_id)
        return Question.model_validate(record) if record else None

    async def update(self, question: Question) -> None:
        """Upsert one question as given. Bumping the version is up to the caller."""
        await self.store.save(QUESTIONS, question.to_record())

    async def delete_by_id(self, question_id: int) -> None:
        await self.store.delete_by_id(QUESTIONS, question_id)

    async def sync(self, remote_questions: Iterable[Question]) -> List[Question]:
        """Merge remote questions into the bank and return the merged set.

        A remote question replaces the local copy only when its version is
        strictly greater. Missing local questions count as version 0.
        """
        local_versions = {q.id: q.version for q in await self.get_all()}
        updated = 0
        for remote in remote_questions:
            if remote.version > local_versions.get(remote.id, 0):
                await self.update(remote)
                local_versions[remote.id] = remote.version
                updated += 1
        logger.info(f"Question bank synced: {updated} updated")
        return await self.get_all()

    async def force_refresh(self, remote_questions: Iterable[Question]) -> List[Question]:
        """Replace the whole bank with the remote questions, ignoring versions."""
        await self.store.clear(QUESTIONS)
        for question in remote_questions:
            await self.update(question)
        logger.info("Question bank refreshed from remote")
        return await self.get_all()
