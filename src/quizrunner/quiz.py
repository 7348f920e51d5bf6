import logging
import math
from typing import Any, Dict, List, Optional

from .answer_log import AnswerLog
from .config import Settings, settings as default_settings
from .errors import QuestionNotFound, QuestionSourceError, StorageUnavailable
from .evaluation import RemoteGrader, check_answer
from .models import (
    AnsweredQuestion,
    Evaluation,
    Question,
    QuizProgress,
    QuizState,
    UserAnswer,
    revise_question,
)
from .question_bank import QuestionBank
from .question_source import QuestionSource
from .store import Store

logger = logging.getLogger(__name__)

HINT_COUNT_KEY = "hintCount"


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class Quiz:
    """One quiz session over the durable question bank and answer log.

    The session keeps an in-memory snapshot of the questions and of every
    answer history, plus a cursor on the question being answered. It is not
    safe for concurrent mutation: callers must wait for ``submit_answer``,
    ``restart`` and friends to finish before calling them again.

    Typical use::

        quiz = Quiz(store, QuestionSource(url), RemoteGrader(endpoint))
        await quiz.init()
        evaluation = await quiz.submit_answer("SELECT")
        if evaluation.is_correct:
            quiz.move_to_next_question()
        progress = quiz.get_quiz_progress()
    """

    def __init__(
        self,
        store: Store,
        source: QuestionSource,
        grader: Optional[RemoteGrader] = None,
    ):
        self.store = store
        self.source = source
        self.grader = grader
        self.bank = QuestionBank(store)
        self.answer_log = AnswerLog(store)
        self.questions: List[Question] = []
        self.user_answers: Dict[int, List[UserAnswer]] = {}
        self.current_question_index = 0
        self.hint_count = 0
        self.is_completed = False
        self.is_loaded = False

    @classmethod
    def from_settings(cls, store: Store, config: Optional[Settings] = None) -> "Quiz":
        """Build a session wired to the configured question source and grader."""
        config = config or default_settings
        source = QuestionSource(config.QUESTIONS_URL, timeout=config.HTTP_TIMEOUT)
        grader = None
        if config.EVALUATION_API:
            grader = RemoteGrader(config.EVALUATION_API, timeout=config.HTTP_TIMEOUT)
        return cls(store, source, grader)

    @property
    def state(self) -> QuizState:
        if not self.is_loaded:
            return QuizState.LOADING
        if self.is_completed:
            return QuizState.COMPLETED
        return QuizState.IN_PROGRESS

    # --- Lifecycle ---
    async def init(self) -> List[AnsweredQuestion]:
        """Load questions and answers and place the cursor where the user left off."""
        await self.load_questions()
        self.hint_count = int(await self.store.get_value(HINT_COUNT_KEY, 0))
        await self.load_answers()
        self.current_question_index = self._resume_index()
        self.is_completed = self.check_quiz_completion()
        self.is_loaded = True
        logger.info(
            f"Quiz ready [questions: {len(self.questions)}, "
            f"answered: {len(self.user_answers)}, cursor: {self.current_question_index}]"
        )
        return self.get_answered_questions()

    async def load_questions(self) -> None:
        try:
            remote_questions = await self.source.fetch()
            self.questions = await self.bank.sync(remote_questions)
        except QuestionSourceError as e:
            logger.warning(f"Using local questions, sync failed: {e}")
            self.questions = await self.bank.get_all()

    async def load_answers(self) -> None:
        self.user_answers = {}
        for answer in await self.answer_log.get_all():
            self.user_answers.setdefault(answer.question_id, []).append(answer)

    def _resume_index(self) -> int:
        index = next(
            (i for i, q in enumerate(self.questions) if q.id not in self.user_answers),
            len(self.questions),
        )
        # Stay on the previous question when its latest answer was wrong
        if index > 0:
            latest = self.get_latest_user_answer(self.questions[index - 1].id)
            if latest is not None and not latest.is_correct:
                index -= 1
        return index

    async def restart(self) -> None:
        logger.info("Restarting quiz")
        await self.answer_log.clear_all()
        await self.store.set_value(HINT_COUNT_KEY, 0)
        self.user_answers = {}
        self.current_question_index = 0
        self.hint_count = 0
        self.is_completed = False

    # --- Navigation ---
    def get_current_question(self) -> Optional[Question]:
        if 0 <= self.current_question_index < len(self.questions):
            return self.questions[self.current_question_index]
        return None

    def has_next_question(self) -> bool:
        return self.current_question_index < len(self.questions) - 1

    def move_to_next_question(self) -> bool:
        if self.has_next_question():
            self.current_question_index += 1
            logger.debug(f"Moved to question index {self.current_question_index}")
            return True
        return False

    def find_question(self, question_id: int) -> Optional[Question]:
        return next((q for q in self.questions if q.id == question_id), None)

    # --- Answers ---
    async def submit_answer(
        self, answer_text: str, question_id: Optional[int] = None
    ) -> Evaluation:
        if question_id is not None:
            question = self.find_question(question_id)
        else:
            question = self.get_current_question()
        if question is None:
            raise QuestionNotFound(question_id)

        evaluation = await check_answer(question, answer_text, self.grader)
        logger.info(
            f"Answer submitted [question: {question.id}, correct: {evaluation.is_correct}, "
            f"grade: {evaluation.grade}]"
        )

        user_answer = UserAnswer(
            question_id=question.id,
            answer=answer_text,
            is_correct=evaluation.is_correct,
            grade=evaluation.grade,
            next_hint=evaluation.next_hint,
            full_evaluation=evaluation.full_evaluation,
            confidence_score=evaluation.confidence_score,
        )
        self.user_answers.setdefault(question.id, []).append(user_answer)

        try:
            await self.answer_log.append(question.id, user_answer)
        except StorageUnavailable as e:
            logger.error(f"Failed to save answer for question {question.id}: {e}")
        return evaluation

    def get_latest_user_answer(self, question_id: int) -> Optional[UserAnswer]:
        answers = self.user_answers.get(question_id)
        return answers[-1] if answers else None

    async def get_answer_history(self, question_id: int) -> List[UserAnswer]:
        return await self.answer_log.get_all_by_question(question_id)

    def get_answered_questions(self) -> List[AnsweredQuestion]:
        answered = []
        for question in self.questions:
            latest = self.get_latest_user_answer(question.id)
            if latest is None:
                continue
            answered.append(
                AnsweredQuestion(
                    **question.model_dump(),
                    user_answer=latest.answer,
                    is_correct=latest.is_correct,
                )
            )
        answered.sort(key=lambda q: q.id)
        return answered

    # --- Hints ---
    async def increment_hint_count(self) -> int:
        count = self.hint_count + 1
        await self.store.set_value(HINT_COUNT_KEY, count)
        self.hint_count = count
        return count

    def get_hint_count(self) -> int:
        return self.hint_count

    # --- Questions ---
    async def update_question(self, question_id: int, patch: Dict[str, Any]) -> Question:
        question = self.find_question(question_id)
        if question is None:
            raise QuestionNotFound(question_id)
        revised = revise_question(question, patch)
        await self.bank.update(revised)
        self.questions[self.questions.index(question)] = revised
        logger.info(f"Question {question_id} updated to version {revised.version}")
        return revised

    # --- Completion & scoring ---
    def check_quiz_completion(self) -> bool:
        if not self.questions:
            return False
        return (
            self.current_question_index >= len(self.questions) - 1
            and self.questions[-1].id in self.user_answers
        )

    def complete_quiz(self) -> None:
        self.is_completed = True

    def is_quiz_completed(self) -> bool:
        return self.is_completed

    def get_quiz_progress(self) -> QuizProgress:
        total_questions = len(self.questions)
        total_score = 0.0
        correct_answers = 0

        for question in self.questions:
            latest = self.get_latest_user_answer(question.id)
            if latest is None:
                continue
            if latest.grade is not None:
                grade = latest.grade
            else:
                grade = 10 if latest.is_correct else 0
            total_score += max(0.0, grade / 10)
            if latest.is_correct:
                correct_answers += 1

        hint_penalty = min(correct_answers * 0.2, self.hint_count * 0.1)
        overall_score = 0
        if total_questions > 0:
            overall_score = _round_half_up(
                (total_score - hint_penalty) / total_questions * 100
            )

        return QuizProgress(
            current_question_index=self.current_question_index,
            total_questions=total_questions,
            answered_questions=len(self.user_answers),
            correct_answers=correct_answers,
            total_score=total_score,
            max_possible_score=total_questions,
            hint_penalty=hint_penalty,
            overall_score=overall_score,
            hint_count=self.hint_count,
        )
