import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx
from pydantic import ValidationError

from .errors import EvaluationUnavailable
from .models import CamelModel, Evaluation, Question

logger = logging.getLogger(__name__)


class RemoteEvaluation(CamelModel):
    """Payload returned by the evaluation endpoint."""

    is_correct: bool
    grade: Optional[int] = None
    next_hint: Optional[str] = None
    full_evaluation: Optional[str] = None


class RemoteGrader:
    """Client for the ``POST /evaluate`` endpoint."""

    def __init__(
        self,
        endpoint: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        self.endpoint = endpoint
        self.client = client
        self.timeout = timeout

    async def grade(self, question_text: str, answer: str) -> Evaluation:
        payload = {"question": question_text, "answer": answer}
        try:
            if self.client is not None:
                response = await self.client.post(self.endpoint, json=payload)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.endpoint, json=payload)
            response.raise_for_status()
            result = RemoteEvaluation.model_validate(response.json())
        except (httpx.HTTPError, ValueError, ValidationError) as e:
            raise EvaluationUnavailable(f"Remote evaluation failed: {e}") from e

        grade = result.grade
        if grade is not None:
            grade = min(max(grade, 0), 10)
        return Evaluation(
            is_correct=result.is_correct,
            grade=grade,
            next_hint=result.next_hint,
            full_evaluation=result.full_evaluation,
        )


def local_evaluate(question: Question, answer: str) -> Evaluation:
    """Keyword heuristic for subjective answers.

    A ``max_length`` of 0 means unbounded and a ``min_keywords`` of 0 means 1.
    The confidence is ``matched / (2 * len(keywords))``, so it stays at or below
    0.5 even when every keyword matches.
    """
    keywords = question.keywords
    min_keywords = question.min_keywords or 1
    max_length = question.max_length or None

    if max_length is not None and len(answer) > max_length:
        return Evaluation(is_correct=False, confidence_score=0.0)

    lowered = answer.lower()
    matched = [keyword for keyword in keywords if keyword.lower() in lowered]
    confidence = len(matched) / (2 * len(keywords)) if keywords else 0.0
    return Evaluation(is_correct=len(matched) >= min_keywords, confidence_score=confidence)


# --- Strategy Pattern: Answer Evaluators ---
class AnswerEvaluator(ABC):
    """Abstract Base Class for the grading strategy of a question type."""

    @abstractmethod
    async def evaluate(self, question: Question, answer: str) -> Evaluation:
        pass


class ObjectiveEvaluator(AnswerEvaluator):
    """Exact, case-insensitive match against the expected answer."""

    async def evaluate(self, question: Question, answer: str) -> Evaluation:
        is_correct = answer.strip().lower() == question.expected_answer.lower()
        return Evaluation(is_correct=is_correct, confidence_score=1.0)


class SubjectiveEvaluator(AnswerEvaluator):
    """Remote grading with the keyword heuristic as fallback."""

    def __init__(self, grader: Optional[RemoteGrader] = None):
        self.grader = grader

    async def evaluate(self, question: Question, answer: str) -> Evaluation:
        if self.grader is None:
            return local_evaluate(question, answer)
        try:
            return await self.grader.grade(question.text, answer)
        except EvaluationUnavailable as e:
            logger.warning(f"Falling back to local evaluation for question {question.id}: {e}")
            return local_evaluate(question, answer)


class EvaluatorFactory:
    """Factory to select the evaluator for a question type."""

    @staticmethod
    def create(
        question_type: str, grader: Optional[RemoteGrader] = None
    ) -> AnswerEvaluator:
        if question_type == "objective":
            return ObjectiveEvaluator()
        elif question_type == "subjective":
            return SubjectiveEvaluator(grader)
        raise ValueError(f"Unknown question type: {question_type}")


async def check_answer(
    question: Question, answer: str, grader: Optional[RemoteGrader] = None
) -> Evaluation:
    evaluator = EvaluatorFactory.create(question.type, grader)
    return await evaluator.evaluate(question, answer)
