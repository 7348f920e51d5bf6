from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

QuestionType = Literal["objective", "subjective"]


class CamelModel(BaseModel):
    """Serialized with camelCase keys, populated by either spelling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# --- Models ---
class Question(CamelModel):
    id: int
    text: str = Field(alias="question")
    type: QuestionType
    version: int = 1
    hints: List[str] = []
    labels: List[str] = []
    expected_answer: str = ""
    # objective
    options: List[str] = []
    # subjective
    keywords: List[str] = []
    min_keywords: int = 0
    max_length: int = 0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserAnswer(CamelModel):
    question_id: int
    answer: str
    is_correct: bool
    grade: Optional[int] = Field(default=None, ge=0, le=10)
    next_hint: Optional[str] = None
    full_evaluation: Optional[str] = None
    confidence_score: Optional[float] = None
    submitted_at: datetime = Field(default_factory=_utcnow)


class Evaluation(CamelModel):
    is_correct: bool
    confidence_score: Optional[float] = None
    grade: Optional[int] = None
    next_hint: Optional[str] = None
    full_evaluation: Optional[str] = None


class QuizState(str, Enum):
    LOADING = "loading"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class QuizProgress(CamelModel):
    current_question_index: int
    total_questions: int
    answered_questions: int
    correct_answers: int
    total_score: float
    max_possible_score: int
    hint_penalty: float
    overall_score: int
    hint_count: int


class AnsweredQuestion(Question):
    user_answer: str
    is_correct: bool


def revise_question(old: Question, patch: Dict[str, Any]) -> Question:
    """Return a copy of ``old`` with ``patch`` applied and the version bumped.

    ``patch`` may use attribute names or their serialized aliases. The id and
    type of a question never change, and any version in the patch is ignored.
    """
    data = old.model_dump()
    aliases = {
        field.alias: name
        for name, field in Question.model_fields.items()
        if field.alias
    }
    for key, value in patch.items():
        name = aliases.get(key, key)
        if name not in Question.model_fields:
            raise ValueError(f"Unknown question field: {key}")
        if name in ("id", "type") and value != data[name]:
            raise ValueError(f"Question {name} cannot be changed")
        if name == "version":
            continue
        data[name] = value
    data["version"] = old.version + 1
    return Question.model_validate(data)
