class QuizError(Exception):
    """Base class for quizrunner errors."""


class StorageUnavailable(QuizError):
    """The persistent store is unreachable or has not been opened."""


class QuestionSourceError(QuizError):
    """The question source could not be fetched or returned bad data."""


class EvaluationUnavailable(QuizError):
    """The remote grader failed or answered with an unusable payload."""


class QuestionNotFound(QuizError, LookupError):
    def __init__(self, question_id=None):
        self.question_id = question_id
        message = "Question not found"
        if question_id is not None:
            message = f"Question not found: {question_id}"
        super().__init__(message)
