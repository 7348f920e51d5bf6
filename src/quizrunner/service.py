import logging
import re
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from openai import AsyncOpenAI
from pydantic import BaseModel

from .config import settings
from .log import configure_logging

logger = logging.getLogger(__name__)

EVALUATION_SYSTEM_PROMPT = (
    "You are an expert in data engineering tasked with evaluating answers "
    "to technical questions."
)
ANSWER_SYSTEM_PROMPT = (
    "You are an expert in data engineering, covering topics such as databases, "
    "SQL, statistics, probability, analytics, and data processing."
)

GRADE_PATTERN = re.compile(r"Grade: (\d+)")
CORRECT_PATTERN = re.compile(r"Correct: (Yes|No)")
HINT_PATTERN = re.compile(r"Hint: (.+)")


def build_evaluation_prompt(question: str, answer: str) -> str:
    return f"""As an expert in data engineering, please evaluate the following answer to the given question:

Question: {question}

Answer: {answer}

Please provide:
1. A grade from 1 to 10 (where 10 is the best).
2. An objective evaluation of whether the answer is correct or not.
3. A brief one-line hint to improve the answer.

Format your response as follows:
Grade: [Your grade]
Correct: [Yes/No]
Hint: [Your one-line hint]

Evaluation:"""


def build_answer_prompt(question: str) -> str:
    return (
        "As an expert in data engineering, please provide a subjective answer "
        f"to the following question:\n\nQuestion: {question}\n\nAnswer:"
    )


def parse_evaluation(evaluation: str) -> dict:
    """Pull grade, correctness and hint out of the model's reply."""
    grade_match = GRADE_PATTERN.search(evaluation)
    correct_match = CORRECT_PATTERN.search(evaluation)
    hint_match = HINT_PATTERN.search(evaluation)
    return {
        "grade": int(grade_match.group(1)) if grade_match else None,
        "isCorrect": correct_match.group(1) == "Yes" if correct_match else None,
        "nextHint": hint_match.group(1) if hint_match else None,
        "fullEvaluation": evaluation,
    }


# --- Language model ---
class LanguageModel:
    """Thin wrapper over the OpenAI chat completions API.

    The OpenAI client is built on first use, so a missing API key surfaces as
    an error from ``complete`` rather than when the wrapper is created.
    """

    def __init__(self, api_key: Optional[str] = None, client: Optional[AsyncOpenAI] = None):
        self.api_key = api_key
        self.client = client

    async def complete(self, model: str, system: str, prompt: str) -> str:
        if self.client is None:
            self.client = AsyncOpenAI(api_key=self.api_key)
        response = await self.client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
        )
        return response.choices[0].message.content or ""


@lru_cache
def get_language_model() -> LanguageModel:
    return LanguageModel(api_key=settings.OPENAI_API_KEY)


# --- Models ---
class EvaluateRequest(BaseModel):
    question: Optional[str] = None
    answer: Optional[str] = None


class AskRequest(BaseModel):
    question: Optional[str] = None


# --- Lifecycle ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info(f"{settings.PROJECT_NAME} evaluation service starting")
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.is_development else settings.ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def invalid_body_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Rejected request to {request.url.path}: {exc.errors()}")
    return JSONResponse({"error": "Request body must be a JSON object"}, status_code=400)


# --- Routes ---
@app.get("/", response_class=PlainTextResponse)
async def index():
    return "Quiz API Server is running"


@app.post("/evaluate")
async def evaluate(
    payload: EvaluateRequest,
    model: LanguageModel = Depends(get_language_model),
):
    if not payload.question or not payload.answer:
        return JSONResponse(
            {"error": "Both question and answer must be provided"}, status_code=400
        )

    logger.info(f"Evaluating answer for: {payload.question}")
    try:
        evaluation = await model.complete(
            settings.EVALUATION_MODEL,
            EVALUATION_SYSTEM_PROMPT,
            build_evaluation_prompt(payload.question, payload.answer),
        )
    except Exception as e:
        logger.error(f"Error evaluating answer: {e}")
        return JSONResponse(
            {"error": "An error occurred while evaluating the answer"}, status_code=500
        )

    return {
        **parse_evaluation(evaluation),
        "question": payload.question,
        "answer": payload.answer,
    }


@app.post("/ask")
async def ask(
    payload: AskRequest,
    model: LanguageModel = Depends(get_language_model),
):
    if not payload.question:
        return JSONResponse({"error": "No question provided"}, status_code=400)

    try:
        answer = await model.complete(
            settings.ANSWER_MODEL,
            ANSWER_SYSTEM_PROMPT,
            build_answer_prompt(payload.question),
        )
    except Exception as e:
        logger.error(f"Error generating answer: {e}")
        return JSONResponse(
            {"error": "An error occurred while processing the question"},
            status_code=500,
        )
    return {"question": payload.question, "answer": answer}


def run():
    uvicorn.run(
        "quizrunner.service:app",
        host="0.0.0.0",
        port=settings.API_SERVER_PORT,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    run()
