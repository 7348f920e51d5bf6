import os
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _as_optional_float(value: str) -> Optional[float]:
    return float(value) if value.strip() else None


class Settings:
    PROJECT_NAME: str = "quizrunner"
    DEBUG: bool = _as_bool(os.getenv("DEBUG", "false"))
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_DIR: str = os.getenv("LOG_DIR", "log")
    LOG_FILE: str = os.getenv("LOG_FILE", "quizrunner.log")
    LOG_TO_FILE: bool = _as_bool(os.getenv("LOG_TO_FILE", "false"))
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    STORE_PREFIX: str = os.getenv("STORE_PREFIX", "quizrunner")
    QUESTIONS_URL: str = os.getenv("QUESTIONS_URL", "data/questions.json")
    EVALUATION_API: str = os.getenv("EVALUATION_API", "http://localhost:8000/evaluate")
    # No timeout unless configured
    HTTP_TIMEOUT: Optional[float] = _as_optional_float(os.getenv("HTTP_TIMEOUT", ""))
    OPENAI_API_KEY: Optional[str] = os.getenv("OPENAI_API_KEY")
    EVALUATION_MODEL: str = os.getenv("EVALUATION_MODEL", "gpt-4o-mini")
    ANSWER_MODEL: str = os.getenv("ANSWER_MODEL", "gpt-4o-mini")
    API_SERVER_PORT: int = int(os.getenv("API_SERVER_PORT", "8000"))
    ALLOWED_ORIGINS: List[str] = [
        origin.strip()
        for origin in os.getenv("ALLOWED_ORIGINS", "").split(",")
        if origin.strip()
    ]

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT != "production"


settings = Settings()
