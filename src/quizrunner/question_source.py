import json
import logging
import os
from typing import Any, Dict, List, Optional

import httpx
import pandas as pd
from pydantic import ValidationError

from .errors import QuestionSourceError
from .models import Question

logger = logging.getLogger(__name__)

LIST_COLUMNS = ("hints", "labels", "options", "keywords")
LIST_SEPARATOR = "|"


# --- Service Layer: Question Source ---
class QuestionSource:
    """Fetches the authoritative question list.

    ``location`` is either an http(s) URL returning a JSON array of questions,
    or a path to a local ``.json`` or ``.csv`` file. In CSV files the list
    columns (hints, labels, options, keywords) are ``|``-separated.
    """

    def __init__(
        self,
        location: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        self.location = location
        self.client = client
        self.timeout = timeout

    @property
    def is_remote(self) -> bool:
        return self.location.startswith(("http://", "https://"))

    async def fetch(self) -> List[Question]:
        if self.is_remote:
            records = await self._fetch_remote()
        else:
            records = self._read_file()

        try:
            questions = [Question.model_validate(record) for record in records]
        except ValidationError as e:
            raise QuestionSourceError(f"Malformed question data: {e}") from e
        logger.info(f"Fetched {len(questions)} questions from {self.location}")
        return questions

    async def _fetch_remote(self) -> List[Dict[str, Any]]:
        try:
            if self.client is not None:
                response = await self.client.get(self.location)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(self.location)
            response.raise_for_status()
            records = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise QuestionSourceError(
                f"Failed to fetch questions from {self.location}: {e}"
            ) from e
        if not isinstance(records, list):
            raise QuestionSourceError("Question source did not return a list")
        return records

    def _read_file(self) -> List[Dict[str, Any]]:
        extension = os.path.splitext(self.location)[1].lower()
        try:
            if extension == ".csv":
                df = pd.read_csv(self.location, encoding="utf-8", dtype=str)
            elif extension == ".json":
                df = pd.read_json(
                    self.location, orient="records", dtype=False, convert_dates=False
                )
            else:
                raise QuestionSourceError(f"Unsupported question file: {self.location}")
        except (OSError, ValueError) as e:
            raise QuestionSourceError(f"Failed to load {self.location}: {e}") from e

        # Round-trip through JSON to get native types and None for gaps
        rows = json.loads(df.to_json(orient="records"))
        records = []
        for row in rows:
            record = {key: value for key, value in row.items() if value is not None}
            if extension == ".csv":
                for column in LIST_COLUMNS:
                    if isinstance(record.get(column), str):
                        record[column] = [
                            part.strip()
                            for part in record[column].split(LIST_SEPARATOR)
                            if part.strip()
                        ]
            records.append(record)
        return records
