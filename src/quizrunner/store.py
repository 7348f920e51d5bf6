import json
import logging
from typing import Any, Dict, List, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from .errors import StorageUnavailable

logger = logging.getLogger(__name__)

QUESTIONS = "questions"
ANSWERS = "answers"


class Store:
    """Key-value persistence for the quiz, backed by redis.

    Every collection lives in one redis hash named ``<prefix>:<collection>``.
    Items are JSON objects; the hash field is the item's primary key. Scalars
    live in plain keys under ``<prefix>:value:<name>``.
    """

    collections: Dict[str, str] = {QUESTIONS: "id", ANSWERS: "questionId"}

    def __init__(self, client: Any, prefix: str = "quizrunner"):
        self.client = client
        self.prefix = prefix
        self.is_open = False

    @classmethod
    def from_url(cls, url: str, prefix: str = "quizrunner") -> "Store":
        return cls(redis.from_url(url, decode_responses=True), prefix=prefix)

    async def open(self) -> None:
        try:
            await self.client.ping()
        except RedisError as e:
            raise StorageUnavailable(f"Cannot reach store: {e}") from e
        self.is_open = True
        logger.info(f"Store opened [prefix: {self.prefix}]")

    async def close(self) -> None:
        if not self.is_open:
            return
        self.is_open = False
        await self.client.aclose()
        logger.info("Store closed")

    async def __aenter__(self) -> "Store":
        await self.open()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # --- Collections ---
    async def save(self, collection: str, item: Dict[str, Any]) -> None:
        self._ensure_open()
        key_field = self._key_field(collection)
        if key_field not in item:
            raise ValueError(f"Item for {collection} is missing '{key_field}'")
        await self._run(
            self.client.hset(
                self._hash(collection), str(item[key_field]), json.dumps(item)
            )
        )

    async def get_all(self, collection: str) -> List[Dict[str, Any]]:
        self._ensure_open()
        key_field = self._key_field(collection)
        raw = await self._run(self.client.hgetall(self._hash(collection)))
        items = [json.loads(value) for value in raw.values()]
        items.sort(key=lambda item: item[key_field])
        return items

    async def get_by_id(self, collection: str, key: Any) -> Optional[Dict[str, Any]]:
        self._ensure_open()
        self._key_field(collection)
        raw = await self._run(self.client.hget(self._hash(collection), str(key)))
        return json.loads(raw) if raw is not None else None

    async def delete_by_id(self, collection: str, key: Any) -> None:
        self._ensure_open()
        self._key_field(collection)
        await self._run(self.client.hdel(self._hash(collection), str(key)))

    async def clear(self, collection: str) -> None:
        self._ensure_open()
        self._key_field(collection)
        await self._run(self.client.delete(self._hash(collection)))

    # --- Scalars ---
    async def get_value(self, name: str, default: Any = None) -> Any:
        self._ensure_open()
        raw = await self._run(self.client.get(self._value_key(name)))
        return json.loads(raw) if raw is not None else default

    async def set_value(self, name: str, value: Any) -> None:
        self._ensure_open()
        await self._run(self.client.set(self._value_key(name), json.dumps(value)))

    # --- Helpers ---
    def _key_field(self, collection: str) -> str:
        try:
            return self.collections[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}") from None

    def _hash(self, collection: str) -> str:
        return f"{self.prefix}:{collection}"

    def _value_key(self, name: str) -> str:
        return f"{self.prefix}:value:{name}"

    def _ensure_open(self) -> None:
        if not self.is_open:
            raise StorageUnavailable("Store is not open")

    async def _run(self, command):
        try:
            return await command
        except RedisError as e:
            raise StorageUnavailable(f"Store operation failed: {e}") from e
