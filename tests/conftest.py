import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from quizrunner.models import Question
from quizrunner.store import Store


class FakeRedis:
    """In-memory stand-in for the handful of async redis commands the store uses."""

    def __init__(self):
        self.hashes = {}
        self.values = {}
        self.fail = False
        self.closed = False

    def _check(self):
        if self.fail:
            raise RedisConnectionError("connection refused")

    async def ping(self):
        self._check()
        return True

    async def aclose(self):
        self.closed = True

    async def hset(self, name, key, value):
        self._check()
        self.hashes.setdefault(name, {})[key] = value
        return 1

    async def hget(self, name, key):
        self._check()
        return self.hashes.get(name, {}).get(key)

    async def hgetall(self, name):
        self._check()
        return dict(self.hashes.get(name, {}))

    async def hdel(self, name, key):
        self._check()
        return 1 if self.hashes.get(name, {}).pop(key, None) is not None else 0

    async def delete(self, name):
        self._check()
        removed = self.hashes.pop(name, None) is not None
        removed = self.values.pop(name, None) is not None or removed
        return int(removed)

    async def get(self, name):
        self._check()
        return self.values.get(name)

    async def set(self, name, value):
        self._check()
        self.values[name] = value
        return True


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def redis_client():
    return FakeRedis()


@pytest.fixture
async def store(redis_client):
    store = Store(redis_client, prefix="test")
    await store.open()
    yield store
    await store.close()


def make_objective(id=1, version=1, expected="WHERE", **extra):
    return Question(
        id=id,
        question=f"Objective question {id}",
        type="objective",
        version=version,
        options=["WHERE", "HAVING", "GROUP BY"],
        expected_answer=expected,
        **extra,
    )


def make_subjective(id=6, version=1, keywords=None, min_keywords=6, max_length=500, **extra):
    return Question(
        id=id,
        question=f"Subjective question {id}",
        type="subjective",
        version=version,
        keywords=keywords if keywords is not None else [
            "atomicity", "consistency", "isolation", "durability",
            "transaction", "commit", "rollback",
        ],
        min_keywords=min_keywords,
        max_length=max_length,
        **extra,
    )
