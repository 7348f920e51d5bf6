import pytest

from quizrunner.errors import StorageUnavailable
from quizrunner.store import ANSWERS, QUESTIONS, Store

pytestmark = pytest.mark.anyio


async def test_save_upserts_by_primary_key(store):
    await store.save(QUESTIONS, {"id": 1, "question": "a"})
    await store.save(QUESTIONS, {"id": 1, "question": "b"})

    assert await store.get_all(QUESTIONS) == [{"id": 1, "question": "b"}]
    assert await store.get_by_id(QUESTIONS, 1) == {"id": 1, "question": "b"}


async def test_get_all_is_ordered_by_key(store):
    for question_id in (10, 2, 7):
        await store.save(QUESTIONS, {"id": question_id})

    assert [item["id"] for item in await store.get_all(QUESTIONS)] == [2, 7, 10]


async def test_collections_are_separate(store):
    await store.save(QUESTIONS, {"id": 1})
    await store.save(ANSWERS, {"questionId": 1, "answers": []})

    await store.clear(ANSWERS)

    assert await store.get_all(ANSWERS) == []
    assert await store.get_all(QUESTIONS) == [{"id": 1}]


async def test_delete_and_missing_lookup(store):
    await store.save(QUESTIONS, {"id": 3})
    await store.delete_by_id(QUESTIONS, 3)

    assert await store.get_by_id(QUESTIONS, 3) is None


async def test_scalar_values(store):
    assert await store.get_value("hintCount", 0) == 0
    await store.set_value("hintCount", 4)
    assert await store.get_value("hintCount", 0) == 4


async def test_missing_key_field_and_unknown_collection(store):
    with pytest.raises(ValueError):
        await store.save(QUESTIONS, {"question": "no id"})
    with pytest.raises(ValueError):
        await store.get_all("sessions")


async def test_unopened_store_is_unavailable(redis_client):
    store = Store(redis_client)
    with pytest.raises(StorageUnavailable):
        await store.get_all(QUESTIONS)


async def test_redis_errors_become_storage_unavailable(store, redis_client):
    redis_client.fail = True
    with pytest.raises(StorageUnavailable):
        await store.save(QUESTIONS, {"id": 1})


async def test_open_fails_when_server_unreachable(redis_client):
    redis_client.fail = True
    with pytest.raises(StorageUnavailable):
        await Store(redis_client).open()


async def test_close_releases_client(redis_client):
    async with Store(redis_client) as store:
        assert store.is_open
    assert redis_client.closed
    with pytest.raises(StorageUnavailable):
        await store.get_value("hintCount")
