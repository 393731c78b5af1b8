import threading

import pytest

from app.db import create_session_factory
from app.schemas.chat_message import ChatMessageCreate
from app.schemas.url import UrlCreate
from app.storage.database import DatabaseStorage


@pytest.fixture
def storage(database_storage):
    return database_storage


def test_initialize_seeds_demo_user_once(session_factory, hash_password):
    storage = DatabaseStorage(session_factory, password_hasher=hash_password)
    storage.initialize()
    storage.initialize()

    stats = storage.get_all_users_with_stats()
    assert [s.user.username for s in stats] == ["alex"]
    assert stats[0].user.password == hash_password("password")


def test_initialize_without_hasher_does_not_seed(session_factory):
    storage = DatabaseStorage(session_factory)
    storage.initialize()
    assert storage.get_user_by_username("alex") is None


def test_data_survives_a_new_backend_instance(tmp_path, hash_password):
    url = f"sqlite:///{tmp_path / 'durable.db'}"
    first = DatabaseStorage(create_session_factory(url), password_hasher=hash_password)
    first.initialize()
    alex = first.get_user_by_username("alex")
    first.create_url(alex.id, UrlCreate(url="https://example.com"))
    first.update_user_context(alex.id, {"theme": "dark"})

    second = DatabaseStorage(create_session_factory(url), password_hasher=hash_password)
    second.initialize()
    assert len(second.get_all_users_with_stats()) == 1
    assert [u.url for u in second.get_urls(alex.id)] == ["https://example.com"]
    assert second.get_user_context(alex.id).version == 1
    assert second.update_user_context(alex.id, {"theme": "light"}).version == 2


def test_profiles_are_isolated(storage, setup_user):
    storage.create_context_url(setup_user.id, 1, UrlCreate(url="https://one.test"))
    storage.create_context_chat_message(
        setup_user.id, 1, ChatMessageCreate(role="user", content="profile one")
    )
    storage.create_context_url(setup_user.id, 2, UrlCreate(url="https://two.test"))

    assert [u.url for u in storage.get_context_urls(setup_user.id, 1)] == [
        "https://one.test"
    ]
    assert [u.url for u in storage.get_context_urls(setup_user.id, 2)] == [
        "https://two.test"
    ]
    assert storage.get_context_chat_messages(setup_user.id, 2) == []
    # Scoped rows never show up in the unscoped views
    assert storage.get_urls(setup_user.id) == []
    assert storage.get_chat_messages(setup_user.id) == []


def test_migrate_copies_owned_rows(storage, setup_user, setup_other_user):
    for i in range(2):
        storage.create_url(setup_user.id, UrlCreate(url=f"https://{i}.test"))
    for i in range(3):
        storage.create_chat_message(
            setup_user.id, ChatMessageCreate(role="user", content=f"m{i}")
        )
    storage.create_url(setup_other_user.id, UrlCreate(url="https://other.test"))

    counts = storage.migrate_data_to_context(setup_user.id, 5)
    assert counts.urls == 2
    assert counts.messages == 3

    urls = storage.get_context_urls(setup_user.id, 5)
    assert sorted(u.url for u in urls) == ["https://0.test", "https://1.test"]
    messages = storage.get_context_chat_messages(setup_user.id, 5)
    assert [m.content for m in messages] == ["m0", "m1", "m2"]
    assert storage.get_context_urls(setup_other_user.id, 5) == []

    loaded = storage.load_context_data(setup_user.id, 5)
    assert loaded.urls == 2
    assert loaded.messages == 3


def test_migrate_again_only_copies_new_rows(storage, setup_user):
    storage.create_url(setup_user.id, UrlCreate(url="https://first.test"))
    storage.migrate_data_to_context(setup_user.id, 5)

    again = storage.migrate_data_to_context(setup_user.id, 5)
    assert again.urls == 0
    assert again.messages == 0

    storage.create_url(setup_user.id, UrlCreate(url="https://second.test"))
    latest = storage.migrate_data_to_context(setup_user.id, 5)
    assert latest.urls == 1
    assert storage.load_context_data(setup_user.id, 5).urls == 2


def test_migrate_keeps_unscoped_rows(storage, setup_user):
    storage.create_url(setup_user.id, UrlCreate(url="https://kept.test"))
    storage.migrate_data_to_context(setup_user.id, 5)
    assert [u.url for u in storage.get_urls(setup_user.id)] == ["https://kept.test"]


def test_deleting_source_url_keeps_profile_copy(storage, setup_user):
    url = storage.create_url(setup_user.id, UrlCreate(url="https://gone.test"))
    storage.migrate_data_to_context(setup_user.id, 5)

    assert storage.delete_url(url.id, setup_user.id) is True
    assert [u.url for u in storage.get_context_urls(setup_user.id, 5)] == [
        "https://gone.test"
    ]


def test_concurrent_context_updates_get_distinct_versions(storage, setup_user):
    barrier = threading.Barrier(2)
    results = []
    errors = []

    def update(step):
        barrier.wait()
        try:
            results.append(storage.update_user_context(setup_user.id, {"step": step}))
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=update, args=(n,)) for n in (1, 2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert sorted(r.version for r in results) == [1, 2]
    current = storage.get_user_context(setup_user.id)
    assert current.version == 2
