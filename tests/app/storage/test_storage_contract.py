"""Behavior every primary backend must share (memory and database)."""

from datetime import datetime, timezone

import pytest

from app.constants.roles import QuestionStatus, UserRole
from app.schemas.chat_message import ChatMessageCreate
from app.schemas.leo_question import LeoQuestionCreate
from app.schemas.url import UrlCreate
from app.schemas.user import UserCreate
from app.storage.errors import DuplicateUsernameError, UnknownUserError


def test_create_user_then_get_user(storage, hash_password):
    """create_user applies role/pro_mode defaults and get_user returns the same record."""
    created = storage.create_user(
        UserCreate(username="jordan", password=hash_password("secret"))
    )
    assert created.id > 0
    assert created.role == UserRole.USER
    assert created.pro_mode is False

    found = storage.get_user(created.id)
    assert found == created
    assert storage.get_user_by_username("jordan") == created


def test_get_user_not_found(storage):
    assert storage.get_user(9999) is None
    assert storage.get_user_by_username("nobody") is None


def test_create_user_duplicate_username_fails(storage, setup_user, hash_password):
    with pytest.raises(DuplicateUsernameError, match="already exists"):
        storage.create_user(
            UserCreate(username=setup_user.username, password=hash_password("x"))
        )


def test_urls_newest_first(storage, setup_user):
    created = [
        storage.create_url(setup_user.id, UrlCreate(url=f"https://example.com/{i}"))
        for i in range(5)
    ]
    urls = storage.get_urls(setup_user.id)
    assert [u.id for u in urls] == [u.id for u in reversed(created)]
    keys = [(u.created_at, u.id) for u in urls]
    assert keys == sorted(keys, reverse=True)


def test_chat_messages_oldest_first(storage, setup_user):
    created = [
        storage.create_chat_message(
            setup_user.id, ChatMessageCreate(role="user", content=f"message {i}")
        )
        for i in range(5)
    ]
    messages = storage.get_chat_messages(setup_user.id)
    assert [m.id for m in messages] == [m.id for m in created]
    keys = [(m.created_at, m.id) for m in messages]
    assert keys == sorted(keys)


def test_create_url_defaults(storage, setup_user):
    url = storage.create_url(
        setup_user.id,
        UrlCreate(url="https://example.com", title="Example", notes=""),
    )
    assert url.user_id == setup_user.id
    assert url.title == "Example"
    assert url.notes is None
    assert url.content is None
    assert url.analysis is None
    assert url.created_at is not None


def test_url_lifecycle(storage, hash_password):
    """Create A then B, update A's content, delete A."""
    user = storage.create_user(
        UserCreate(username="alex", password=hash_password("password"))
    )
    a = storage.create_url(user.id, UrlCreate(url="https://a.example.com"))
    b = storage.create_url(user.id, UrlCreate(url="https://b.example.com"))
    assert [u.id for u in storage.get_urls(user.id)] == [b.id, a.id]

    updated = storage.update_url_content(a.id, user.id, "page text")
    assert updated is not None
    assert updated.content == "page text"
    urls = storage.get_urls(user.id)
    assert [u.id for u in urls] == [b.id, a.id]
    assert urls[1].content == "page text"

    assert storage.delete_url(a.id, user.id) is True
    assert [u.id for u in storage.get_urls(user.id)] == [b.id]


def test_delete_url_twice(storage, setup_user):
    url = storage.create_url(setup_user.id, UrlCreate(url="https://example.com"))
    assert storage.delete_url(url.id, setup_user.id) is True
    assert storage.delete_url(url.id, setup_user.id) is False
    assert storage.get_urls(setup_user.id) == []


def test_update_url_analysis(storage, setup_user):
    url = storage.create_url(setup_user.id, UrlCreate(url="https://example.com"))
    analysis = {"summary": "A page", "topics": ["a", "b"], "score": 0.5}
    updated = storage.update_url_analysis(url.id, setup_user.id, analysis)
    assert updated is not None
    assert updated.analysis == analysis
    assert storage.get_urls(setup_user.id)[0].analysis == analysis


def test_ownership_isolation(storage, setup_user, setup_other_user):
    """Calls made as one user never touch another user's rows."""
    owner, intruder = setup_user, setup_other_user
    url = storage.create_url(owner.id, UrlCreate(url="https://example.com"))
    question = storage.create_leo_question(
        owner.id, LeoQuestionCreate(question_text="Q1")
    )

    assert storage.delete_url(url.id, intruder.id) is False
    assert storage.update_url_content(url.id, intruder.id, "x") is None
    assert storage.update_url_analysis(url.id, intruder.id, {"x": 1}) is None
    assert storage.update_leo_question(question.id, intruder.id, "A") is None

    assert storage.get_urls(owner.id) == [url]
    assert storage.get_leo_questions(owner.id) == [question]
    assert storage.get_urls(intruder.id) == []


def test_missing_rows_are_not_found(storage, setup_user):
    assert storage.delete_url(12345, setup_user.id) is False
    assert storage.update_url_content(12345, setup_user.id, "x") is None
    assert storage.update_url_analysis(12345, setup_user.id, {}) is None
    assert storage.update_leo_question(12345, setup_user.id, "A") is None
    assert storage.update_user_role(12345, UserRole.ADMIN) is None


def test_clear_chat_history(storage, setup_user, setup_other_user):
    for i in range(3):
        storage.create_chat_message(
            setup_user.id, ChatMessageCreate(role="user", content=f"hi {i}")
        )
    kept = storage.create_chat_message(
        setup_other_user.id, ChatMessageCreate(role="assistant", content="hello")
    )

    storage.clear_chat_history(setup_user.id)

    assert storage.get_chat_messages(setup_user.id) == []
    assert storage.get_chat_messages(setup_other_user.id) == [kept]


def test_question_answer_flow(storage, setup_user):
    question = storage.create_leo_question(
        setup_user.id, LeoQuestionCreate(question_text="Q1")
    )
    assert question.status == QuestionStatus.PENDING
    assert question.answer is None
    assert question.answered_at is None

    answered = storage.update_leo_question(question.id, setup_user.id, "A1")
    assert answered is not None
    assert answered.status == QuestionStatus.ANSWERED
    assert answered.answer == "A1"
    assert answered.answered_at is not None

    # Answering again is allowed and replaces the answer
    again = storage.update_leo_question(question.id, setup_user.id, "A2")
    assert again.status == QuestionStatus.ANSWERED
    assert again.answer == "A2"


def test_leo_questions_newest_first(storage, setup_user):
    created = [
        storage.create_leo_question(
            setup_user.id, LeoQuestionCreate(question_text=f"Q{i}")
        )
        for i in range(3)
    ]
    questions = storage.get_leo_questions(setup_user.id)
    assert [q.id for q in questions] == [q.id for q in reversed(created)]


def test_user_context_versions(storage, setup_user):
    assert storage.get_user_context(setup_user.id) is None

    rows = [
        storage.update_user_context(setup_user.id, {"step": n}) for n in range(1, 5)
    ]
    assert [r.version for r in rows] == [1, 2, 3, 4]
    assert len({r.id for r in rows}) == 4

    current = storage.get_user_context(setup_user.id)
    assert current.version == 4
    assert current.context == {"step": 4}
    assert current.id == rows[-1].id


def test_user_context_versions_are_per_user(storage, setup_user, setup_other_user):
    storage.update_user_context(setup_user.id, {"a": 1})
    storage.update_user_context(setup_user.id, {"a": 2})
    other = storage.update_user_context(setup_other_user.id, {"b": 1})
    assert other.version == 1
    assert storage.get_user_context(setup_user.id).version == 2


def test_update_user_role(storage, setup_user):
    updated = storage.update_user_role(setup_user.id, UserRole.ADMIN)
    assert updated.role == UserRole.ADMIN
    assert storage.get_user(setup_user.id).role == UserRole.ADMIN


def test_all_users_with_stats(storage, setup_user, setup_other_user):
    storage.create_url(setup_user.id, UrlCreate(url="https://a.example.com"))
    storage.create_url(setup_user.id, UrlCreate(url="https://b.example.com"))
    storage.create_chat_message(
        setup_user.id, ChatMessageCreate(role="user", content="hi")
    )
    storage.create_leo_question(
        setup_other_user.id, LeoQuestionCreate(question_text="Q")
    )

    stats = {s.user.id: s for s in storage.get_all_users_with_stats()}
    assert set(stats) == {setup_user.id, setup_other_user.id}
    assert stats[setup_user.id].url_count == 2
    assert stats[setup_user.id].message_count == 1
    assert stats[setup_user.id].question_count == 0
    assert stats[setup_other_user.id].url_count == 0
    assert stats[setup_other_user.id].question_count == 1


def test_create_for_unknown_user_fails(storage):
    with pytest.raises(UnknownUserError):
        storage.create_url(4242, UrlCreate(url="https://example.com"))
    with pytest.raises(UnknownUserError):
        storage.create_chat_message(4242, ChatMessageCreate(role="user", content="x"))
    with pytest.raises(UnknownUserError):
        storage.create_leo_question(4242, LeoQuestionCreate(question_text="Q"))
    with pytest.raises(UnknownUserError):
        storage.update_user_context(4242, {"x": 1})


def test_context_url_and_message_round_trip(storage, setup_user):
    url = storage.create_context_url(
        setup_user.id, 7, UrlCreate(url="https://example.com", title="Ex")
    )
    message = storage.create_context_chat_message(
        setup_user.id, 7, ChatMessageCreate(role="user", content="scoped")
    )
    assert url.profile_id == 7
    assert message.profile_id == 7

    urls = storage.get_context_urls(setup_user.id, 7)
    messages = storage.get_context_chat_messages(setup_user.id, 7)
    assert [u.url for u in urls] == ["https://example.com"]
    assert [m.content for m in messages] == ["scoped"]
    assert all(u.profile_id == 7 for u in urls)

    counts = storage.load_context_data(setup_user.id, 7)
    assert counts.urls == 1
    assert counts.messages == 1


def test_stored_context_is_not_shared(storage, setup_user):
    context = {"topic": "first"}
    storage.update_user_context(setup_user.id, context)
    context["topic"] = "changed"

    current = storage.get_user_context(setup_user.id)
    assert current.context == {"topic": "first"}

    current.context["topic"] = "tampered"
    assert storage.get_user_context(setup_user.id).context == {"topic": "first"}


def test_stored_analysis_is_not_shared(storage, setup_user):
    url = storage.create_url(setup_user.id, UrlCreate(url="https://example.com"))
    analysis = {"topics": ["a"]}
    storage.update_url_analysis(url.id, setup_user.id, analysis)
    analysis["topics"].append("b")

    fetched = storage.get_urls(setup_user.id)[0]
    assert fetched.analysis == {"topics": ["a"]}

    fetched.analysis["topics"].append("c")
    assert storage.get_urls(setup_user.id)[0].analysis == {"topics": ["a"]}


def test_returned_user_is_a_copy(storage, setup_user):
    user = storage.get_user(setup_user.id)
    user.role = UserRole.ADMIN

    assert storage.get_user(setup_user.id).role == UserRole.USER
    assert storage.get_user_by_username(setup_user.username).role == UserRole.USER


def test_timestamps_are_utc_aware(storage, setup_user):
    url = storage.create_url(setup_user.id, UrlCreate(url="https://example.com"))
    storage.create_chat_message(
        setup_user.id, ChatMessageCreate(role="user", content="hi")
    )
    question = storage.create_leo_question(
        setup_user.id, LeoQuestionCreate(question_text="Why?")
    )
    storage.update_leo_question(question.id, setup_user.id, "Because")
    storage.update_user_context(setup_user.id, {"a": 1})

    fetched_url = storage.get_urls(setup_user.id)[0]
    fetched_message = storage.get_chat_messages(setup_user.id)[0]
    fetched_question = storage.get_leo_questions(setup_user.id)[0]
    context = storage.get_user_context(setup_user.id)

    assert fetched_url.created_at.tzinfo is not None
    assert fetched_message.created_at.tzinfo is not None
    assert fetched_question.answered_at.tzinfo is not None
    assert context.last_updated.tzinfo is not None
    assert fetched_url.created_at.utcoffset().total_seconds() == 0
    assert fetched_url.created_at <= datetime.now(timezone.utc)
    assert url.created_at.tzinfo is not None
