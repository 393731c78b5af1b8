"""Tests for the Typesense search index client."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from app.storage.errors import IndexWriteError, SearchIndexError
from app.storage.search_index import DOCUMENT_FIELDS, TypesenseIndex


def _response(status_code=200, payload=None, text=""):
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = text
    resp.json.return_value = payload or {}
    return resp


@pytest.fixture
def index():
    return TypesenseIndex(
        host="search.local",
        api_key="test-key",
        port=8108,
        protocol="http",
        collection="leo_documents",
        timeout_seconds=0.5,
        max_attempts=2,
    )


@patch("app.storage.search_index.requests.request")
def test_upsert_sends_document(mock_request, index):
    mock_request.return_value = _response(200)
    index.upsert({"id": "url-1", "text": "hello"})

    mock_request.assert_called_once()
    args, kwargs = mock_request.call_args
    assert args == (
        "POST",
        "http://search.local:8108/collections/leo_documents/documents",
    )
    assert kwargs["params"] == {"action": "upsert"}
    assert kwargs["json"] == {"id": "url-1", "text": "hello"}
    assert kwargs["headers"]["X-TYPESENSE-API-KEY"] == "test-key"
    connect_timeout, read_timeout = kwargs["timeout"]
    assert 0 < connect_timeout <= 0.5
    assert read_timeout == connect_timeout


@patch("app.storage.search_index.requests.request")
def test_retries_connection_errors_then_succeeds(mock_request, index):
    mock_request.side_effect = [
        requests.ConnectionError("refused"),
        _response(200),
    ]
    index.upsert({"id": "url-1"})
    assert mock_request.call_count == 2


@patch("app.storage.search_index.requests.request")
def test_gives_up_after_max_attempts(mock_request, index):
    mock_request.return_value = _response(503)
    with pytest.raises(IndexWriteError, match="after 2 attempts"):
        index.upsert({"id": "url-1"})
    assert mock_request.call_count == 2


@patch("app.storage.search_index.requests.request")
def test_client_errors_are_not_retried(mock_request, index):
    mock_request.return_value = _response(400, text="bad document")
    with pytest.raises(IndexWriteError, match="bad document"):
        index.upsert({"id": "url-1"})
    assert mock_request.call_count == 1


@patch("app.storage.search_index.requests.request")
def test_delete_ignores_missing_document(mock_request, index):
    mock_request.return_value = _response(404)
    index.delete("url-9")
    args, _ = mock_request.call_args
    assert args[1].endswith("/documents/url-9")


@patch("app.storage.search_index.requests.request")
def test_delete_where_filters_by_kind_and_user(mock_request, index):
    mock_request.return_value = _response(200)
    index.delete_where("chat_message", 3)
    _, kwargs = mock_request.call_args
    assert kwargs["params"] == {"filter_by": "kind:=chat_message && user_id:=3"}


@patch("app.storage.search_index.requests.request")
def test_ensure_collection_creates_when_missing(mock_request, index):
    mock_request.side_effect = [_response(404), _response(201)]
    index.ensure_collection()

    assert mock_request.call_count == 2
    args, kwargs = mock_request.call_args
    assert args == ("POST", "http://search.local:8108/collections")
    assert kwargs["json"] == {"name": "leo_documents", "fields": DOCUMENT_FIELDS}


@patch("app.storage.search_index.requests.request")
def test_ensure_collection_existing(mock_request, index):
    mock_request.return_value = _response(200)
    index.ensure_collection()
    assert mock_request.call_count == 1


@patch("app.storage.search_index.requests.request")
def test_search_returns_record_ids(mock_request, index):
    mock_request.return_value = _response(
        200,
        payload={
            "hits": [
                {"document": {"record_id": 7}},
                {"document": {"record_id": "3"}},
            ]
        },
    )
    assert index.search("python", kind="url", user_id=1, limit=5) == [7, 3]

    _, kwargs = mock_request.call_args
    assert kwargs["params"]["q"] == "python"
    assert kwargs["params"]["filter_by"] == "kind:=url && user_id:=1"
    assert kwargs["params"]["per_page"] == 5


@patch("app.storage.search_index.requests.request")
def test_search_failure_raises_search_error(mock_request, index):
    mock_request.side_effect = requests.Timeout("slow")
    with pytest.raises(SearchIndexError) as exc_info:
        index.search("python", kind="url", user_id=1)
    assert not isinstance(exc_info.value, IndexWriteError)


@patch("app.storage.search_index.time")
@patch("app.storage.search_index.requests.request")
def test_no_retry_once_time_budget_is_spent(mock_request, mock_time, index):
    # Budget 0.5s: the first attempt starts with 0.5s left, the retry with none
    mock_time.monotonic.side_effect = [100.0, 100.0, 100.6]
    mock_request.return_value = _response(503)

    with pytest.raises(IndexWriteError, match="time budget"):
        index.upsert({"id": "url-1"})

    assert mock_request.call_count == 1
    _, kwargs = mock_request.call_args
    assert kwargs["timeout"] == (0.5, 0.5)


@patch("app.storage.search_index.requests.request")
def test_search_filters_by_profile(mock_request, index):
    mock_request.return_value = _response(200, payload={"hits": []})
    assert index.search("python", kind="context_url", user_id=1, profile_id=4) == []

    _, kwargs = mock_request.call_args
    assert (
        kwargs["params"]["filter_by"]
        == "kind:=context_url && user_id:=1 && profile_id:=4"
    )
