"""Secondary search index over urls and chat messages (Typesense HTTP API)."""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional, Protocol

import requests

from app.infra.logging_config import get_logger
from app.storage.errors import IndexWriteError, SearchIndexError

logger = get_logger("search_index")

TIMEOUT_SECONDS = 2.0
MAX_ATTEMPTS = 2

DOCUMENT_FIELDS = [
    {"name": "kind", "type": "string", "facet": True},
    {"name": "record_id", "type": "int64"},
    {"name": "user_id", "type": "int64", "facet": True},
    {"name": "profile_id", "type": "int64", "optional": True},
    {"name": "title", "type": "string", "optional": True},
    {"name": "text", "type": "string"},
    {"name": "created_at", "type": "int64"},
]


class SearchIndex(Protocol):
    """What the indexing decorator needs from a search index."""

    def ensure_collection(self) -> None: ...

    def upsert(self, document: Dict[str, Any]) -> None: ...

    def delete(self, document_id: str) -> None: ...

    def delete_where(self, kind: str, user_id: int) -> None: ...

    def search(
        self,
        query: str,
        kind: str,
        user_id: int,
        limit: int = 10,
        profile_id: Optional[int] = None,
    ) -> List[int]: ...


class TypesenseIndex:
    """
    Minimal Typesense client for one collection.

    Requests are retried on connection errors and 5xx responses up to
    max_attempts times. All attempts share one budget of timeout_seconds:
    each attempt gets what is left as its connect and read timeout, and no
    new attempt starts once the budget is spent. The last failure raises
    IndexWriteError (writes) or SearchIndexError (reads).
    """

    def __init__(
        self,
        host: str,
        api_key: str,
        port: int = 443,
        protocol: str = "https",
        collection: str = "leo_documents",
        timeout_seconds: float = TIMEOUT_SECONDS,
        max_attempts: int = MAX_ATTEMPTS,
    ) -> None:
        self.base_url = f"{protocol}://{host}:{port}"
        self.collection = collection
        self._headers = {
            "X-TYPESENSE-API-KEY": api_key,
            "Content-Type": "application/json",
        }
        self._timeout = timeout_seconds
        self._max_attempts = max(1, max_attempts)

    def _request(
        self,
        method: str,
        path: str,
        error_cls: type[SearchIndexError] = IndexWriteError,
        allow_404: bool = False,
        **kwargs: Any,
    ) -> Optional[requests.Response]:
        url = f"{self.base_url}{path}"
        last_error = "no attempt made"
        attempts = 0
        deadline = time.monotonic() + self._timeout
        while attempts < self._max_attempts:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                last_error = f"{last_error}; time budget of {self._timeout}s spent"
                break
            attempts += 1
            try:
                resp = requests.request(
                    method,
                    url,
                    headers=self._headers,
                    timeout=(remaining, remaining),
                    **kwargs,
                )
            except requests.RequestException as e:
                last_error = str(e)
                logger.debug(
                    "Search index %s %s attempt %d failed: %s",
                    method,
                    path,
                    attempts,
                    e,
                )
                continue

            if resp.status_code == 404 and allow_404:
                return None
            if resp.status_code >= 500:
                last_error = f"HTTP {resp.status_code}"
                continue
            if resp.status_code >= 400:
                raise error_cls(
                    f"{method} {path} rejected: HTTP {resp.status_code}: "
                    f"{resp.text[:500] if resp.text else 'no body'}"
                )
            return resp

        raise error_cls(
            f"{method} {path} failed after {attempts} attempts: {last_error}"
        )

    def ensure_collection(self) -> None:
        """Create the collection if it does not exist yet."""
        path = f"/collections/{self.collection}"
        if self._request("GET", path, allow_404=True) is not None:
            return
        self._request(
            "POST",
            "/collections",
            json={"name": self.collection, "fields": DOCUMENT_FIELDS},
        )
        logger.info("Created search collection %s", self.collection)

    def upsert(self, document: Dict[str, Any]) -> None:
        self._request(
            "POST",
            f"/collections/{self.collection}/documents",
            params={"action": "upsert"},
            json=document,
        )

    def delete(self, document_id: str) -> None:
        """Delete one document. Missing documents are ignored."""
        self._request(
            "DELETE",
            f"/collections/{self.collection}/documents/{document_id}",
            allow_404=True,
        )

    def delete_where(self, kind: str, user_id: int) -> None:
        """Delete every document of one kind owned by user_id."""
        self._request(
            "DELETE",
            f"/collections/{self.collection}/documents",
            params={"filter_by": f"kind:={kind} && user_id:={user_id}"},
        )

    def search(
        self,
        query: str,
        kind: str,
        user_id: int,
        limit: int = 10,
        profile_id: Optional[int] = None,
    ) -> List[int]:
        """Return record ids of one kind owned by user_id, best match first."""
        filter_by = f"kind:={kind} && user_id:={user_id}"
        if profile_id is not None:
            filter_by += f" && profile_id:={profile_id}"
        resp = self._request(
            "GET",
            f"/collections/{self.collection}/documents/search",
            error_cls=SearchIndexError,
            params={
                "q": query,
                "query_by": "title,text",
                "filter_by": filter_by,
                "per_page": limit,
            },
        )
        try:
            hits = resp.json().get("hits", [])
        except ValueError as e:
            raise SearchIndexError(f"Invalid search response: {e}") from e
        return [int(hit["document"]["record_id"]) for hit in hits]
