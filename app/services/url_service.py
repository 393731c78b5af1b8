"""Url CRUD with ownership checks."""

from __future__ import annotations

from typing import Any, List, Optional

from sqlalchemy.orm import Session

from app.models.url import Url
from app.schemas.url import UrlCreate
from app.utils.db.db_session_helper import commit_for_user


class UrlService:
    """Every lookup by id also filters on user_id, so foreign rows look absent."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_urls(self, user_id: int) -> List[Url]:
        """URLs owned by user_id, newest first."""
        return (
            self.db.query(Url)
            .filter(Url.user_id == user_id)
            .order_by(Url.created_at.desc(), Url.id.desc())
            .all()
        )

    def get_owned_url(self, url_id: int, user_id: int) -> Optional[Url]:
        return (
            self.db.query(Url)
            .filter(Url.id == url_id, Url.user_id == user_id)
            .first()
        )

    def create_url(self, user_id: int, data: UrlCreate) -> Url:
        url = Url(
            user_id=user_id,
            url=data.url,
            title=data.title or None,
            notes=data.notes or None,
            content=None,
            analysis=None,
        )
        self.db.add(url)
        commit_for_user(self.db, user_id)
        self.db.refresh(url)
        return url

    def delete_url(self, url_id: int, user_id: int) -> bool:
        deleted = (
            self.db.query(Url)
            .filter(Url.id == url_id, Url.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted > 0

    def update_analysis(
        self, url_id: int, user_id: int, analysis: Any
    ) -> Optional[Url]:
        url = self.get_owned_url(url_id, user_id)
        if url is None:
            return None
        url.analysis = analysis
        self.db.commit()
        self.db.refresh(url)
        return url

    def update_content(self, url_id: int, user_id: int, content: str) -> Optional[Url]:
        url = self.get_owned_url(url_id, user_id)
        if url is None:
            return None
        url.content = content
        self.db.commit()
        self.db.refresh(url)
        return url
