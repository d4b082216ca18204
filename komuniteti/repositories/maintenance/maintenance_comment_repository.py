"""
Maintenance Comment Repository.

Append-only storage of request comment threads.
"""

from typing import Any, Dict, List

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from komuniteti.models.maintenance import MaintenanceComment, MaintenanceRequest
from komuniteti.repositories.base.base_repository import BaseRepository
from komuniteti.utils.datetime_utils import utcnow


class MaintenanceCommentRepository(BaseRepository[MaintenanceComment]):
    """
    Repository for maintenance comments.

    There is no update or delete path: comments leave the database only
    together with their request.
    """

    def __init__(self, session: Session):
        super().__init__(MaintenanceComment, session)

    def next_position(self, request_id: str) -> int:
        try:
            stmt = select(func.max(MaintenanceComment.position)).where(
                MaintenanceComment.request_id == request_id
            )
            return (self.db.scalar(stmt) or 0) + 1
        except SQLAlchemyError as e:
            self._raise_database_error("Next comment position", e)

    def append(
        self,
        request: MaintenanceRequest,
        data: Dict[str, Any],
        commit: bool = True,
    ) -> MaintenanceComment:
        """Append a comment at the end of the request's thread."""
        comment = MaintenanceComment(
            request_id=request.id,
            author_id=data["author_id"],
            author_name=data["author_name"],
            author_role=data["author_role"],
            text=data["text"],
            is_private=data.get("is_private", False),
            attachments=list(data.get("attachments") or []),
            created_at=utcnow(),
            position=self.next_position(request.id),
        )
        request.comments.append(comment)
        self.mark_modified(request)
        return self.create(comment, commit=commit)

    def list_for_request(
        self,
        request_id: str,
        include_private: bool = True,
    ) -> List[MaintenanceComment]:
        try:
            stmt = select(MaintenanceComment).where(MaintenanceComment.request_id == request_id)
            if not include_private:
                stmt = stmt.where(MaintenanceComment.is_private.is_(False))
            stmt = stmt.order_by(MaintenanceComment.position)
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as e:
            self._raise_database_error("List comments", e)
