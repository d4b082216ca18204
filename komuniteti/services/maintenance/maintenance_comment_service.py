"""
Maintenance comment service: append-only comment threads.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from komuniteti.core.exceptions import ValidationError
from komuniteti.models.maintenance import MaintenanceComment
from komuniteti.repositories.maintenance import (
    MaintenanceCommentRepository,
    MaintenanceRequestRepository,
)
from komuniteti.schemas.maintenance import CommentCreate, CommentResponse
from komuniteti.services.base import BaseService, ServiceResult


class MaintenanceCommentService(BaseService[MaintenanceComment, MaintenanceCommentRepository]):
    """
    Comment thread operations.

    Comments cannot be edited or deleted; the thread is ordered by
    creation time with ties broken by append order.
    """

    def __init__(
        self,
        repository: MaintenanceCommentRepository,
        db_session: Session,
        request_repository: Optional[MaintenanceRequestRepository] = None,
    ):
        super().__init__(repository, db_session)
        self.request_repository = request_repository or MaintenanceRequestRepository(db_session)

    def add_comment(self, request_id: str, comment: CommentCreate) -> ServiceResult[CommentResponse]:
        """Append a comment to the request's thread."""

        def command() -> CommentResponse:
            if not comment.text.strip():
                raise ValidationError(
                    "Comment text must not be blank",
                    field_errors={"text": ["must not be blank"]},
                )
            request = self.request_repository.get_by_id(request_id)
            stored = self.repository.append(request, comment.model_dump(), commit=False)
            return CommentResponse.model_validate(stored)

        return self._execute("add maintenance comment", command, request_id)

    def list_comments(
        self,
        request_id: str,
        include_private: bool = True,
    ) -> ServiceResult[List[CommentResponse]]:
        def command() -> List[CommentResponse]:
            self.request_repository.get_by_id(request_id)
            return [
                CommentResponse.model_validate(c)
                for c in self.repository.list_for_request(request_id, include_private)
            ]

        return self._execute("list maintenance comments", command, request_id)
