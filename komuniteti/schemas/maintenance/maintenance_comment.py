"""
Maintenance comment schemas.
"""

from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import ConfigDict, Field

from komuniteti.schemas.common.base import BaseCreateSchema, BaseSchema
from komuniteti.schemas.common.enums import CommentAuthorRole

__all__ = ["CommentCreate", "CommentResponse"]


class CommentCreate(BaseCreateSchema):
    """
    New comment on a request thread.

    Blank text is rejected by the comment service.
    """

    author_id: str = Field(..., min_length=1, max_length=64)
    author_name: str = Field(..., min_length=1, max_length=255)
    author_role: CommentAuthorRole
    text: str = Field(..., max_length=5000)
    is_private: bool = Field(False, description="Visible to staff only")
    attachments: List[str] = Field(default_factory=list, max_length=10)


class CommentResponse(BaseSchema):
    model_config = ConfigDict(frozen=True, validate_assignment=False)

    id: str
    request_id: str
    author_id: str
    author_name: str
    author_role: CommentAuthorRole
    text: str
    is_private: bool = False
    attachments: List[str] = Field(default_factory=list)
    created_at: datetime
    position: int
