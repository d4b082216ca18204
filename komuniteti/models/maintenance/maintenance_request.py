"""
Maintenance request models.

Core maintenance request entity with its append-only comment thread
and attached document metadata.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from komuniteti.models.base.base_model import BaseModel, TimestampModel
from komuniteti.models.base.types import enum_column
from komuniteti.schemas.common.enums import (
    CommentAuthorRole,
    MaintenancePriority,
    MaintenanceStatus,
    MaintenanceType,
    RecurringFrequency,
)
from komuniteti.utils.datetime_utils import utcnow


class MaintenanceRequest(TimestampModel):
    """
    Core maintenance request entity.

    Tracks a repair or service ticket from creation through resolution.
    Status, started_at and completed_at are only changed by the workflow
    service.
    """

    __tablename__ = "maintenance_requests"

    title = Column(
        String(255),
        nullable=False,
        comment="Brief maintenance issue summary",
    )

    description = Column(
        Text,
        nullable=False,
        default="",
        comment="Detailed description of the issue",
    )

    type = Column(
        enum_column(MaintenanceType, "maintenance_type"),
        nullable=False,
        index=True,
        comment="Request type (plumbing, electrical, ...)",
    )

    # Requester information
    submitter_id = Column(String(64), nullable=False, index=True)
    submitter_name = Column(String(255), nullable=False, default="")

    # Location scoping
    building_id = Column(
        String(64),
        nullable=False,
        index=True,
        comment="Opaque building id supplied by the account context",
    )
    building_name = Column(String(255), nullable=False, default="")
    unit_id = Column(String(64), nullable=True, index=True)
    unit_number = Column(String(50), nullable=True)
    location = Column(
        String(255),
        nullable=False,
        default="",
        comment="Free-text location within the building",
    )

    # Status workflow
    status = Column(
        enum_column(MaintenanceStatus, "maintenance_status"),
        nullable=False,
        default=MaintenanceStatus.OPEN,
        index=True,
        comment="Current maintenance status",
    )

    priority = Column(
        enum_column(MaintenancePriority, "maintenance_priority"),
        nullable=False,
        default=MaintenancePriority.MEDIUM,
        index=True,
        comment="Issue priority level",
    )

    # Timeline
    scheduled_date = Column(DateTime, nullable=True, comment="Planned visit date")
    started_at = Column(DateTime, nullable=True, comment="Work start timestamp")
    completed_at = Column(
        DateTime,
        nullable=True,
        index=True,
        comment="Resolution or cancellation timestamp",
    )

    # Assignment
    assigned_to_id = Column(
        String(36),
        ForeignKey("maintenance_workers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Worker assigned to handle the request",
    )
    assigned_to_name = Column(String(255), nullable=True)
    assigned_at = Column(DateTime, nullable=True)

    # Cost tracking
    estimated_cost = Column(Numeric(10, 2), nullable=True, comment="Estimated cost of repair")
    actual_cost = Column(Numeric(10, 2), nullable=True, comment="Actual cost incurred")

    resolution_details = Column(Text, nullable=True)
    images = Column(JSON, nullable=False, default=list)

    # Recurrence
    is_recurring = Column(Boolean, nullable=False, default=False)
    recurring_frequency = Column(
        enum_column(RecurringFrequency, "recurring_frequency"),
        nullable=True,
    )
    next_recurring_date = Column(DateTime, nullable=True)

    # Optimistic concurrency
    version = Column(Integer, nullable=False, default=1)

    # Relationships
    comments = relationship(
        "MaintenanceComment",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="MaintenanceComment.position",
        passive_deletes=True,
    )
    documents = relationship(
        "MaintenanceDocument",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="MaintenanceDocument.created_at",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("updated_at >= created_at", name="ck_maintenance_request_timestamps"),
        CheckConstraint(
            "estimated_cost IS NULL OR estimated_cost >= 0",
            name="ck_maintenance_request_estimated_cost",
        ),
        CheckConstraint(
            "actual_cost IS NULL OR actual_cost >= 0",
            name="ck_maintenance_request_actual_cost",
        ),
        Index("ix_maintenance_requests_building_status", "building_id", "status"),
    )

    @property
    def is_terminal(self) -> bool:
        return MaintenanceStatus(self.status).is_terminal

    def __repr__(self) -> str:
        return f"<MaintenanceRequest(id={self.id}, status={self.status}, priority={self.priority})>"


class MaintenanceComment(BaseModel):
    """
    Comment appended to a maintenance request.

    Comments are never edited or reordered once stored.
    """

    __tablename__ = "maintenance_comments"

    request_id = Column(
        String(36),
        ForeignKey("maintenance_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    author_id = Column(String(64), nullable=False)
    author_name = Column(String(255), nullable=False)
    author_role = Column(
        enum_column(CommentAuthorRole, "comment_author_role"),
        nullable=False,
    )
    text = Column(Text, nullable=False)
    is_private = Column(
        Boolean,
        nullable=False,
        default=False,
        comment="Visible only to staff",
    )
    attachments = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    position = Column(
        Integer,
        nullable=False,
        comment="Append order within the request thread",
    )

    request = relationship("MaintenanceRequest", back_populates="comments")


class MaintenanceDocument(BaseModel):
    """Metadata of a document attached to a maintenance request."""

    __tablename__ = "maintenance_documents"

    request_id = Column(
        String(36),
        ForeignKey("maintenance_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(255), nullable=False)
    url = Column(String(1024), nullable=False)
    content_type = Column(String(100), nullable=False, default="application/pdf")
    size = Column(Integer, nullable=False, default=0)
    uploaded_by_id = Column(String(64), nullable=False)
    uploaded_by_name = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    request = relationship("MaintenanceRequest", back_populates="documents")
