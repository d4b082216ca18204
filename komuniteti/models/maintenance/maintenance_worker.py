"""
Maintenance worker model.

Internal staff or external contractors qualified for a set of request
types, with workload counters kept up to date by the workflow service
through atomic UPDATE expressions.
"""

from typing import Union

from sqlalchemy import JSON, Boolean, CheckConstraint, Column, Float, Integer, String

from komuniteti.models.base.base_model import TimestampModel
from komuniteti.models.base.types import enum_column
from komuniteti.schemas.common.enums import MaintenanceType, WorkerAvailability


class MaintenanceWorker(TimestampModel):
    """
    Maintenance worker entity.

    availability is set explicitly by an administrator; it is never
    derived from assigned_requests.
    """

    __tablename__ = "maintenance_workers"

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, default="")
    phone = Column(String(50), nullable=False, default="")
    specialties = Column(
        JSON,
        nullable=False,
        default=list,
        comment="Request type values this worker is qualified for",
    )
    is_external = Column(Boolean, nullable=False, default=False)
    company = Column(String(255), nullable=True)
    image = Column(String(1024), nullable=True)

    availability = Column(
        enum_column(WorkerAvailability, "worker_availability"),
        nullable=False,
        default=WorkerAvailability.AVAILABLE,
        index=True,
    )

    # Workload counters
    assigned_requests = Column(Integer, nullable=False, default=0)
    completed_requests = Column(Integer, nullable=False, default=0)
    average_resolution_time = Column(
        Float,
        nullable=False,
        default=0.0,
        comment="Average resolution time in hours",
    )

    __table_args__ = (
        CheckConstraint("assigned_requests >= 0", name="ck_maintenance_worker_assigned"),
        CheckConstraint("completed_requests >= 0", name="ck_maintenance_worker_completed"),
    )

    def has_specialty(self, request_type: Union[MaintenanceType, str]) -> bool:
        value = request_type.value if isinstance(request_type, MaintenanceType) else request_type
        return value in (self.specialties or [])

    def __repr__(self) -> str:
        return f"<MaintenanceWorker(id={self.id}, name={self.name}, availability={self.availability})>"
