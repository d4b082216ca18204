"""Base model package."""

from komuniteti.models.base.base_model import Base, BaseModel, TimestampModel
from komuniteti.models.base.types import enum_column

__all__ = ["Base", "BaseModel", "TimestampModel", "enum_column"]
