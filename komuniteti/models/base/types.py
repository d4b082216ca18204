"""
Custom column types.
"""

from enum import Enum as PyEnum
from typing import Type

from sqlalchemy import Enum


def enum_column(enum_cls: Type[PyEnum], name: str) -> Enum:
    """
    Enum column type persisting member values rather than member names,
    so stored data matches the wire contract (e.g. "in-progress").
    """
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )
