"""Base repository infrastructure."""

from komuniteti.repositories.base.base_repository import BaseRepository, ModelType

__all__ = ["BaseRepository", "ModelType"]
