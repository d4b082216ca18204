"""SQLAlchemy Base class for all models."""

from komuniteti.models.base.base_model import Base


def import_models():
    """Import all models to register them with SQLAlchemy."""
    import komuniteti.models.maintenance  # noqa: F401

    return Base


__all__ = ["Base", "import_models"]
