"""Declarative base for EduSphere LTI SQLAlchemy models."""

from sqlalchemy.orm import DeclarativeBase


class BaseEntity(DeclarativeBase):
    """Base class for all LTI database entities."""
