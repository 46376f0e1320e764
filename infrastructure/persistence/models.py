"""
SQLAlchemy ORM Models for the Graph NLP Platform

Tables backing the SQLAlchemy persistence backend.

Key Features:
- Annotated texts stored as JSON documents keyed by an integer handle
- Caller ids unique per stored annotation, so re-persisting replaces in place
- Vectors attached to annotations under a property name
- One key/value table for pipelines, settings and workflow definitions, keyed
  by ``PIPELINE_<name>``, ``SETTING_<key>`` and ``WORKFLOW_TASK_<name>``

Author: Graph NLP Platform
Date: 2026
"""

from datetime import datetime

from sqlalchemy import (
    JSON, Column, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship

# Create the declarative base
Base = declarative_base()


class AnnotatedTextModel(Base):
    """Stored annotation of one text."""
    __tablename__ = "annotated_texts"

    handle = Column(Integer, primary_key=True, autoincrement=True)
    caller_id = Column(String(255), nullable=True, unique=True, comment="Caller-supplied identifier")
    version_token = Column(String(64), nullable=True)
    language = Column(String(16), nullable=True)
    text = Column(Text, nullable=False)
    document = Column(JSON, nullable=False, comment="Serialized AnnotatedText")

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    vectors = relationship(
        "AnnotatedTextVectorModel",
        back_populates="annotated_text",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index('idx_annotated_text_language', 'language'),
    )


class AnnotatedTextVectorModel(Base):
    """Vector attached to a stored annotation."""
    __tablename__ = "annotated_text_vectors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    handle = Column(
        Integer,
        ForeignKey('annotated_texts.handle', ondelete='CASCADE'),
        nullable=False,
    )
    property_name = Column(String(100), nullable=False)
    vector = Column(JSON, nullable=False)

    annotated_text = relationship("AnnotatedTextModel", back_populates="vectors")

    __table_args__ = (
        UniqueConstraint('handle', 'property_name', name='uq_vector_handle_property'),
    )


class ConfigurationEntryModel(Base):
    """One persisted configuration entry."""
    __tablename__ = "configuration_entries"

    key = Column(String(255), primary_key=True)
    value = Column(JSON, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
