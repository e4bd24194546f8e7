"""Generic document table backing the SQL document store."""
from sqlalchemy import JSON, Column, DateTime, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from app.db.base import Base


class DocumentRow(Base):
    """One document of a named collection, stored as a JSON blob."""

    __tablename__ = "documents"

    collection = Column(String(64), primary_key=True)
    doc_id = Column(String(128), primary_key=True)
    data = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (Index("ix_documents_collection", "collection"),)
