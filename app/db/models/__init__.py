"""Database models package."""
from app.db.models.document import DocumentRow

__all__ = ["DocumentRow"]
