"""
Database models for the durable cache tier.
SQLAlchemy ORM model storing one document per cache key.
"""
from sqlalchemy import Column, JSON, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class CacheDocument(Base):
    """
    Cache document - one row per key
    Rows are grouped into collections ("weeks", "years") under a namespace,
    which is the configured project id.
    """
    __tablename__ = "cache_documents"

    namespace = Column(String, primary_key=True)
    collection = Column(String, primary_key=True)
    doc_id = Column(String, primary_key=True)

    payload = Column(JSON, nullable=False)
    cached_at = Column(String, nullable=False)     # ISO timestamp
    expires_at = Column(String, nullable=True)     # ISO timestamp, NULL = never

    def to_document(self) -> dict:
        return {
            "payload": self.payload,
            "cachedAt": self.cached_at,
            "expiresAt": self.expires_at,
        }

    def __repr__(self):
        return f"<CacheDocument({self.namespace}/{self.collection}/{self.doc_id})>"
