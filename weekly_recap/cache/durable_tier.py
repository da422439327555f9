"""
Durable cache tier backed by a SQL document table.

Holds every record across restarts. Failures never propagate: an unreachable
store reads as empty and writes are dropped, so callers keep serving from the
hot tier.
"""
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from weekly_recap.db import get_engine, init_db, make_session_factory
from weekly_recap.models import CacheDocument

from .core import CacheKey, CacheRecord, RecordKind

logger = logging.getLogger("cache.durable")

DEFAULT_DELETE_BATCH_SIZE = 500
COLLECTIONS = tuple(f"{kind.value}s" for kind in RecordKind)
_PING_COLLECTION = "_test"


class DurableTier:
    """
    Unbounded key -> document store.

    Documents live in one collection per record kind ("weeks", "years")
    under a single namespace. Each write is its own transaction.
    """

    def __init__(self, engine: Engine, namespace: str):
        self.engine = engine
        self.namespace = namespace
        self._session_factory = make_session_factory(engine)

    @classmethod
    def from_settings(cls, settings) -> Optional["DurableTier"]:
        """
        Connect using application settings.

        Returns None (tier disabled) when not configured or unreachable.
        """
        if not settings.cache_enabled:
            logger.info("Durable cache disabled by configuration")
            return None
        if not settings.cache_project_id:
            logger.warning("CACHE_PROJECT_ID not set, durable cache will be disabled")
            return None

        credentials = settings.cache_credentials_path
        if credentials is not None:
            if not credentials.exists():
                logger.warning(
                    f"Credentials file {credentials} not found, durable cache will be disabled"
                )
                return None
            logger.info(f"Using credentials file: {credentials}")

        try:
            engine = get_engine(settings.cache_database_url)
            init_db(engine)
        except (SQLAlchemyError, ImportError) as e:
            # ImportError: the URL names a database driver that is not installed
            logger.error(f"Failed to initialize durable cache: {e}")
            return None

        tier = cls(engine, settings.cache_project_id)
        if not tier.ping():
            logger.error("Durable cache unreachable, durable cache will be disabled")
            return None

        logger.info(f"Durable cache connected for project: {settings.cache_project_id}")
        return tier

    @contextmanager
    def _session(self) -> Iterator[Session]:
        """Session committed on success, rolled back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def _doc_key(self, key: CacheKey):
        return (self.namespace, key.collection, str(key))

    def get(self, key: CacheKey) -> Optional[CacheRecord]:
        try:
            with self._session() as session:
                doc = session.get(CacheDocument, self._doc_key(key))
                if doc is None:
                    return None
                document = doc.to_document()
        except SQLAlchemyError as e:
            logger.error(f"Error reading {key} from durable cache: {e}")
            return None

        try:
            return CacheRecord.from_document(document)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Corrupt durable cache document for {key}: {e}")
            return None

    def set(self, key: CacheKey, record: CacheRecord) -> bool:
        """Overwrite the document for a key. Returns False if the write failed."""
        document = record.to_document()
        try:
            with self._session() as session:
                session.merge(CacheDocument(
                    namespace=self.namespace,
                    collection=key.collection,
                    doc_id=str(key),
                    payload=document["payload"],
                    cached_at=document["cachedAt"],
                    expires_at=document["expiresAt"],
                ))
        except (SQLAlchemyError, TypeError, ValueError) as e:
            logger.error(f"Error writing {key} to durable cache: {e}")
            return False
        logger.debug(f"Wrote {key} to durable cache")
        return True

    def delete(self, key: CacheKey) -> bool:
        """Remove a key. Missing keys are not an error."""
        try:
            with self._session() as session:
                doc = session.get(CacheDocument, self._doc_key(key))
                if doc is not None:
                    session.delete(doc)
        except SQLAlchemyError as e:
            logger.error(f"Error deleting {key} from durable cache: {e}")
            return False
        return True

    def delete_all(self, batch_size: int = DEFAULT_DELETE_BATCH_SIZE) -> int:
        """
        Delete every document in this namespace, one batch per transaction.

        A failure stops the sweep; batches already committed stay deleted.

        Returns:
            Number of documents deleted
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")

        deleted = 0
        for collection in COLLECTIONS:
            try:
                deleted += self._delete_collection(collection, batch_size)
            except SQLAlchemyError as e:
                logger.error(
                    f"Error clearing durable collection '{collection}' "
                    f"({deleted} documents deleted before failure): {e}"
                )
                return deleted
        logger.info(f"Cleared {deleted} documents from durable cache")
        return deleted

    def _delete_collection(self, collection: str, batch_size: int) -> int:
        deleted = 0
        while True:
            with self._session() as session:
                doc_ids = session.scalars(
                    select(CacheDocument.doc_id)
                    .where(CacheDocument.namespace == self.namespace)
                    .where(CacheDocument.collection == collection)
                    .limit(batch_size)
                ).all()
                if not doc_ids:
                    return deleted
                session.execute(
                    delete(CacheDocument)
                    .where(CacheDocument.namespace == self.namespace)
                    .where(CacheDocument.collection == collection)
                    .where(CacheDocument.doc_id.in_(doc_ids))
                )
            deleted += len(doc_ids)
            logger.debug(f"Deleted batch of {len(doc_ids)} from '{collection}'")

    def ping(self) -> bool:
        """Write and delete a probe document to test the connection."""
        probe = (self.namespace, _PING_COLLECTION, "connection")
        try:
            with self._session() as session:
                session.merge(CacheDocument(
                    namespace=probe[0],
                    collection=probe[1],
                    doc_id=probe[2],
                    payload={},
                    cached_at="",
                ))
            with self._session() as session:
                doc = session.get(CacheDocument, probe)
                if doc is not None:
                    session.delete(doc)
        except SQLAlchemyError as e:
            logger.error(f"Durable cache connection test failed: {e}")
            return False
        logger.info("Durable cache connection test successful")
        return True
