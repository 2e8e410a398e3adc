import copy
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..exceptions import StorageError
from ..infrastructure.database.tables import StateDocumentDBModel
from ..infrastructure.database.connection import get_engine, init_db

logger = logging.getLogger(__name__)


class Storage(ABC):
    """
    Durable key/value storage for state documents.
    A document is a JSON-compatible dict. Writes are last-write-wins per key;
    there is no optimistic-concurrency check.
    """

    @abstractmethod
    def read(self, keys: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        """Returns the stored documents for the keys that exist. Missing keys are omitted."""
        pass

    @abstractmethod
    def write(self, changes: Dict[str, Dict[str, Any]]):
        """Replaces the stored document of every key in 'changes', all or none."""
        pass

    @abstractmethod
    def delete(self, keys: Iterable[str]):
        """Removes the documents. Unknown keys are ignored."""
        pass


class InMemoryStorage(Storage):
    """
    Uses an in-memory dictionary for testing/dev purposes.
    Documents are deep-copied on the way in and out, so a turn never
    shares objects with the stored copy or with another turn.
    """

    def __init__(self):
        self._store: Dict[str, Dict[str, Any]] = {}

    def read(self, keys: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        return {
            key: copy.deepcopy(self._store[key])
            for key in keys
            if key in self._store
        }

    def write(self, changes: Dict[str, Dict[str, Any]]):
        self._store.update(copy.deepcopy(changes))

    def delete(self, keys: Iterable[str]):
        for key in keys:
            self._store.pop(key, None)

    def __len__(self) -> int:
        return len(self._store)


class SqlStorage(Storage):
    """
    SQL (PostgreSQL JSONB, or any SQLAlchemy database) storage for state documents.
    """

    def __init__(self, engine: Optional[Engine] = None, create_tables: bool = True):
        self.engine = engine or get_engine()
        if create_tables:
            init_db(self.engine)

    def read(self, keys: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        keys = list(keys)
        if not keys:
            return {}
        try:
            with Session(self.engine) as db:
                statement = select(StateDocumentDBModel).where(
                    StateDocumentDBModel.key.in_(keys)
                )
                return {row.key: row.document for row in db.exec(statement).all()}
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read state {keys}: {e}") from e

    def write(self, changes: Dict[str, Dict[str, Any]]):
        if not changes:
            return
        try:
            with Session(self.engine) as db:
                for key, document in changes.items():
                    row = db.get(StateDocumentDBModel, key)
                    if row:
                        # Update the JSON blob and the timestamp
                        row.document = document
                        row.updated_at = datetime.now(timezone.utc)
                    else:
                        row = StateDocumentDBModel(key=key, document=document)
                    db.add(row)
                db.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to write state {list(changes)}: {e}") from e
        logger.debug(f"Wrote {len(changes)} state document(s)")

    def delete(self, keys: Iterable[str]):
        try:
            with Session(self.engine) as db:
                for key in keys:
                    row = db.get(StateDocumentDBModel, key)
                    if row:
                        db.delete(row)
                db.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete state: {e}") from e
