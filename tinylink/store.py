"""Link storage backends.

``LinkStore`` is the interface the service is written against. The SQL
implementation is the one the app runs on; the in-memory one backs tests
and local experiments.
"""

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from . import crud, models
from .database import Base, make_session_factory
from .errors import ConflictError, StorageError

logger = logging.getLogger(__name__)


class LinkStore(ABC):
    """Persistence operations over the links table."""

    def setup(self) -> None:
        """Prepare the backing storage (create tables and the like)."""

    @abstractmethod
    def insert(self, code: str, target_url: str) -> models.Link:
        """Persist a new link.

        Raises:
            ConflictError: if ``code`` is already taken
            StorageError: on any other storage failure
        """

    @abstractmethod
    def find_by_code(self, code: str) -> models.Link | None:
        pass

    @abstractmethod
    def list_all(self, q: str | None = None) -> list[models.Link]:
        """Return links newest first, optionally filtered by a substring of
        the code or target URL (case-insensitive)."""

    @abstractmethod
    def delete_by_code(self, code: str) -> bool:
        """Remove a link. Returns False when no link had that code."""

    @abstractmethod
    def increment_clicks(self, code: str) -> str | None:
        """Atomically count one click, stamp it with the current time and
        return the target URL.

        Returns None when the code is unknown.
        """


class SqlLinkStore(LinkStore):
    def __init__(self, engine):
        self.engine = engine
        self.session_factory = make_session_factory(engine)

    def setup(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def _session(self):
        db = self.session_factory()
        try:
            yield db
        except IntegrityError as exc:
            db.rollback()
            raise ConflictError("Code already exists") from exc
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Storage failure")
            raise StorageError("Storage failure") from exc
        finally:
            db.close()

    def insert(self, code: str, target_url: str) -> models.Link:
        with self._session() as db:
            return crud.create_link(db, code, target_url)

    def find_by_code(self, code: str) -> models.Link | None:
        with self._session() as db:
            return crud.get_link(db, code)

    def list_all(self, q: str | None = None) -> list[models.Link]:
        with self._session() as db:
            return crud.get_links(db, q)

    def delete_by_code(self, code: str) -> bool:
        with self._session() as db:
            return crud.delete_link(db, code)

    def increment_clicks(self, code: str) -> str | None:
        with self._session() as db:
            return crud.increment_click(db, code)


class MemoryLinkStore(LinkStore):
    """Dict-backed store. Rows are copied in and out so callers never share
    mutable state with the store."""

    def __init__(self):
        self._rows: dict[str, dict] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def insert(self, code: str, target_url: str) -> models.Link:
        with self._lock:
            if code in self._rows:
                raise ConflictError("Code already exists")
            row = {
                "id": self._next_id,
                "code": code,
                "target_url": target_url,
                "total_clicks": 0,
                "last_clicked_at": None,
                "created_at": models.utcnow(),
            }
            self._next_id += 1
            self._rows[code] = row
            return models.Link(**row)

    def find_by_code(self, code: str) -> models.Link | None:
        with self._lock:
            row = self._rows.get(code)
            return models.Link(**row) if row else None

    def list_all(self, q: str | None = None) -> list[models.Link]:
        with self._lock:
            rows = list(self._rows.values())
        if q:
            needle = q.lower()
            rows = [
                row for row in rows
                if needle in row["code"].lower() or needle in row["target_url"].lower()
            ]
        rows.sort(key=lambda row: (row["created_at"], row["id"]), reverse=True)
        return [models.Link(**row) for row in rows]

    def delete_by_code(self, code: str) -> bool:
        with self._lock:
            return self._rows.pop(code, None) is not None

    def increment_clicks(self, code: str) -> str | None:
        with self._lock:
            row = self._rows.get(code)
            if row is None:
                return None
            row["total_clicks"] += 1
            row["last_clicked_at"] = models.utcnow()
            return row["target_url"]
