from .migrations import setupDB
from .schema import schema
from .defaults import build_default_list

import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from retry import retry

from typing import Any, ClassVar, Iterator, Literal, Tuple, Type

from plantshop.utils.logging import get_logger

logger = get_logger(__name__)

SQLITE_PREFIX = "sqlite:///"


class DBClient:
    """
    SQLite access for the whole app. Every ``connection()`` opens a fresh
    connection, so the client is safe to share between request threads.
    """
    OperationalError: ClassVar[Type[BaseException]] = sqlite3.OperationalError
    ProgrammingError: ClassVar[Type[BaseException]] = sqlite3.ProgrammingError
    IntegrityError: ClassVar[Type[BaseException]] = sqlite3.IntegrityError

    def __init__(self):
        self.path: str | None = None

    def init_app(self, app):
        uri = app.config.get("DATABASE_URI")
        if not uri:
            raise RuntimeError("DATABASE_URI is not configured")
        if not uri.startswith(SQLITE_PREFIX):
            raise ValueError(f"Only sqlite:/// URIs are supported, got {uri}")
        location = uri[len(SQLITE_PREFIX):]
        if location in ("", ":memory:"):
            raise ValueError("In-memory SQLite is not supported, every call opens a new connection")
        self.path = str(Path(location).expanduser().resolve())
        os.makedirs(os.path.dirname(self.path), exist_ok=True)
        app.extensions["db"] = self
        logger.debug("Database at %s", self.path)

    def checkDB(self, schema=schema):
        setupDB(schema, self)

    @staticmethod
    def _row_to_dict(cursor, row):
        return {column[0]: value for column, value in zip(cursor.description, row)}

    @retry(exceptions=sqlite3.OperationalError, tries=3, delay=1, backoff=2, logger=logger)
    def _connect(self) -> Tuple[sqlite3.Connection, sqlite3.Cursor]:
        """Open a connection; a locked or busy database file is retried."""
        if self.path is None:
            raise RuntimeError("DBClient.init_app() has not been called")
        conn = sqlite3.connect(self.path, timeout=30, check_same_thread=False)
        conn.execute("PRAGMA journal_mode = WAL")
        conn.row_factory = self._row_to_dict
        return conn, conn.cursor()

    @contextmanager
    def connection(self, autocommit: bool = True) -> Iterator[Tuple[Any, Any]]:
        """
        with db.connection() as (conn, cur):
            cur.execute("SELECT * FROM product_table WHERE id = ?", (product_id,))
            product = cur.fetchone()

        Commits on exit unless ``autocommit`` is False. Any exception rolls
        the connection back before it propagates.
        """
        conn, cur = self._connect()
        try:
            yield conn, cur
            if autocommit:
                conn.commit()
        except Exception as e:
            conn.rollback()
            if isinstance(e, self.IntegrityError):
                logger.info(f"Constraint violated: {e}")
            elif isinstance(e, self.ProgrammingError):
                logger.error(f"Bad SQL: {e}")
            elif isinstance(e, self.OperationalError):
                logger.warning(f"SQLite operational error: {e}")
            raise
        finally:
            cur.close()
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[Any]:
        """
        Write transaction for multi-statement business operations.
        BEGIN IMMEDIATE takes the write lock up front, so concurrent
        read-modify-write sequences on stock, balances and promo counters
        serialize. Yields the cursor.
        """
        with self.connection() as (conn, cur):
            cur.execute("BEGIN IMMEDIATE")
            yield cur

    def execute(
        self,
        query: str,
        params: tuple | dict | None = None,
        fetch: Literal["all", "one", "none"] = "all",
    ) -> Any:
        with self.connection() as (conn, cur):
            cur.execute(query, params or ())
            if fetch == "none":
                return None
            return cur.fetchone() if fetch == "one" else cur.fetchall()

    @staticmethod
    def is_duplicate(exc: Exception, column: str | None = None) -> bool:
        """True for a UNIQUE constraint failure, optionally on ``column``."""
        message = str(exc).lower()
        if "unique constraint failed" not in message:
            return False
        return column is None or f".{column.lower()}" in message


db = DBClient()
