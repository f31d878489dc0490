from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, ContextManager, Iterator, Optional, Protocol

import mysql.connector
from mysql.connector.constants import ClientFlag

from .errors import translate_errors

# Connection of the transaction running in the current context (thread / request).
_current_connection: ContextVar[Optional[Any]] = ContextVar("hr_operations_connection", default=None)


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str


class TransactionManager(Protocol):
    """What services need from the store: a unit of work with rollback-on-exception."""

    def transaction(self) -> ContextManager[Any]:
        raise NotImplementedError


class DatabaseConnection:
    """Singleton-like DB connection factory.

    Note: Outside a transaction we create short-lived connections per operation.
    Inside ``transaction()`` every repository call shares one connection, which is
    committed when the block exits and rolled back if it raises.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
            autocommit=False,
            # rowcount of UPDATE reports matched rows, not only changed ones.
            client_flags=[ClientFlag.FOUND_ROWS],
        )

    def current(self):
        return _current_connection.get()

    @contextmanager
    def transaction(self) -> Iterator[Any]:
        existing = _current_connection.get()
        if existing is not None:
            # Nested blocks join the outer transaction.
            yield existing
            return

        with translate_errors():
            conn = self.connect()
            conn.start_transaction()
        token = _current_connection.set(conn)
        try:
            try:
                yield conn
                with translate_errors():
                    conn.commit()
            except BaseException:
                conn.rollback()
                raise
        finally:
            _current_connection.reset(token)
            conn.close()
