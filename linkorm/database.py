import sqlite3
import logging
from contextlib import contextmanager

from linkorm.errors import DatabaseError


class DatabaseEngine:
    dialect = "sqlite"
    logger = logging.getLogger("LinkORM")

    def __init__(self, db_path=":memory:", echo=True):
        self.db_path = db_path
        self.echo = echo
        # autocommit mode, transactions are opened explicitly with BEGIN
        self.connection = sqlite3.connect(db_path, isolation_level=None, check_same_thread=False)
        self.connection.row_factory = sqlite3.Row
        self.connection.execute("PRAGMA foreign_keys = ON")
        self._transaction_depth = 0

    def _log(self, sql, params=None):
        if not self.echo:
            return
        msg = f"[SQL EXECUTE]: {sql}"
        if params:
            msg += f" | [PARAMS]: {params}"
        self.logger.info(msg)

    def _run(self, sql, params):
        self._log(sql, params)
        cursor = self.connection.cursor()
        try:
            cursor.execute(sql, params or ())
        except sqlite3.Error as e:
            raise DatabaseError(str(e), details={"sql": sql, "params": list(params or ())}) from e
        return cursor

    def execute(self, sql, params=None):
        return self._run(sql, params).fetchall()

    def execute_insert(self, sql, params=None):
        return self._run(sql, params).lastrowid

    def execute_write(self, sql, params=None):
        """Run an UPDATE/DELETE and return the number of affected rows."""
        return self._run(sql, params).rowcount

    @property
    def in_transaction(self):
        return self._transaction_depth > 0

    @contextmanager
    def transaction(self):
        """Group statements in one transaction. Nested blocks join the outer one."""
        outermost = self._transaction_depth == 0
        if outermost:
            self._run("BEGIN TRANSACTION", None)
        self._transaction_depth += 1
        try:
            yield self
        except Exception:
            self._transaction_depth -= 1
            if outermost:
                self.rollback()
            raise
        else:
            self._transaction_depth -= 1
            if outermost:
                self.commit()

    def commit(self):
        if self.connection.in_transaction:
            self._log("COMMIT")
            self.connection.commit()

    def rollback(self):
        if self.connection.in_transaction:
            self._log("ROLLBACK")
            self.connection.rollback()

    def close(self):
        self.connection.close()
