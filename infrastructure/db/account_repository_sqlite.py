from __future__ import annotations

import logging
import sqlite3
from typing import List

from domain.errors import StorageError
from domain.models import Account, MessageRef
from domain.repositories import AccountRepository

logger = logging.getLogger(__name__)


class SqliteAccountRepository(AccountRepository):
    """
    SQLite-backed implementation of `AccountRepository`.

    Manages the `accounts` table, which stores registered accounts together
    with the location of the message that shows their current code. It is
    self-initialising: the table is created if needed.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self.ensure_schema()

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def ensure_schema(self) -> None:
        try:
            with self._get_connection() as conn:
                cur = conn.cursor()
                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS accounts (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        account_name TEXT NOT NULL,
                        shared_secret TEXT NOT NULL,
                        chat_id INTEGER NOT NULL,
                        message_id INTEGER NOT NULL,
                        owner_id INTEGER NOT NULL,
                        UNIQUE (shared_secret, owner_id)
                    )
                    """
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot initialise accounts table: {exc}") from exc

    @staticmethod
    def _to_domain(row: sqlite3.Row) -> Account:
        return Account(
            id=int(row[0]),
            account_name=row[1],
            shared_secret=row[2],
            message_ref=MessageRef(chat_id=int(row[3]), message_id=int(row[4])),
            owner_id=int(row[5]),
        )

    def insert(
        self,
        account_name: str,
        shared_secret: str,
        owner_id: int,
        message_ref: MessageRef,
    ) -> int:
        try:
            with self._get_connection() as conn:
                cur = conn.cursor()
                cur.execute(
                    """
                    INSERT INTO accounts
                        (account_name, shared_secret, chat_id, message_id, owner_id)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        account_name,
                        shared_secret,
                        message_ref.chat_id,
                        message_ref.message_id,
                        owner_id,
                    ),
                )
                conn.commit()
                account_id = int(cur.lastrowid)
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot insert account: {exc}") from exc

        logger.debug("Stored account %s for owner %s", account_id, owner_id)
        return account_id

    def scan_all(self) -> List[Account]:
        try:
            with self._get_connection() as conn:
                cur = conn.cursor()
                cur.execute(
                    """
                    SELECT id, account_name, shared_secret, chat_id, message_id, owner_id
                    FROM accounts
                    """
                )
                rows = cur.fetchall()
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot read accounts: {exc}") from exc

        return [self._to_domain(row) for row in rows]
