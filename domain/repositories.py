from __future__ import annotations

from typing import List, Protocol

from .models import Account, MessageRef


class AccountRepository(Protocol):
    """
    Persistence abstraction for registered accounts.

    Implementations are responsible for:
    - Mapping between database rows and the `Account` domain model.
    - Hiding any SQL / driver details from the application layer by
      raising `StorageError` instead of driver exceptions.
    """

    def ensure_schema(self) -> None:
        """Create the backing table if it does not exist yet."""

        ...

    def insert(
        self,
        account_name: str,
        shared_secret: str,
        owner_id: int,
        message_ref: MessageRef,
    ) -> int:
        """Persist a new account and return its internal ID."""

        ...

    def scan_all(self) -> List[Account]:
        """Return every stored account, in no particular order."""

        ...
