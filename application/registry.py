from __future__ import annotations

from typing import Iterator, List, Sequence, Tuple

from domain.models import Account
from domain.repositories import AccountRepository


class AccountRegistry:
    """
    In-process view of every registered account.

    Loaded once from the store at startup and then kept in step with it by
    appending each account that has been persisted. It is the iteration
    source for code refreshes and the lookup table for duplicate checks.

    Only the event loop thread mutates the registry, so no lock is held.
    """

    def __init__(self) -> None:
        self._accounts: List[Account] = []
        self._loaded = False

    def load_all(self, repository: AccountRepository) -> Sequence[Account]:
        if self._loaded:
            raise RuntimeError("Account registry has already been loaded.")

        # StorageError propagates: the process cannot run without its accounts.
        accounts = repository.scan_all()
        self._accounts.extend(accounts)
        self._loaded = True
        return tuple(accounts)

    def exists(self, shared_secret: str, owner_id: int) -> bool:
        return any(
            account.shared_secret == shared_secret and account.owner_id == owner_id
            for account in self._accounts
        )

    def append(self, account: Account) -> None:
        self._accounts.append(account)

    def snapshot(self) -> Tuple[Account, ...]:
        return tuple(self._accounts)

    def __len__(self) -> int:
        return len(self._accounts)

    def __iter__(self) -> Iterator[Account]:
        return iter(self.snapshot())
