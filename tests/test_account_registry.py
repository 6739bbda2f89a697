import unittest

from application.registry import AccountRegistry
from domain.errors import StorageError
from domain.models import Account, MessageRef

from fakes import InMemoryAccountRepository


class UnavailableRepository(InMemoryAccountRepository):
    def scan_all(self):
        raise StorageError("unable to open database file")


def make_account(account_id, shared_secret="SECRET==", owner_id=42):
    return Account(
        id=account_id,
        account_name="Main",
        shared_secret=shared_secret,
        owner_id=owner_id,
        message_ref=MessageRef(chat_id=owner_id, message_id=account_id),
    )


class AccountRegistryTests(unittest.TestCase):
    def test_load_all_mirrors_the_store(self):
        repo = InMemoryAccountRepository()
        repo.insert("Main", "AAAA", 1, MessageRef(chat_id=1, message_id=5))
        repo.insert("Alt", "BBBB", 2, MessageRef(chat_id=2, message_id=6))
        registry = AccountRegistry()

        loaded = registry.load_all(repo)

        self.assertEqual(len(loaded), 2)
        self.assertEqual(len(registry), 2)
        self.assertTrue(registry.exists("BBBB", 2))

    def test_load_all_only_once(self):
        registry = AccountRegistry()
        registry.load_all(InMemoryAccountRepository())

        with self.assertRaises(RuntimeError):
            registry.load_all(InMemoryAccountRepository())

    def test_load_all_propagates_storage_errors(self):
        with self.assertRaises(StorageError):
            AccountRegistry().load_all(UnavailableRepository())

    def test_exists_is_scoped_to_owner(self):
        registry = AccountRegistry()
        registry.append(make_account(1, shared_secret="AAAA", owner_id=42))

        self.assertTrue(registry.exists("AAAA", 42))
        self.assertFalse(registry.exists("AAAA", 43))
        self.assertFalse(registry.exists("BBBB", 42))

    def test_snapshot_is_not_affected_by_later_appends(self):
        registry = AccountRegistry()
        registry.append(make_account(1))
        snapshot = registry.snapshot()

        registry.append(make_account(2))

        self.assertEqual(len(snapshot), 1)
        self.assertEqual([a.id for a in registry], [1, 2])

    def test_secret_is_hidden_from_repr(self):
        self.assertNotIn("SECRET==", repr(make_account(1)))


if __name__ == "__main__":
    unittest.main()
