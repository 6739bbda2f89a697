import asyncio
import re
import unittest

from application.registry import AccountRegistry
from application.services import (
    DUPLICATE_TOKEN_NOTICE,
    RegistrationRequest,
    register_account,
)
from domain.models import MessageRef
from infrastructure.otp.steam_guard import SteamGuardCodeGenerator

from fakes import FakeMessageGateway, InMemoryAccountRepository, MutableClock

SECRET = "ABCD1234EFGH5678"
STEAM_CODE = re.compile(r"^[0-9A-Z]{5,8}$")


def make_request(account_name="Main", shared_secret=SECRET, owner_id=42, message_id=7):
    return RegistrationRequest(
        account_name=account_name,
        shared_secret=shared_secret,
        owner_id=owner_id,
        chat_id=owner_id,
        request_message_id=message_id,
    )


class RegisterAccountTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.registry = AccountRegistry()
        self.repo = InMemoryAccountRepository()
        self.gateway = FakeMessageGateway()
        self.clock = MutableClock(1_700_000_010)
        self.code_generator = SteamGuardCodeGenerator(clock=self.clock)

    async def register(self, request, notice_ttl=0):
        return await register_account(
            request,
            self.registry,
            self.repo,
            self.code_generator,
            self.gateway,
            notice_ttl=notice_ttl,
        )

    async def test_new_account_is_published_stored_and_registered(self):
        result = await self.register(make_request())

        self.assertTrue(result.success)
        self.assertEqual(len(self.gateway.sent_codes), 1)
        chat_id, account_name, code = self.gateway.sent_codes[0]
        self.assertEqual(chat_id, 42)
        self.assertEqual(account_name, "Main")
        self.assertRegex(code, STEAM_CODE)

        self.assertEqual(len(self.repo.rows), 1)
        stored = self.repo.scan_all()[0]
        self.assertEqual(stored.owner_id, 42)
        self.assertEqual(stored.message_ref, result.account.message_ref)

        self.assertEqual(len(self.registry), 1)
        self.assertEqual(self.registry.snapshot()[0].id, stored.id)

    async def test_request_message_is_deleted_after_success(self):
        await self.register(make_request(message_id=7))

        self.assertEqual(self.gateway.deleted, [MessageRef(chat_id=42, message_id=7)])

    async def test_duplicate_token_sends_transient_notice_only(self):
        await self.register(make_request())
        self.gateway.deleted.clear()

        result = await self.register(make_request(account_name="Other", message_id=8))

        self.assertFalse(result.success)
        self.assertTrue(result.duplicate)
        self.assertEqual(self.gateway.notices, [(42, DUPLICATE_TOKEN_NOTICE)])
        # Both the request and the notice are removed.
        self.assertEqual(len(self.gateway.deleted), 2)
        self.assertIn(MessageRef(chat_id=42, message_id=8), self.gateway.deleted)
        self.assertEqual(len(self.gateway.sent_codes), 1)
        self.assertEqual(len(self.repo.rows), 1)
        self.assertEqual(len(self.registry), 1)

    async def test_same_token_from_another_owner_is_accepted(self):
        await self.register(make_request(owner_id=42))
        result = await self.register(make_request(owner_id=43))

        self.assertTrue(result.success)
        self.assertEqual(len(self.registry), 2)

    async def test_missing_account_name(self):
        result = await self.register(make_request(account_name=""))

        self.assertFalse(result.success)
        self.assertEqual(result.error_message, "Please provide account name")
        self.assertEqual(self.gateway.sent_codes, [])
        self.assertEqual(len(self.registry), 0)

    async def test_missing_token(self):
        result = await self.register(make_request(shared_secret=""))

        self.assertFalse(result.success)
        self.assertEqual(result.error_message, "Please provide token")
        self.assertEqual(self.repo.rows, {})

    async def test_undecodable_secret_changes_nothing(self):
        result = await self.register(make_request(shared_secret="not a secret!"))

        self.assertFalse(result.success)
        self.assertEqual(result.error_message, "Token is not a valid shared secret")
        self.assertEqual(self.gateway.sent_codes, [])
        self.assertEqual(self.repo.rows, {})
        self.assertEqual(len(self.registry), 0)

    async def test_storage_failure_leaves_published_message_and_registry_untouched(self):
        self.repo.fail_inserts = True

        result = await self.register(make_request())

        self.assertFalse(result.success)
        self.assertIn("Failed to save account", result.error_message)
        self.assertEqual(len(self.gateway.sent_codes), 1)
        self.assertEqual(len(self.registry), 0)
        self.assertEqual(self.gateway.deleted, [])


    async def test_undeletable_request_does_not_fail_a_stored_registration(self):
        self.gateway.undeletable_message_ids.add(7)

        result = await self.register(make_request(message_id=7))

        self.assertTrue(result.success)
        self.assertEqual(len(self.registry), 1)
        self.assertEqual(len(self.repo.rows), 1)

    async def test_notice_is_removed_even_if_the_request_cannot_be(self):
        await self.register(make_request(message_id=7))
        self.gateway.deleted.clear()
        self.gateway.undeletable_message_ids.add(8)

        result = await self.register(make_request(message_id=8))

        self.assertTrue(result.duplicate)
        self.assertEqual(self.gateway.deleted, self.gateway.notice_refs)

    async def test_duplicate_notice_stays_until_its_ttl_elapses(self):
        await self.register(make_request(message_id=7))
        self.gateway.deleted.clear()
        loop = asyncio.get_running_loop()
        started = loop.time()

        task = asyncio.create_task(self.register(make_request(message_id=8), notice_ttl=0.3))
        await asyncio.sleep(0.1)

        self.assertEqual(len(self.gateway.notices), 1)
        self.assertEqual(self.gateway.deleted, [])

        result = await asyncio.wait_for(task, timeout=5)

        self.assertTrue(result.duplicate)
        self.assertGreaterEqual(loop.time() - started, 0.3)
        self.assertEqual(len(self.gateway.deleted), 2)


if __name__ == "__main__":
    unittest.main()
