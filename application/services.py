from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from application.registry import AccountRegistry
from domain.errors import InvalidSecretError, StorageError
from domain.gateways import CodeGenerator, MessageGateway
from domain.models import Account, MessageRef
from domain.repositories import AccountRepository

logger = logging.getLogger(__name__)

DEFAULT_NOTICE_TTL_SECONDS = 5.0

DUPLICATE_TOKEN_NOTICE = "Token already exists"


@dataclass
class RegistrationRequest:
    """
    A `/code` request as seen by the application layer.

    The application layer never depends on concrete SDK types; the
    interface layer copies what it needs from the incoming chat message.
    """

    account_name: str
    shared_secret: str
    owner_id: int
    chat_id: int
    request_message_id: int

    @property
    def request_ref(self) -> MessageRef:
        return MessageRef(chat_id=self.chat_id, message_id=self.request_message_id)


@dataclass
class RegistrationResult:
    """Outcome of a registration attempt."""

    success: bool
    error_message: Optional[str] = None
    account: Optional[Account] = None
    duplicate: bool = False


def _validate_request(request: RegistrationRequest) -> Optional[str]:
    if not request.account_name:
        return "Please provide account name"
    if not request.shared_secret:
        return "Please provide token"
    return None


async def _delete_or_warn(gateway: MessageGateway, ref: MessageRef) -> None:
    # A message the user already removed must not fail the request.
    try:
        await gateway.delete_message(ref)
    except Exception as exc:
        logger.warning(
            "Could not delete message %s in chat %s: %s",
            ref.message_id,
            ref.chat_id,
            exc,
        )


async def _send_transient_notice(
    gateway: MessageGateway,
    request: RegistrationRequest,
    text: str,
    ttl: float,
) -> None:
    notice = await gateway.send_notice(request.chat_id, text)
    await asyncio.sleep(ttl)
    await _delete_or_warn(gateway, notice)
    await _delete_or_warn(gateway, request.request_ref)


async def register_account(
    request: RegistrationRequest,
    registry: AccountRegistry,
    account_repo: AccountRepository,
    code_generator: CodeGenerator,
    gateway: MessageGateway,
    notice_ttl: float = DEFAULT_NOTICE_TTL_SECONDS,
) -> RegistrationResult:
    """
    Register an account and publish its first code.

    Side effects happen in a fixed order:
    - The code message is published.
    - The account is persisted with a reference to that message.
    - The account is appended to the registry.
    - The request message (which contains the secret) is deleted.

    If persisting fails the published message is left in the chat and the
    registry is not touched.
    """

    error = _validate_request(request)
    if error:
        return RegistrationResult(success=False, error_message=error)

    if registry.exists(request.shared_secret, request.owner_id):
        logger.info("Duplicate token from owner %s ignored", request.owner_id)
        await _send_transient_notice(
            gateway, request, DUPLICATE_TOKEN_NOTICE, notice_ttl
        )
        return RegistrationResult(success=False, duplicate=True)

    try:
        code = code_generator.generate_code(request.shared_secret)
    except InvalidSecretError:
        return RegistrationResult(
            success=False, error_message="Token is not a valid shared secret"
        )

    message_ref = await gateway.send_code_message(
        request.chat_id, request.account_name, code
    )

    try:
        account_id = await asyncio.to_thread(
            account_repo.insert,
            request.account_name,
            request.shared_secret,
            request.owner_id,
            message_ref,
        )
    except StorageError as exc:
        logger.exception(
            "Failed to persist account for owner %s (message %s orphaned)",
            request.owner_id,
            message_ref.message_id,
        )
        return RegistrationResult(
            success=False, error_message=f"Failed to save account: {exc}"
        )

    account = Account(
        id=account_id,
        account_name=request.account_name,
        shared_secret=request.shared_secret,
        owner_id=request.owner_id,
        message_ref=message_ref,
    )
    registry.append(account)
    logger.info("Registered account %s for owner %s", account.id, account.owner_id)

    await _delete_or_warn(gateway, request.request_ref)

    return RegistrationResult(success=True, account=account)
