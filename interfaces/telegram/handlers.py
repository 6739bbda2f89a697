from __future__ import annotations

import logging

from telebot.async_telebot import AsyncTeleBot

from application.registry import AccountRegistry
from application.services import (
    DEFAULT_NOTICE_TTL_SECONDS,
    RegistrationRequest,
    register_account,
)
from domain.gateways import CodeGenerator
from domain.repositories import AccountRepository
from interfaces.telegram.command_args import CODE_USAGE, parse_code_args
from interfaces.telegram.gateway import TelegramMessageGateway

logger = logging.getLogger(__name__)


def _build_registration_request(message, account_name: str, token: str) -> RegistrationRequest:
    """Extract a channel-agnostic request object from a Telegram message."""

    return RegistrationRequest(
        account_name=account_name,
        shared_secret=token,
        owner_id=message.from_user.id,
        chat_id=message.chat.id,
        request_message_id=message.message_id,
    )


def create_telegram_bot(
    bot_token: str,
    registry: AccountRegistry,
    account_repo: AccountRepository,
    code_generator: CodeGenerator,
    notice_ttl: float = DEFAULT_NOTICE_TTL_SECONDS,
) -> AsyncTeleBot:
    """
    Configure and return an AsyncTeleBot instance wired to the application layer.

    This module contains only Telegram-specific concerns: parsing Telegram
    commands and mapping them to/from application services.
    """

    bot = AsyncTeleBot(bot_token)
    gateway = TelegramMessageGateway(bot)

    @bot.message_handler(commands=["start"])
    async def handle_start(message):
        await bot.send_message(message.chat.id, "Hello, I'm a steam code bot")
        await bot.send_message(message.chat.id, CODE_USAGE)

    @bot.message_handler(commands=["help"])
    async def handle_help(message):
        await bot.send_message(message.chat.id, CODE_USAGE)

    @bot.message_handler(commands=["code"])
    async def handle_code(message):
        args = parse_code_args(message.text or "")
        if args is None:
            await bot.send_message(message.chat.id, CODE_USAGE)
            return

        request = _build_registration_request(message, *args)

        try:
            result = await register_account(
                request,
                registry,
                account_repo,
                code_generator,
                gateway,
                notice_ttl=notice_ttl,
            )
        except Exception as exc:
            logger.exception("Registration failed for owner %s", request.owner_id)
            await bot.send_message(message.chat.id, str(exc))
            return

        if not result.success and result.error_message:
            await bot.send_message(message.chat.id, result.error_message)

    return bot
