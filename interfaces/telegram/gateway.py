from __future__ import annotations

from telebot.async_telebot import AsyncTeleBot

from domain.gateways import MessageGateway
from domain.models import MessageRef
from interfaces.telegram.formatting import PARSE_MODE, format_code_message


class TelegramMessageGateway(MessageGateway):
    """`MessageGateway` backed by the Telegram Bot API."""

    def __init__(self, bot: AsyncTeleBot) -> None:
        self._bot = bot

    async def send_code_message(
        self, chat_id: int, account_name: str, code: str
    ) -> MessageRef:
        message = await self._bot.send_message(
            chat_id,
            format_code_message(account_name, code),
            parse_mode=PARSE_MODE,
        )
        return MessageRef(chat_id=message.chat.id, message_id=message.message_id)

    async def edit_code_message(
        self, ref: MessageRef, account_name: str, code: str
    ) -> None:
        await self._bot.edit_message_text(
            format_code_message(account_name, code),
            chat_id=ref.chat_id,
            message_id=ref.message_id,
            parse_mode=PARSE_MODE,
        )

    async def send_notice(self, chat_id: int, text: str) -> MessageRef:
        message = await self._bot.send_message(chat_id, text)
        return MessageRef(chat_id=message.chat.id, message_id=message.message_id)

    async def delete_message(self, ref: MessageRef) -> None:
        await self._bot.delete_message(ref.chat_id, ref.message_id)
