from __future__ import annotations

from typing import Protocol

from .models import MessageRef


class CodeGenerator(Protocol):
    def generate_code(self, shared_secret: str) -> str:
        """
        Return the code for the current time window.

        Raises `InvalidSecretError` if the secret cannot be decoded.
        """

        ...


class MessageGateway(Protocol):
    """
    Outbound side of the chat platform.

    The application layer only deals in chat IDs and `MessageRef`s; how a
    code message is rendered is left to the implementation.
    """

    async def send_code_message(
        self, chat_id: int, account_name: str, code: str
    ) -> MessageRef:
        ...

    async def edit_code_message(
        self, ref: MessageRef, account_name: str, code: str
    ) -> None:
        ...

    async def send_notice(self, chat_id: int, text: str) -> MessageRef:
        ...

    async def delete_message(self, ref: MessageRef) -> None:
        ...
