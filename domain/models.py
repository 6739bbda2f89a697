from dataclasses import dataclass, field


@dataclass(frozen=True)
class MessageRef:
    """Location of a message previously sent by the bot (chat + message ID)."""

    chat_id: int
    message_id: int


@dataclass
class Account:
    """
    A Steam account registered by a chat user.

    The account's code is rendered into a single message that is edited in
    place on every refresh. `message_ref` points at that message and is
    fixed once the account has been registered.
    """

    id: int
    account_name: str
    shared_secret: str = field(repr=False)
    owner_id: int
    message_ref: MessageRef
