from __future__ import annotations

import shlex
from typing import List, Optional

CODE_USAGE = 'Usage: /code "<account_name>" "<token>"'


def parse_command_args(text: str) -> Optional[List[str]]:
    """
    Split the arguments of a bot command on whitespace.

    Only double quotes group words, so apostrophes and backslashes are kept
    as typed: `/code "My main" ABC=` -> ["My main", "ABC="].

    Returns None if a double quote is left open.
    """

    _, _, payload = text.partition(" ")
    lexer = shlex.shlex(payload, posix=True)
    lexer.whitespace_split = True
    lexer.quotes = '"'
    lexer.escape = ""
    lexer.commenters = ""
    try:
        return list(lexer)
    except ValueError:
        return None


def parse_code_args(text: str) -> Optional[tuple[str, str]]:
    """
    Return `(account_name, token)` for a `/code` command.

    Either value may be empty (e.g. `/code "" ABC=`); the application layer
    reports which one is missing. Returns None when fewer than two arguments
    were given, in which case the caller should show `CODE_USAGE`.
    """

    args = parse_command_args(text)
    if args is None or len(args) < 2:
        return None
    return args[0], args[1]
