"""Argument-string helpers shared by the runner and the command builder.

External tools are invoked with a single argument *string*, the way a
user would type it.  These helpers are the only place that knows how
that string maps onto an argv list.
"""

from __future__ import annotations

import os
import shlex

_QUOTE_TRIGGERS: frozenset[str] = frozenset(' \t\n"\'')


def quote(value: str, *, posix: bool | None = None) -> str:
    """Wrap *value* in double quotes when it holds whitespace or quotes.

    Embedded double quotes (and, under POSIX rules, backslashes) are
    escaped so that :func:`split_arguments` recovers *value* exactly.
    """
    if value and not any(ch in _QUOTE_TRIGGERS for ch in value):
        return value
    if posix is None:
        posix = os.name != "nt"
    escaped = value.replace("\\", "\\\\") if posix else value
    escaped = escaped.replace('"', '\\"')
    return f'"{escaped}"'


def split_arguments(arguments: str | None, *, posix: bool | None = None) -> list[str]:
    """Split an argument string into argv tokens.

    POSIX rules are used everywhere except Windows, where backslashes
    are path separators rather than escapes.
    """
    if not arguments:
        return []
    if posix is None:
        posix = os.name != "nt"
    if posix:
        return shlex.split(arguments)
    return [_strip_quotes(token) for token in shlex.split(arguments, posix=False)]


def join_arguments(*parts: str) -> str:
    """Join pre-quoted fragments, skipping empty ones."""
    return " ".join(part for part in parts if part)


def _strip_quotes(token: str) -> str:
    if len(token) >= 2 and token[0] == token[-1] and token[0] in "\"'":
        return token[1:-1].replace('\\"', '"')
    return token
