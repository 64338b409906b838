"""Terminal prompt for the manual matcher (prompt_toolkit-based).

The matcher is driven by short commands typed at a prompt. Parsing is a pure
function (:func:`parse_command`) so it can be tested without a terminal; the
prompt itself accepts an injected ``PromptSession`` so tests can feed keys
through a pipe input.

Commands
--------
``c 1 3``     toggle company records 1 and 3
``p 2-4``     toggle party records 2, 3 and 4 (commas also separate ids)
``m``         confirm the current selection as a match
``x``         clear both pending selections
``l``         list records again
``d``         done: finalize and show results
``q``         quit without results
``?``         help
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal, TypeAlias

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter

from .models import COMPANY, PARTY, Side

Action: TypeAlias = Literal["select", "confirm", "clear", "list", "done", "quit", "help"]

HELP_TEXT = """\
Commands:
  c <ids>   toggle company records (e.g. "c 1 3" or "c 2-4")
  p <ids>   toggle party records
  m         create match from the current selection
  x         clear the current selection
  l         list records again
  d         done - view results
  q         quit without results
  ?         show this help"""

_VERBS: dict[str, Action] = {
    "m": "confirm",
    "match": "confirm",
    "x": "clear",
    "clear": "clear",
    "l": "list",
    "ls": "list",
    "list": "list",
    "d": "done",
    "done": "done",
    "q": "quit",
    "quit": "quit",
    "exit": "quit",
    "?": "help",
    "h": "help",
    "help": "help",
}

_SIDE_VERBS: dict[str, Side] = {
    "c": COMPANY,
    "company": COMPANY,
    "p": PARTY,
    "party": PARTY,
}

_RANGE = re.compile(r"^(\d+)-(\d+)$")

# Widest "a-b" range accepted in one command.
MAX_RANGE_SIZE = 1000


@dataclass(frozen=True, slots=True)
class MatchCommand:
    action: Action
    side: Side | None = None
    ids: tuple[int, ...] = ()


def parse_ids(text: str) -> tuple[int, ...]:
    """Parse ``"1 3,5-7"`` into ``(1, 3, 5, 6, 7)`` preserving first-seen order.

    Ranges wider than ``MAX_RANGE_SIZE`` ids are rejected.
    """

    out: dict[int, None] = {}
    for token in re.split(r"[\s,]+", text.strip()):
        if not token:
            continue
        m = _RANGE.match(token)
        if m:
            lo, hi = int(m.group(1)), int(m.group(2))
            if lo > hi:
                raise ValueError(f"Invalid range {token!r}: start is after end")
            if hi - lo + 1 > MAX_RANGE_SIZE:
                raise ValueError(f"Range {token!r} is too wide (at most {MAX_RANGE_SIZE} ids)")
            values = range(lo, hi + 1)
        elif token.isdigit():
            values = range(int(token), int(token) + 1)
        else:
            raise ValueError(f"Invalid record id {token!r}")
        for v in values:
            out.setdefault(v)
    return tuple(out)


def parse_command(text: str) -> MatchCommand:
    """Parse one prompt line; raises ``ValueError`` with a user-facing message."""

    stripped = text.strip()
    if not stripped:
        raise ValueError("Enter a command (? for help)")
    head, _, rest = stripped.partition(" ")
    verb = head.lower()

    # Allow "c1" / "p2-3" without a space.
    if verb not in _SIDE_VERBS and verb not in _VERBS and verb[:1] in {"c", "p"}:
        if verb[1:2].isdigit():
            verb, rest = verb[0], stripped[1:]

    if verb in _SIDE_VERBS:
        ids = parse_ids(rest)
        if not ids:
            raise ValueError(f"Give one or more record ids after {head!r}")
        return MatchCommand(action="select", side=_SIDE_VERBS[verb], ids=ids)

    action = _VERBS.get(verb)
    if action is None:
        raise ValueError(f"Unknown command {head!r} (? for help)")
    if rest.strip():
        raise ValueError(f"{head!r} takes no arguments")
    return MatchCommand(action=action)


def prompt_command(
    *,
    session: PromptSession | None = None,
    message: str = "match> ",
) -> str:
    """Read one command line with verb completion.

    When ``session`` is given its input/output are reused, which lets tests
    drive the prompt through ``create_pipe_input`` and ``DummyOutput``.
    """

    completer = WordCompleter(
        ["c", "p", "m", "x", "l", "d", "q", "?", "company", "party", "match", "done", "quit"],
        ignore_case=True,
        sentence=True,
    )

    if session is None:
        sess: PromptSession = PromptSession()
    else:
        sess = PromptSession(
            input=getattr(session, "input", None),
            output=getattr(session, "output", None),
        )
    return sess.prompt(message, completer=completer, complete_while_typing=False)


__all__ = [
    "HELP_TEXT",
    "MAX_RANGE_SIZE",
    "MatchCommand",
    "parse_command",
    "parse_ids",
    "prompt_command",
]
