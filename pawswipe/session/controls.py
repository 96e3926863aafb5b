"""
Controls - The four logical commands and their keyboard bindings.

Buttons, keys and classified gestures all end in the same decide path, so a
decision means the same thing whatever produced it. Commands issued in the
wrong state are ignored.
"""

from __future__ import annotations
from enum import Enum
from typing import TYPE_CHECKING

from ..engine_core.event import EventResult

if TYPE_CHECKING:
    from .manager import SwipeSession


class Command(Enum):
    """Logical commands of the control surface."""
    START = "start"
    ACCEPT = "accept"
    REJECT = "reject"
    RESET = "reset"


KEY_BINDINGS: dict[str, Command] = {
    "ArrowRight": Command.ACCEPT,
    "l": Command.ACCEPT,
    "L": Command.ACCEPT,
    "ArrowLeft": Command.REJECT,
    "d": Command.REJECT,
    "D": Command.REJECT,
}


def command_for_key(key: str) -> Command | None:
    """Map a keyboard key to a command; unbound keys return None."""
    return KEY_BINDINGS.get(key)


async def run_command(session: SwipeSession, command: Command) -> EventResult:
    """Execute a command against the session."""
    if command == Command.START:
        return await session.start()
    if command == Command.RESET:
        return await session.reset()
    if command == Command.ACCEPT:
        return session.accept()
    return session.reject()
