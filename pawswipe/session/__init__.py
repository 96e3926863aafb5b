"""
Session Module - The single live swipe session.

A session represents one play-through of a batch:
- Created by the entry point and handed to input handlers
- Holds the item collection, cursor, accepted items and drag state
- Reset releases the batch and fetches a new one

Sessions are EPHEMERAL:
- No persistence
- Exactly one session per engine
"""

from .controls import KEY_BINDINGS, Command, command_for_key, run_command
from .manager import SessionListener, SwipeSession

__all__ = [
    "SwipeSession",
    "SessionListener",
    "Command",
    "KEY_BINDINGS",
    "command_for_key",
    "run_command",
]
