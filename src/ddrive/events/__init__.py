"""Command dispatch exports for ddrive."""

from __future__ import annotations

from .dispatcher import CommandDispatcher, CommandHandler, NewItemCommand, NewItemKind

__all__ = [
    "CommandDispatcher",
    "CommandHandler",
    "NewItemCommand",
    "NewItemKind",
]
