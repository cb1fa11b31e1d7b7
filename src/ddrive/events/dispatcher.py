"""CommandDispatcher: explicit routing of "new item" requests."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)


class NewItemKind(str, Enum):
    FOLDER = "folder"
    FILES = "files"
    FOLDER_UPLOAD = "folder-upload"


@dataclass(frozen=True)
class NewItemCommand:
    """Request to create something in a directory (None is the root)."""

    kind: NewItemKind
    parent_id: Optional[str] = None
    name: Optional[str] = None


CommandHandler = Callable[[NewItemCommand], Union[Awaitable[Any], Any]]


class CommandDispatcher:
    """
    Routes commands to the handlers registered for their kind.

    Handlers are plain or async callables and run in registration order.
    """

    def __init__(self) -> None:
        self._handlers: dict[NewItemKind, list[CommandHandler]] = {}

    def subscribe(self, kind: NewItemKind, handler: CommandHandler) -> Callable[[], None]:
        handlers = self._handlers.setdefault(NewItemKind(kind), [])
        handlers.append(handler)

        def _unsubscribe() -> None:
            if handler in handlers:
                handlers.remove(handler)

        return _unsubscribe

    def has_handlers(self, kind: NewItemKind) -> bool:
        return bool(self._handlers.get(NewItemKind(kind)))

    async def dispatch(self, command: NewItemCommand) -> int:
        """Run every handler for command.kind. Returns how many ran."""
        handlers = list(self._handlers.get(command.kind, []))
        if not handlers:
            logger.debug("No handler for %s", command.kind.value)
            return 0

        for handler in handlers:
            try:
                result = handler(command)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Handler for %s failed", command.kind.value)
        return len(handlers)
