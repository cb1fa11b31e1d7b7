"""Observable engine state for presentation layers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Optional

from ddrive.models import BulkJob, PreviewSnapshot, RemoteEntry, TransferUnit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineState:
    """
    Read-only projection of everything the engine is doing.

    Instances are replaced, never mutated; listeners may keep references.
    """

    transfers: tuple[TransferUnit, ...] = ()
    jobs: tuple[BulkJob, ...] = ()
    preview: Optional[PreviewSnapshot] = None
    breadcrumbs: tuple[RemoteEntry, ...] = ()


StateListener = Callable[[EngineState], None]


class StateStream:
    """Holds the current EngineState and pushes every new one to subscribers."""

    def __init__(self) -> None:
        self._state = EngineState()
        self._listeners: list[StateListener] = []

    def current(self) -> EngineState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def update(self, **changes: Any) -> EngineState:
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("State listener failed")
        return self._state
