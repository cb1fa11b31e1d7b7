"""Progress tracking exports for ddrive."""

from __future__ import annotations

from .aggregator import ProgressAggregator
from .notifier import NotificationListener, Notifier
from .state import EngineState, StateListener, StateStream

__all__ = [
    "ProgressAggregator",
    "Notifier",
    "NotificationListener",
    "EngineState",
    "StateStream",
    "StateListener",
]
