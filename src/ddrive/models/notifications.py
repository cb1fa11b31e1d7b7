"""User-facing notification model (toasts)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(slots=True, frozen=True)
class Notification:
    level: NotificationLevel
    message: str
    group_key: Optional[str] = None
