"""Public config exports for ddrive."""

from __future__ import annotations

from .client_config import DEFAULT_API_URL, ClientConfig

__all__ = ["ClientConfig", "DEFAULT_API_URL"]
