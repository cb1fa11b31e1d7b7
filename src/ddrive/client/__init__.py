"""Remote service client exports for ddrive."""

from __future__ import annotations

from .remote_client import ProgressCallback, RemoteServiceClient

__all__ = ["RemoteServiceClient", "ProgressCallback"]
