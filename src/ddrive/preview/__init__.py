"""Media preview exports for ddrive."""

from __future__ import annotations

from .lifecycle import MediaPreviewLifecycle

__all__ = ["MediaPreviewLifecycle"]
