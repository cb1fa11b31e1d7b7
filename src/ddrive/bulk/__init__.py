"""Bulk operation exports for ddrive."""

from __future__ import annotations

from .executor import BulkOperationExecutor

__all__ = ["BulkOperationExecutor"]
