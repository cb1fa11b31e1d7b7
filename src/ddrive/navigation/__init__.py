"""Navigation exports for ddrive."""

from __future__ import annotations

from .breadcrumbs import DEFAULT_MAX_DEPTH, BreadcrumbResolver
from .folder_tree import ROOT_LABEL, FolderTree
from .listing import ListingCache

__all__ = [
    "BreadcrumbResolver",
    "DEFAULT_MAX_DEPTH",
    "FolderTree",
    "ROOT_LABEL",
    "ListingCache",
]
