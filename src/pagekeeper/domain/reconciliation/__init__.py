"""Reconcilers that merge externally sourced metadata into storage.

Each reconciler follows the same shape:
1) normalize incoming records (mapping rules, defaults, de-duplication)
2) diff them against what the store holds for the archive
3) delete stale rows
4) insert or update missing rows

None of them commits; the caller's unit of work owns the transaction.
"""

from __future__ import annotations

from .errors import UnresolvableTagReferenceError
from .images import reconcile_images
from .results import (
    ArchiveReconcileResult,
    ImageReconcileResult,
    SourceReconcileResult,
    TagReconcileResult,
)
from .sources import reconcile_sources
from .tags import reconcile_tags

__all__ = [
    "ArchiveReconcileResult",
    "ImageReconcileResult",
    "SourceReconcileResult",
    "TagReconcileResult",
    "UnresolvableTagReferenceError",
    "reconcile_images",
    "reconcile_sources",
    "reconcile_tags",
]
