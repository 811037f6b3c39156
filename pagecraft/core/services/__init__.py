from __future__ import annotations

"""Editing services (tree edits, rollback, palette, event log)."""

from .tree_editing_service import OperationResult, TreeEditingService  # noqa: F401
from .rollback_guard import BackupGuard  # noqa: F401
from .palette_service import PaletteService  # noqa: F401
from .event_log_service import DragEventLog  # noqa: F401

__all__: list[str] = [
    "OperationResult",
    "TreeEditingService",
    "BackupGuard",
    "PaletteService",
    "DragEventLog",
]
