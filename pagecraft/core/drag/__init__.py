"""Drag gesture handling: drop targets and the drag session state machine."""

from .session import DragSession, DragSessionConfig, DragSource, DragState, SourceKind
from .targets import CanvasTarget, ContainerTarget, NodeGapTarget, gap_target_for

__all__ = [
    "DragSession",
    "DragSessionConfig",
    "DragSource",
    "DragState",
    "SourceKind",
    "CanvasTarget",
    "ContainerTarget",
    "NodeGapTarget",
    "gap_target_for",
]
