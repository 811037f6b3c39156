"""Top-level package for the PageCraft layout builder engine.

This package hosts the GUI-agnostic tree-editing engine. Front-ends (e.g. Tk
GUI) should only depend on the public API exposed here rather than importing
internal modules directly.
"""

from .core.document import LayoutDocument  # re-export for convenience
from .core.models import Node, NodeKind

__all__: list[str] = [
    "LayoutDocument",
    "Node",
    "NodeKind",
]
