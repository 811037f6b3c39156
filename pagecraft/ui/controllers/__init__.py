from .canvas_controller import CanvasController

__all__ = ["CanvasController"]
