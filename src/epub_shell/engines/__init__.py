__all__ = [
    "RenderingEngine",
    "LOCATION_CHANGED",
    "LINK_CLICKED",
]

from epub_shell.engines.base import LINK_CLICKED, LOCATION_CHANGED, RenderingEngine
