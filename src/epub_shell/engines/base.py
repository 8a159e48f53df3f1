from typing import Any, Callable, Dict, List, Optional, Sequence

from epub_shell.models import BookMetadata, LocationMarker, TocEntry

LOCATION_CHANGED = "locationChanged"
LINK_CLICKED = "linkClicked"


class RenderingEngine:
    """
    Adapter around the library that parses, paginates and
    renders the book. Embedding applications subclass this.
    """

    def __init__(self, styles: Optional[Dict[str, str]] = None):
        self.styles: Dict[str, str] = dict(styles or {})
        self._listeners: Dict[str, List[Callable[..., Any]]] = {}

    @property
    def current_location(self) -> Optional[LocationMarker]:
        raise NotImplementedError("RenderingEngine.current_location not implemented")

    def on(self, event: str, callback: Callable[..., Any]) -> None:
        self._listeners.setdefault(event, []).append(callback)

    def emit(self, event: str, *args: Any) -> None:
        for callback in list(self._listeners.get(event, [])):
            callback(*args)

    def open(self, path: str) -> None:
        raise NotImplementedError("RenderingEngine.open() not implemented")

    def get_metadata(self) -> BookMetadata:
        raise NotImplementedError("RenderingEngine.get_metadata() not implemented")

    def render_to(self, surface: str, location: Optional[LocationMarker] = None) -> None:
        raise NotImplementedError("RenderingEngine.render_to() not implemented")

    def get_toc(self) -> Sequence[TocEntry]:
        raise NotImplementedError("RenderingEngine.get_toc() not implemented")

    def goto(self, location: LocationMarker) -> None:
        raise NotImplementedError("RenderingEngine.goto() not implemented")

    def next_page(self) -> None:
        raise NotImplementedError("RenderingEngine.next_page() not implemented")

    def prev_page(self) -> None:
        raise NotImplementedError("RenderingEngine.prev_page() not implemented")

    def set_style(self, prop: str, value: str) -> None:
        raise NotImplementedError("RenderingEngine.set_style() not implemented")

    def destroy(self) -> None:
        self._listeners.clear()
