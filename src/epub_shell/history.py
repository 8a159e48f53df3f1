from typing import List, Optional

from epub_shell.models import LocationMarker


class NavigationHistory:
    """
    Back/forward stacks of location markers, most recent last.

    Pure state: callers move the renderer to whatever
    go_back() / go_forward() return.
    """

    def __init__(self, max_depth: Optional[int] = None):
        if max_depth is not None and max_depth < 1:
            raise ValueError("Var max_depth must be a positive integer or None.")
        self.max_depth = max_depth
        self.back: List[LocationMarker] = []
        self.forward: List[LocationMarker] = []

    def _push(self, stack: List[LocationMarker], location: LocationMarker) -> None:
        stack.append(location)
        if self.max_depth is not None and len(stack) > self.max_depth:
            del stack[: len(stack) - self.max_depth]

    def record_navigation(self, current_location: LocationMarker) -> None:
        self._push(self.back, current_location)
        self.forward.clear()

    def go_back(self, current_location: LocationMarker) -> Optional[LocationMarker]:
        if not self.back:
            return None
        target = self.back.pop()
        if not self.forward or self.forward[-1] != current_location:
            self._push(self.forward, current_location)
        return target

    def go_forward(self, current_location: LocationMarker) -> Optional[LocationMarker]:
        if not self.forward:
            return None
        target = self.forward.pop()
        if not self.back or self.back[-1] != current_location:
            self._push(self.back, current_location)
        return target

    def clear(self) -> None:
        self.back.clear()
        self.forward.clear()
