from typing import Optional


class ShellError(Exception):
    pass


class UnknownSessionError(ShellError, KeyError):
    """Raised when a location is recorded for a book that was never opened"""

    def __init__(self, identifier: str):
        super().__init__(identifier)
        self.identifier = identifier

    def __str__(self) -> str:
        return f"No open session for book {self.identifier!r}"


class LoadFailure(ShellError):
    """
    Raised when any step of the open-book sequence fails.

    `step` names the failing step: open, metadata, render or toc.
    """

    def __init__(self, step: str, path: str, cause: Optional[BaseException] = None):
        self.step = step
        self.path = path
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Failed to {step} {path}{detail}")
