from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Settings:
    DefaultFontSize: int = 18
    FontSizeStep: int = 2
    MinFontSize: int = 8
    # seconds
    PersistInterval: float = 30.0
    SearchDebounce: float = 0.15
    # None keeps back/forward history unbounded
    HistoryDepth: Optional[int] = None
    RenderSurface: str = "book"
    LogLevel: str = "WARNING"
