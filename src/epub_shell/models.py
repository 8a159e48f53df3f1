from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import os
from typing import Any, Dict, Optional, Tuple

# opaque CFI token produced and consumed only by the rendering engine
LocationMarker = str


class ShellStatus(Enum):
    UNINITIALIZED = "uninitialized"
    IDLE = "idle"
    LOADING = "loading"
    READING = "reading"


class SessionStatus(Enum):
    CREATED = "created"
    ACTIVE = "active"
    DESTROYED = "destroyed"


@dataclass(frozen=True)
class BookMetadata:
    identifier: Optional[str] = None
    title: Optional[str] = None
    creator: Optional[str] = None


@dataclass(frozen=True)
class TocEntry:
    label: str
    href: str
    subitems: Tuple["TocEntry", ...] = ()


@dataclass(frozen=True)
class TocLine:
    """
    One row of a flattened table of contents.
    `depth` is 0 for top level entries.
    """

    label: str
    href: str
    depth: int = 0


@dataclass(frozen=True)
class SearchResult:
    excerpt: str
    location: LocationMarker


@dataclass
class BookSession:
    """
    Persisted record of one book.

    `identifier` comes from the book metadata and never changes,
    `title` and `source_path` are last-write-wins on reopen.
    """

    identifier: str
    title: Optional[str] = None
    source_path: Optional[str] = None
    current_location: Optional[LocationMarker] = None
    last_read: Optional[datetime] = None

    def to_persisted(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "href": self.source_path,
            "currentLocation": self.current_location,
            "lastRead": self.last_read.isoformat() if self.last_read else None,
        }

    @classmethod
    def from_persisted(cls, identifier: str, data: Dict[str, Any]) -> "BookSession":
        last_read = data.get("lastRead")
        return cls(
            identifier=identifier,
            title=data.get("title"),
            source_path=data.get("href"),
            current_location=data.get("currentLocation"),
            last_read=datetime.fromisoformat(last_read) if last_read else None,
        )


@dataclass(frozen=True)
class LibraryItem:
    identifier: str
    filepath: str
    title: Optional[str] = None
    last_read: Optional[datetime] = field(default=None, compare=False)

    def __str__(self) -> str:
        filename = self.filepath.replace(os.path.expanduser("~"), "~", 1)
        book_name = f"{self.title} ({filename})" if self.title else filename
        if self.last_read is None:
            return book_name
        return f"{self.last_read.strftime('%I:%M%p %b %d')}: {book_name}"


class AppData:
    @property
    def prefix(self) -> Optional[str]:
        """Return None if there exists no homedir | userdir"""
        prefix: Optional[str] = None

        # UNIX filesystem
        homedir = os.getenv("HOME")
        # WIN filesystem
        userdir = os.getenv("USERPROFILE")

        if homedir:
            if os.path.isdir(os.path.join(homedir, ".config")):
                prefix = os.path.join(homedir, ".config", "epub-shell")
            else:
                prefix = os.path.join(homedir, ".epub-shell")
        elif userdir:
            prefix = os.path.join(userdir, ".epub-shell")

        if prefix:
            os.makedirs(prefix, exist_ok=True)

        return prefix
