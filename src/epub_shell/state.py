import logging
import os
import queue
import sqlite3
import threading
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from epub_shell.errors import UnknownSessionError
from epub_shell.models import AppData, BookSession, LibraryItem, LocationMarker

logger = logging.getLogger(__name__)

# {identifier: {"title": ..., "href": ..., "currentLocation": ..., "lastRead": ...}}
PersistedData = Dict[str, Dict[str, Any]]


class PersistenceCache:
    """
    In-memory mapping of book identifier to BookSession.

    Every mutation is followed by a flush, so the copy handed to
    `sink` is never more than one event behind.
    """

    def __init__(self, sink: Optional[Callable[[PersistedData], None]] = None):
        self.sink = sink
        self._sessions: Dict[str, BookSession] = {}

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, identifier: str) -> Optional[BookSession]:
        return self._sessions.get(identifier)

    def load(self, persisted: Optional[Mapping[str, Mapping[str, Any]]]) -> None:
        self._sessions = {
            identifier: BookSession.from_persisted(identifier, dict(data))
            for identifier, data in (persisted or {}).items()
        }

    def snapshot(self) -> PersistedData:
        return {
            identifier: session.to_persisted() for identifier, session in self._sessions.items()
        }

    def open_session(
        self, identifier: str, title: Optional[str], source_path: Optional[str]
    ) -> BookSession:
        session = self._sessions.get(identifier)
        if session is None:
            session = BookSession(identifier=identifier, title=title, source_path=source_path)
            self._sessions[identifier] = session
        else:
            if title and title != session.title:
                session.title = title
            if source_path and source_path != session.source_path:
                session.source_path = source_path
        session.last_read = datetime.now()
        self.flush()
        return session

    def record_location(self, identifier: str, location: LocationMarker) -> None:
        try:
            session = self._sessions[identifier]
        except KeyError:
            raise UnknownSessionError(identifier) from None
        session.current_location = location
        self.flush()

    def restore_location(self, identifier: str) -> Optional[LocationMarker]:
        session = self._sessions.get(identifier)
        return session.current_location if session else None

    def recently_opened(self) -> List[LibraryItem]:
        items = [
            LibraryItem(
                identifier=session.identifier,
                filepath=session.source_path,
                title=session.title,
                last_read=session.last_read,
            )
            for session in self._sessions.values()
            if session.source_path
        ]
        return sorted(items, key=lambda x: x.last_read or datetime.min, reverse=True)

    def flush(self) -> None:
        if self.sink is None:
            return
        self.sink(self.snapshot())


class State(AppData):
    """Durable copy of the persistence cache in sqlite3"""

    def __init__(self, filepath: Optional[str] = None):
        self._filepath = filepath
        if not os.path.isfile(self.filepath):
            self.init_db()

    @property
    def filepath(self) -> str:
        if self._filepath:
            return self._filepath
        return os.path.join(self.prefix, "states.db") if self.prefix else os.devnull

    def load(self) -> PersistedData:
        try:
            conn = sqlite3.connect(self.filepath)
            conn.row_factory = sqlite3.Row
            cur = conn.cursor()
            cur.execute("SELECT * FROM books")
            return {
                row["identifier"]: {
                    "title": row["title"],
                    "href": row["href"],
                    "currentLocation": row["current_location"],
                    "lastRead": row["last_read"],
                }
                for row in cur.fetchall()
            }
        finally:
            conn.close()

    def persist(self, data: Mapping[str, Mapping[str, Any]]) -> None:
        try:
            conn = sqlite3.connect(self.filepath)
            with conn:
                conn.execute("DELETE FROM books")
                conn.executemany(
                    """
                    INSERT INTO books (identifier, title, href, current_location, last_read)
                    VALUES (:identifier, :title, :href, :currentLocation, :lastRead)
                    """,
                    [
                        {
                            "identifier": identifier,
                            "title": entry.get("title"),
                            "href": entry.get("href"),
                            "currentLocation": entry.get("currentLocation"),
                            "lastRead": entry.get("lastRead"),
                        }
                        for identifier, entry in data.items()
                    ],
                )
        finally:
            conn.close()

    def get_from_history(self) -> List[LibraryItem]:
        try:
            conn = sqlite3.connect(self.filepath)
            cur = conn.cursor()
            cur.execute(
                """
                SELECT identifier, href, title, last_read
                FROM books WHERE href IS NOT NULL ORDER BY last_read DESC
                """
            )
            return [
                LibraryItem(
                    identifier=result[0],
                    filepath=result[1],
                    title=result[2],
                    last_read=datetime.fromisoformat(result[3]) if result[3] else None,
                )
                for result in cur.fetchall()
            ]
        finally:
            conn.close()

    def get_last_read(self) -> Optional[str]:
        library = self.get_from_history()
        return library[0].filepath if library else None

    def delete_from_library(self, identifier: str) -> None:
        try:
            conn = sqlite3.connect(self.filepath)
            conn.execute("DELETE FROM books WHERE identifier=?", (identifier,))
            conn.commit()
        finally:
            conn.close()

    def init_db(self) -> None:
        try:
            conn = sqlite3.connect(self.filepath)
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS books (
                    identifier TEXT PRIMARY KEY,
                    title TEXT,
                    href TEXT,
                    current_location TEXT,
                    last_read TEXT
                );
                """
            )
            conn.commit()
        finally:
            conn.close()


class StateWriter:
    """
    Fire-and-forget front for State.persist().

    Snapshots are written by a single daemon thread, only the
    newest pending snapshot is kept. Write errors are logged, not retried.
    """

    def __init__(self, state: State):
        self.state = state
        self._queue: "queue.Queue[Optional[PersistedData]]" = queue.Queue(maxsize=1)
        self._thread = threading.Thread(
            name="epub-shell-state-writer", target=self._run, daemon=True
        )
        self._thread.start()

    def persist(self, data: PersistedData) -> None:
        while True:
            try:
                self._queue.put_nowait(data)
                return
            except queue.Full:
                try:
                    self._queue.get_nowait()
                    self._queue.task_done()
                except queue.Empty:
                    pass

    def join(self) -> None:
        """Block until every queued snapshot is written"""
        self._queue.join()

    def close(self) -> None:
        self.join()
        self._queue.put(None)
        self._thread.join()

    def _run(self) -> None:
        while True:
            data = self._queue.get()
            try:
                if data is None:
                    return
                self.state.persist(data)
            except (sqlite3.Error, OSError):
                logger.exception("Failed to persist reading state to %s", self.state.filepath)
            finally:
                self._queue.task_done()
