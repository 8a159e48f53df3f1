import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from epub_shell.builders import build_search_results, flatten_toc, format_title
from epub_shell.engines import LINK_CLICKED, LOCATION_CHANGED, RenderingEngine
from epub_shell.errors import LoadFailure
from epub_shell.history import NavigationHistory
from epub_shell.lib import px
from epub_shell.messages import Message, MessageType
from epub_shell.models import (
    BookMetadata,
    LibraryItem,
    LocationMarker,
    SearchResult,
    SessionStatus,
    ShellStatus,
    TocLine,
)
from epub_shell.settings import Settings
from epub_shell.state import PersistedData, PersistenceCache
from epub_shell.timers import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

T = TypeVar("T")

EngineFactory = Callable[[Dict[str, str]], RenderingEngine]


class Session:
    """Live state of one open book: create -> active -> destroyed"""

    def __init__(self, engine: RenderingEngine, source_path: str, history: NavigationHistory):
        self.engine = engine
        self.source_path = source_path
        self.history = history
        self.metadata: Optional[BookMetadata] = None
        self.status = SessionStatus.CREATED

    @property
    def identifier(self) -> Optional[str]:
        return self.metadata.identifier if self.metadata else None

    @property
    def current_location(self) -> Optional[LocationMarker]:
        return self.engine.current_location

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    def activate(self) -> None:
        if self.status != SessionStatus.CREATED:
            raise RuntimeError(f"Cannot activate session in state {self.status.value}")
        self.status = SessionStatus.ACTIVE

    def destroy(self) -> None:
        if self.status == SessionStatus.DESTROYED:
            return
        self.status = SessionStatus.DESTROYED
        self.engine.destroy()


class ReaderShell:
    """
    Reacts to host messages and rendering engine events.

    Owns the persistence cache, the open Session and the two timers
    (recurring flush and search debounce). All methods are expected
    to run on the scheduler's thread.
    """

    def __init__(
        self,
        engine_factory: EngineFactory,
        scheduler: Scheduler,
        send: Callable[[Message], None],
        setting: Optional[Settings] = None,
        cache: Optional[PersistenceCache] = None,
    ):
        self.setting = setting or Settings()
        self.engine_factory = engine_factory
        self.scheduler = scheduler
        self.send = send

        self.cache = cache if cache is not None else PersistenceCache()
        self.cache.sink = self._send_persisted_data

        self.status = ShellStatus.UNINITIALIZED
        self.session: Optional[Session] = None

        self.font_size: int = self.setting.DefaultFontSize
        self.title: Optional[str] = None
        self.recently_opened: List[LibraryItem] = []

        # panels
        self.toc_lines: Tuple[TocLine, ...] = ()
        self.toc_visible = False
        self.find_visible = False
        self.find_enabled = False

        # in-book search
        self.search_query = ""
        self.search_results: Tuple[SearchResult, ...] = ()
        self.search_pending = False

        self._persist_timer: Optional[TimerHandle] = None
        self._search_timer: Optional[TimerHandle] = None

        self._handlers: Dict[MessageType, Callable[[Any], None]] = {
            MessageType.LOAD_PERSISTED_DATA: self._on_load_persisted_data,
            MessageType.INIT_WITHOUT_DATA: lambda _: self.init(),
            MessageType.LOAD_BOOK: self.load_book,
            MessageType.PREV_PAGE: lambda _: self.prev_page(),
            MessageType.NEXT_PAGE: lambda _: self.next_page(),
            MessageType.INCREASE_FONT: lambda _: self.increase_font(),
            MessageType.DECREASE_FONT: lambda _: self.decrease_font(),
            MessageType.RESTORE_FONT: lambda _: self.restore_font(),
            MessageType.TOGGLE_TOC: lambda _: self.toggle_toc(),
            MessageType.BACK: lambda _: self.back(),
            MessageType.FORWARD: lambda _: self.forward(),
            MessageType.TOGGLE_FIND: lambda _: self.toggle_find(),
            MessageType.SEARCH_RESULTS: self._on_search_results,
        }

    @property
    def persist_timer_active(self) -> bool:
        return self._persist_timer is not None and self._persist_timer.active

    @property
    def search_timer_active(self) -> bool:
        return self._search_timer is not None and self._search_timer.active

    def handle(self, message: Message) -> None:
        try:
            handler = self._handlers[message.type]
        except KeyError:
            raise ValueError(f"Not an inbound message: {message.type.value}") from None
        logger.debug("Handling %s", message.type.value)
        handler(message.payload)

    def init(self) -> None:
        self.recently_opened = self.cache.recently_opened()
        if self.session is None:
            self.status = ShellStatus.IDLE

    def close(self) -> None:
        self._cancel_search_timer()
        self._close_session()
        self.cache.flush()

    # book loading

    def load_book(self, path: str) -> bool:
        self._cancel_search_timer()
        self._close_session()

        self.status = ShellStatus.LOADING
        self.title = None
        self.toc_lines = ()
        self.find_enabled = False
        self.search_results = ()
        self.search_pending = False

        try:
            self._open_book(path)
        except Exception as e:
            failure = e if isinstance(e, LoadFailure) else LoadFailure("load", path, e)
            self._fail_load(failure)
            return False

        self.status = ShellStatus.READING
        return True

    def _fail_load(self, failure: LoadFailure) -> None:
        logger.error("%s", failure, exc_info=failure.cause)
        self.send(Message(MessageType.NOTICE, f"Something went wrong!\n{failure}"))
        try:
            self._close_session()
        except Exception:
            logger.exception("Failed to tear down %s", failure.path)
        self.init()

    def _open_book(self, path: str) -> None:
        engine = self._step("create", path, self.engine_factory, {"font-size": px(self.font_size)})
        session = Session(engine, path, NavigationHistory(self.setting.HistoryDepth))
        self.session = session

        self._step("open", path, engine.open, path)
        session.metadata = self._step("metadata", path, self._read_metadata, engine)

        title = format_title(session.metadata)
        if title:
            self.title = title

        identifier = session.metadata.identifier
        self.cache.open_session(identifier, session.metadata.title, path)
        previous_location = self.cache.restore_location(identifier)

        self._step(
            "render", path, engine.render_to, self.setting.RenderSurface, previous_location
        )
        session.activate()

        engine.on(LOCATION_CHANGED, lambda location: self._on_location_changed(session, location))
        engine.on(LINK_CLICKED, lambda href: self._on_link_clicked(session, href))
        self._reschedule_persist_timer()

        self.toc_lines = self._step("toc", path, lambda: flatten_toc(engine.get_toc()))
        self.find_enabled = True

    @staticmethod
    def _read_metadata(engine: RenderingEngine) -> BookMetadata:
        metadata = engine.get_metadata()
        if not isinstance(metadata, BookMetadata):
            raise TypeError(f"expected BookMetadata, got {type(metadata).__name__}")
        if not metadata.identifier:
            raise ValueError("book has no identifier")
        return metadata

    @staticmethod
    def _step(step: str, path: str, func: Callable[..., T], *args: Any) -> T:
        try:
            return func(*args)
        except LoadFailure:
            raise
        except Exception as e:
            raise LoadFailure(step, path, e) from e

    def _close_session(self) -> None:
        self._cancel_persist_timer()
        session, self.session = self.session, None
        if session is not None:
            session.destroy()

    # engine events

    def _on_location_changed(self, session: Session, location: LocationMarker) -> None:
        if session is not self.session or not session.is_active:
            logger.debug("Ignoring location change from a closed session")
            return
        self.cache.record_location(session.identifier, location)

    def _on_link_clicked(self, session: Session, href: str) -> None:
        if session is not self.session or not session.is_active:
            return
        logger.debug("Link clicked: %s", href)
        self._record_navigation(session)

    # navigation

    def _active_session(self, action: str) -> Optional[Session]:
        if self.session is None or not self.session.is_active:
            logger.debug("No book open, ignoring %s", action)
            return None
        return self.session

    @staticmethod
    def _record_navigation(session: Session) -> None:
        location = session.current_location
        if location is not None:
            session.history.record_navigation(location)

    def next_page(self) -> None:
        session = self._active_session("next page")
        if session is None:
            return
        self._record_navigation(session)
        session.engine.next_page()

    def prev_page(self) -> None:
        session = self._active_session("previous page")
        if session is None:
            return
        self._record_navigation(session)
        session.engine.prev_page()

    def goto(self, location: LocationMarker) -> None:
        """Jump to a toc entry or search result, remembering where we were"""
        session = self._active_session("goto")
        if session is None:
            return
        self._record_navigation(session)
        session.engine.goto(location)

    def goto_toc_line(self, line: TocLine) -> None:
        self.goto(line.href)

    def goto_search_result(self, result: SearchResult) -> None:
        self.goto(result.location)

    def back(self) -> Optional[LocationMarker]:
        session = self._active_session("back")
        if session is None or session.current_location is None:
            return None
        target = session.history.go_back(session.current_location)
        if target is not None:
            session.engine.goto(target)
        return target

    def forward(self) -> Optional[LocationMarker]:
        session = self._active_session("forward")
        if session is None or session.current_location is None:
            return None
        target = session.history.go_forward(session.current_location)
        if target is not None:
            session.engine.goto(target)
        return target

    def open_recent(self, index: int) -> bool:
        try:
            item = self.recently_opened[index]
        except IndexError:
            logger.warning("No recently opened book at #%d", index + 1)
            return False
        return self.load_book(item.filepath)

    # fonts

    def set_font_size(self, size: int) -> None:
        self.font_size = max(self.setting.MinFontSize, size)
        session = self._active_session("font change")
        if session is not None:
            session.engine.set_style("font-size", px(self.font_size))

    def increase_font(self) -> None:
        self.set_font_size(self.font_size + self.setting.FontSizeStep)

    def decrease_font(self) -> None:
        self.set_font_size(self.font_size - self.setting.FontSizeStep)

    def restore_font(self) -> None:
        self.set_font_size(self.setting.DefaultFontSize)

    # panels

    def toggle_toc(self) -> None:
        self.toc_visible = not self.toc_visible

    def toggle_find(self) -> None:
        if not self.find_visible:
            self.find_visible = True
            return
        self._cancel_search_timer()
        self.search_query = ""
        self.search_results = ()
        self.search_pending = False
        self.find_visible = False

    # search

    def search_input(self, query: str) -> None:
        """Called on every keystroke in the find box"""
        self.search_query = query
        self.search_results = ()
        self._cancel_search_timer()
        if not self.find_enabled:
            return
        self._search_timer = self.scheduler.call_later(
            self.setting.SearchDebounce, self._issue_search
        )

    def _issue_search(self) -> None:
        self._search_timer = None
        query = self.search_query
        if query == "":
            return
        session = self._active_session("search")
        if session is None:
            return
        self.search_pending = True
        self.send(
            Message(MessageType.SEARCH_REQUEST, {"path": session.source_path, "query": query})
        )

    def _on_search_results(self, data: Any) -> None:
        if isinstance(data, dict):
            query = data.get("query")
            if query is not None and query != self.search_query:
                logger.debug("Dropping stale results for %r", query)
                return
            data = data.get("results")
        self.search_pending = False
        self.search_results = build_search_results(data)

    def _cancel_search_timer(self) -> None:
        if self._search_timer is not None:
            self._search_timer.cancel()
            self._search_timer = None

    # persistence

    def _on_load_persisted_data(self, data: Optional[PersistedData]) -> None:
        self.cache.load(data)
        self.init()

    def _send_persisted_data(self, data: PersistedData) -> None:
        self.send(Message(MessageType.PERSIST_DATA, data))

    def _reschedule_persist_timer(self) -> None:
        self._cancel_persist_timer()
        self._persist_timer = self.scheduler.call_every(
            self.setting.PersistInterval, self.cache.flush
        )

    def _cancel_persist_timer(self) -> None:
        if self._persist_timer is not None:
            self._persist_timer.cancel()
            self._persist_timer = None
