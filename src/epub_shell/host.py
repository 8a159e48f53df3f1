import logging
import threading
from typing import Any, Callable, Mapping, Optional, Sequence

from epub_shell.messages import Message, MessageType
from epub_shell.settings import Settings
from epub_shell.shell import EngineFactory, ReaderShell
from epub_shell.state import State, StateWriter
from epub_shell.timers import EventLoop

logger = logging.getLogger(__name__)

SearchService = Callable[[str, str], Sequence[Mapping[str, Any]]]


class Host:
    """
    Privileged side of the reader: owns durable storage and the
    search collaborator, talks to the shell only through messages.
    """

    def __init__(
        self,
        engine_factory: EngineFactory,
        state: State,
        search: Optional[SearchService] = None,
        notify: Optional[Callable[[str], None]] = None,
        setting: Optional[Settings] = None,
        loop: Optional[EventLoop] = None,
    ):
        self.state = state
        self.writer = StateWriter(state)
        self.search = search
        self.notify = notify
        self.loop = loop or EventLoop()
        self.shell = ReaderShell(engine_factory, self.loop, self.receive, setting)

    def start(self) -> None:
        persisted = self.state.load()
        if persisted:
            self.dispatch(Message(MessageType.LOAD_PERSISTED_DATA, persisted))
        else:
            self.dispatch(Message(MessageType.INIT_WITHOUT_DATA))

    def dispatch(self, message: Message) -> None:
        """Queue an inbound message for the shell, safe from any thread"""
        if not message.is_inbound:
            raise ValueError(f"Not an inbound message: {message.type.value}")
        self.loop.post(lambda: self.shell.handle(message))

    def receive(self, message: Message) -> None:
        if message.type == MessageType.PERSIST_DATA:
            self.writer.persist(message.payload)
        elif message.type == MessageType.SEARCH_REQUEST:
            self._start_search(message.payload["path"], message.payload["query"])
        elif message.type == MessageType.NOTICE:
            if self.notify is not None:
                self.notify(message.payload)
            else:
                logger.warning("%s", message.payload)
        else:
            raise ValueError(f"Not an outbound message: {message.type.value}")

    def _start_search(self, path: str, query: str) -> None:
        if self.search is None:
            logger.warning("No search service configured, dropping query %r", query)
            return

        def run() -> None:
            try:
                results = list(self.search(path, query))
            except Exception:
                logger.exception("Search for %r in %s failed", query, path)
                results = []
            self.dispatch(
                Message(MessageType.SEARCH_RESULTS, {"query": query, "results": results})
            )

        threading.Thread(name="epub-shell-search", target=run, daemon=True).start()

    def run(self) -> None:
        self.start()
        try:
            self.loop.run_forever()
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        self.shell.close()
        self.writer.close()
        self.loop.close()
