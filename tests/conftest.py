from typing import Callable, Dict, List, Optional

import pytest

from epub_shell.engines import LINK_CLICKED, LOCATION_CHANGED, RenderingEngine
from epub_shell.models import BookMetadata, TocEntry
from epub_shell.settings import Settings
from epub_shell.shell import ReaderShell
from epub_shell.state import State
from epub_shell.timers import ManualScheduler

BOOKS = {
    "/books/monte.epub": BookMetadata(
        identifier="urn:uuid:monte", title="The Count of Monte Cristo", creator="Alexandre Dumas"
    ),
    "/books/moby.epub": BookMetadata(identifier="urn:uuid:moby", title="Moby Dick"),
}

TOC = [
    TocEntry(
        label="Volume One",
        href="vol1.xhtml",
        subitems=(
            TocEntry(label="Chapter 1", href="ch01.xhtml"),
            TocEntry(label="Chapter 2", href="ch02.xhtml"),
        ),
    ),
    TocEntry(label="Volume Two", href="vol2.xhtml"),
]


class FakeEngine(RenderingEngine):
    def __init__(self, styles=None, fail_on: Optional[str] = None):
        super().__init__(styles)
        self.fail_on = fail_on
        self.calls: List[tuple] = []
        self.location: Optional[str] = None
        self.path: Optional[str] = None
        self.destroyed = False
        self._page = 0

    def _maybe_fail(self, step):
        if self.fail_on == step:
            raise IOError(f"{step} exploded")

    @property
    def current_location(self):
        return self.location

    def open(self, path):
        self.calls.append(("open", path))
        self._maybe_fail("open")
        self.path = path

    def get_metadata(self):
        self.calls.append(("get_metadata",))
        self._maybe_fail("metadata")
        return BOOKS.get(self.path, BookMetadata(identifier=self.path, title=None))

    def render_to(self, surface, location=None):
        self.calls.append(("render_to", surface, location))
        self._maybe_fail("render")
        self.move_to(location or "epubcfi(/6/2!/4/0:0)")

    def get_toc(self):
        self.calls.append(("get_toc",))
        self._maybe_fail("toc")
        return TOC

    def goto(self, location):
        self.calls.append(("goto", location))
        self.move_to(location)

    def next_page(self):
        self.calls.append(("next_page",))
        self._page += 1
        self.move_to(f"epubcfi(/6/2!/4/{self._page}:0)")

    def prev_page(self):
        self.calls.append(("prev_page",))
        self._page -= 1
        self.move_to(f"epubcfi(/6/2!/4/{self._page}:0)")

    def set_style(self, prop, value):
        self.calls.append(("set_style", prop, value))
        self.styles[prop] = value

    def destroy(self):
        super().destroy()
        self.destroyed = True

    # helpers driving engine events from tests
    def move_to(self, location):
        self.location = location
        self.emit(LOCATION_CHANGED, location)

    def click_link(self, href):
        self.emit(LINK_CLICKED, href)
        self.move_to(href)


class EngineFactory:
    def __init__(self):
        self.created: List[FakeEngine] = []
        self.fail_on: Optional[str] = None
        # applied to every engine right after creation
        self.configure: Optional[Callable[[FakeEngine], None]] = None

    def __call__(self, styles: Dict[str, str]) -> FakeEngine:
        engine = FakeEngine(styles, fail_on=self.fail_on)
        if self.configure is not None:
            self.configure(engine)
        self.created.append(engine)
        return engine

    @property
    def last(self) -> FakeEngine:
        return self.created[-1]


@pytest.fixture
def engine_factory():
    return EngineFactory()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def outbox():
    return []


@pytest.fixture
def shell(engine_factory, scheduler, outbox):
    reader_shell = ReaderShell(engine_factory, scheduler, outbox.append, Settings())
    reader_shell.init()
    return reader_shell


@pytest.fixture
def state(tmp_path):
    return State(str(tmp_path / "states.db"))
