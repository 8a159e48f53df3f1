from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping


class MessageType(Enum):
    # inbound, host -> shell
    LOAD_PERSISTED_DATA = "load-persisted-data"
    INIT_WITHOUT_DATA = "init-without-data"
    LOAD_BOOK = "load-book"
    PREV_PAGE = "prev-page"
    NEXT_PAGE = "next-page"
    INCREASE_FONT = "increase-font"
    DECREASE_FONT = "decrease-font"
    RESTORE_FONT = "restore-font"
    TOGGLE_TOC = "toggle-toc"
    BACK = "back"
    FORWARD = "forward"
    TOGGLE_FIND = "toggle-find"
    SEARCH_RESULTS = "search-results"

    # outbound, shell -> host
    PERSIST_DATA = "persist-data"
    SEARCH_REQUEST = "search-request"
    NOTICE = "notice"


INBOUND = frozenset(
    {
        MessageType.LOAD_PERSISTED_DATA,
        MessageType.INIT_WITHOUT_DATA,
        MessageType.LOAD_BOOK,
        MessageType.PREV_PAGE,
        MessageType.NEXT_PAGE,
        MessageType.INCREASE_FONT,
        MessageType.DECREASE_FONT,
        MessageType.RESTORE_FONT,
        MessageType.TOGGLE_TOC,
        MessageType.BACK,
        MessageType.FORWARD,
        MessageType.TOGGLE_FIND,
        MessageType.SEARCH_RESULTS,
    }
)

OUTBOUND = frozenset(set(MessageType) - INBOUND)


@dataclass(frozen=True)
class Message:
    type: MessageType
    payload: Any = None

    @property
    def is_inbound(self) -> bool:
        return self.type in INBOUND

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "payload": self.payload}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Message":
        """Raises ValueError for unknown message types"""
        return cls(type=MessageType(data["type"]), payload=data.get("payload"))
