import pytest

from epub_shell.messages import INBOUND, OUTBOUND, Message, MessageType


def test_message_surface_is_partitioned():
    assert INBOUND | OUTBOUND == set(MessageType)
    assert not INBOUND & OUTBOUND
    assert OUTBOUND == {MessageType.PERSIST_DATA, MessageType.SEARCH_REQUEST, MessageType.NOTICE}


def test_wire_shape():
    message = Message.from_dict({"type": "load-book", "payload": "/books/monte.epub"})

    assert message == Message(MessageType.LOAD_BOOK, "/books/monte.epub")
    assert message.is_inbound
    assert message.to_dict() == {"type": "load-book", "payload": "/books/monte.epub"}
    assert Message.from_dict({"type": "back"}).payload is None


def test_unknown_message_type():
    with pytest.raises(ValueError):
        Message.from_dict({"type": "self-destruct"})
