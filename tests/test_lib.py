import pytest

from epub_shell.lib import coerce_to_int, px, truncate


def test_truncate():
    assert truncate("This is long silly dummy text", 12) == "This is l..."
    assert truncate("short", 12) == "short"
    assert truncate("abcdef", 2) == ".."
    with pytest.raises(ValueError):
        truncate("abc", -1)


def test_coerce_to_int():
    assert coerce_to_int("3") == 3
    assert coerce_to_int("three") is None


def test_px():
    assert px(18) == "18px"
