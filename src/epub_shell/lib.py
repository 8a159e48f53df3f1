from typing import Optional


def coerce_to_int(string: str) -> Optional[int]:
    try:
        return int(string)
    except ValueError:
        return None


def truncate(teks: str, maxlen: int, subtitution_text: str = "...") -> str:
    """
    Truncate text from the right so it fits `maxlen`

    eg.
    :param teks: 'This is long silly dummy text'
    :param maxlen: 12
    :return: 'This is l...'
    """
    if maxlen < 0:
        raise ValueError("Var maxlen cannot be negative.")
    if len(teks) <= maxlen:
        return teks
    if maxlen <= len(subtitution_text):
        return subtitution_text[:maxlen]
    return teks[: maxlen - len(subtitution_text)] + subtitution_text


def px(size: int) -> str:
    return f"{size}px"
