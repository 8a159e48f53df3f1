from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from epub_shell.models import BookMetadata, SearchResult, TocEntry, TocLine

TocNode = Union[TocEntry, Mapping[str, Any]]


def _toc_field(node: TocNode, name: str, default: Any = None) -> Any:
    if isinstance(node, TocEntry):
        return getattr(node, name)
    if isinstance(node, Mapping):
        return node.get(name, default)
    raise TypeError(f"Unsupported toc entry: {type(node).__name__}")


def flatten_toc(toc: Optional[Iterable[TocNode]]) -> Tuple[TocLine, ...]:
    """
    Depth first flattening of nested toc entries.

    eg. [Part I [Ch 1, Ch 2], Part II]
        -> (Part I/0, Ch 1/1, Ch 2/1, Part II/0)
    """
    lines: List[TocLine] = []

    def walk(nodes: Iterable[TocNode], depth: int) -> None:
        for node in nodes:
            lines.append(
                TocLine(
                    label=(_toc_field(node, "label") or "").strip(),
                    href=_toc_field(node, "href"),
                    depth=depth,
                )
            )
            walk(_toc_field(node, "subitems", ()) or (), depth + 1)

    walk(toc or (), 0)
    return tuple(lines)


def build_search_results(data: Optional[Iterable[Mapping[str, Any]]]) -> Tuple[SearchResult, ...]:
    results: List[SearchResult] = []
    for item in data or ():
        location = item.get("location") or item.get("cfi")
        if not location:
            continue
        results.append(SearchResult(excerpt=item.get("excerpt") or "", location=location))
    return tuple(results)


def format_title(metadata: BookMetadata) -> Optional[str]:
    if not metadata.title:
        return None
    if metadata.creator:
        return f"{metadata.title} - {metadata.creator}"
    return metadata.title
