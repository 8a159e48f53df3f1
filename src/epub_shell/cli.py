import argparse
import os
import shutil
import sys
import textwrap
from difflib import SequenceMatcher as SM
from typing import List, Optional, Sequence, Tuple

from epub_shell import __version__
from epub_shell.lib import coerce_to_int, truncate
from epub_shell.models import LibraryItem
from epub_shell.state import State


def cleanup_library(state: State) -> None:
    """Cleanup non-existent file from library"""
    for item in state.get_from_history():
        if not os.path.isfile(item.filepath):
            state.delete_from_library(item.identifier)


def get_nth_file_from_library(state: State, n: int) -> Optional[LibraryItem]:
    if n < 1:
        return None
    library_items = state.get_from_history()
    try:
        return library_items[n - 1]
    except IndexError:
        return None


def get_matching_library_item(
    state: State, pattern: str, threshold: float = 0.5
) -> Optional[LibraryItem]:
    library_items = state.get_from_history()
    if not library_items or not pattern:
        return None

    matches: List[Tuple[LibraryItem, float]] = []
    for item in library_items:
        tomatch = f"{item.title or ''} {os.path.basename(item.filepath)}"
        match_value = sum(
            [i.size for i in SM(None, tomatch.lower(), pattern.lower()).get_matching_blocks()]
        ) / float(len(pattern))
        matches.append((item, match_value))

    first_match_item, first_match_value = max(matches, key=lambda x: x[1])
    return first_match_item if first_match_value >= threshold else None


def print_reading_history(state: State) -> None:
    termc, _ = shutil.get_terminal_size()
    library_items = state.get_from_history()
    if not library_items:
        print("No Reading History.")
        return

    print("Reading History:")
    dig = len(str(len(library_items) + 1))
    tcols = termc - dig - 2
    for n, item in enumerate(library_items):
        print("{} {}".format(str(n + 1).rjust(dig), truncate(str(item), tcols)))


def parse_cli_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    prog = "epub-shell"
    positional_arg_help_str = "[PATH | # | PATTERN]"
    args_parser = argparse.ArgumentParser(
        prog=prog,
        usage=f"%(prog)s [-h] [-r] [-v] {positional_arg_help_str}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description="Resolve which epub the reader shell should open",
        epilog=textwrap.dedent(
            f"""\
        examples:
          {prog} /path/to/book.epub   open /path/to/book.epub
          {prog} 3                    open #3 book from reading history
          {prog} count monte          open book matching 'count monte'
                                   from reading history
        """
        ),
    )
    args_parser.add_argument("-r", "--history", action="store_true", help="print reading history")
    args_parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"v{__version__}",
        help="print version and exit",
    )
    args_parser.add_argument(
        "ebook",
        action="store",
        nargs="*",
        metavar=positional_arg_help_str,
        help="epub path, history number or pattern",
    )
    return args_parser.parse_args(argv)


def find_file(argv: Optional[Sequence[str]] = None, state: Optional[State] = None) -> str:
    args = parse_cli_args(argv)
    state = state if state is not None else State()
    cleanup_library(state)

    if args.history:
        print_reading_history(state)
        sys.exit()

    if len(args.ebook) == 0:
        last_read = state.get_last_read()
        if last_read:
            return last_read
        sys.exit("ERROR: Found no last read ebook file.")

    elif len(args.ebook) == 1:
        nth = coerce_to_int(args.ebook[0])
        if nth is not None:
            item = get_nth_file_from_library(state, nth)
            if item:
                return item.filepath
            print(f"ERROR: #{nth} file not found.")
            print_reading_history(state)
            sys.exit(1)
        elif os.path.isfile(args.ebook[0]):
            if os.path.splitext(args.ebook[0])[1].lower() not in {".epub", ".epub3"}:
                sys.exit("ERROR: Format not supported. (Supported: epub)")
            return os.path.abspath(args.ebook[0])

    pattern = " ".join(args.ebook)
    match = get_matching_library_item(state, pattern)
    if match:
        return match.filepath
    sys.exit("ERROR: Found no matching ebook from history.")
