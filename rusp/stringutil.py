"""String splitting, list (de)serialization and user input."""

import itertools
import sys


def split_by_delimiter(src, delim):
    """Split ``src`` at any character of ``delim``, dropping empty pieces."""
    if not delim:
        return [src] if src else []
    first = delim[0]
    unified = src.translate({ord(char): first for char in delim})
    return [token for token in unified.split(first) if token]


def split_n_by_delimiter(src, delim, count):
    """Split ``src`` at the string ``delim`` into exactly ``count`` pieces.

    The last piece keeps the remainder; missing pieces are empty strings.
    """
    if count < 1:
        raise ValueError("At least one piece is required.")
    if not delim:
        raise ValueError("Empty delimiter.")
    pieces = src.split(delim, count - 1)
    return pieces + [""] * (count - len(pieces))


def split_by_size(src, size):
    """Cut ``src`` into pieces of ``size`` characters; the last may be shorter."""
    if size <= 0:
        raise ValueError("Piece size must be positive.")
    return [src[start : start + size] for start in range(0, len(src), size)]


def split_by_section(src, sizes):
    """Cut consecutive pieces of the given sizes from the start of ``src``."""
    starts = itertools.accumulate(sizes, initial=0)
    return [src[start : start + size] for start, size in zip(starts, sizes)]


def array_serialization(items, delim):
    """Join ``items``, each followed by ``delim``."""
    return "".join(f"{item}{delim}" for item in items)


def array_deserialization(text, delim):
    """Split text produced by ``array_serialization`` back into items."""
    return split_by_delimiter(text, delim)


def get_user_input(prompt):
    """Show ``prompt`` on a new line and read one line from standard input.

    Raises EOFError when input is exhausted.
    """
    sys.stdout.flush()
    sys.stdout.write(f"\n{prompt}")
    sys.stdout.flush()
    line = sys.stdin.readline()
    if not line:
        raise EOFError("Cannot get line for user input.")
    return line.removesuffix("\n")