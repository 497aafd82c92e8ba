"""
Configuration Text File Module

This module reads and writes configuration stores as text files.

File format:
    key = value
    key="quoted value"
    # comment text
    ; comment text

    key.with-chars_123 = 42

- One declaration per line, at most CF_MAX_LINE characters.
- Key names use A-Z a-z 0-9 . _ -
- Spaces and tabs around the line and around '=' are ignored.
- Lines starting with '#' or ';' are comments. Comments and blank lines are
  kept only when the caller asks for them.
"""

import logging
import os
from typing import Tuple, Union

from cf_module import (
    CFStore, CFCapacityError, CFIOError, CFLineTooLongError,
    CFMalformedLineError, CFStoreFullError,
    CF_BLANK_KEY, CF_ENCODING, CF_MAX_LINE,
    _cf_put, _check_open, cf_iter_entries, cf_set_key,
    is_comment_key, is_key_char, skip_spaces, trim_string
)


logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


def cf_parse_line(line: str) -> Tuple[str, str]:
    """
    Decode one line, without its newline.

    Args:
        line: Line text

    Returns:
        (key, value) for a declaration, (marker, text) for a comment,
        ('', '') for a blank line

    Raises:
        CFMalformedLineError: bad key name, missing '=' or empty value
    """
    bf = trim_string(line)

    # Comments and empty lines
    if not bf:
        return CF_BLANK_KEY, ""
    if is_comment_key(bf[0]):
        return bf[0], skip_spaces(bf[1:])

    # Key name
    end = 0
    while end < len(bf) and is_key_char(bf[end]):
        end += 1

    if end == 0:
        raise CFMalformedLineError(f"invalid key name: {bf!r}")
    if end == len(bf) or bf[end] not in " \t=":
        raise CFMalformedLineError(f"expected '=' after key '{bf[:end]}'")

    key = bf[:end]
    rest = bf[end:]

    # Separator
    if rest[0] != "=":
        rest = skip_spaces(rest)
        if not rest.startswith("="):
            raise CFMalformedLineError(f"expected '=' after key '{key}'")
    rest = skip_spaces(rest[1:])

    if not rest:
        raise CFMalformedLineError(f"empty value for key '{key}'")

    return key, rest


def _decode_line(raw: bytes, filename: str, lineno: int) -> str:
    """
    Decode one raw line and drop its line ending.

    Only '\\n' ends a line. A '\\r' right before it is dropped too, any other
    '\\r' is part of the line.
    """
    if raw.endswith(b"\n"):
        raw = raw[:-1]
        if raw.endswith(b"\r"):
            raw = raw[:-1]
    try:
        return raw.decode(CF_ENCODING)
    except UnicodeDecodeError as e:
        raise CFIOError(f"{filename}:{lineno}: can't decode line: {e}") from e


def cf_read(store: CFStore, path: PathLike, preserve_comments: bool = False) -> None:
    """
    Read a configuration file into a store.

    Keys already in the store get their values replaced. Reading stops at
    the first bad line; the entries read before it stay in the store.

    Args:
        store: The configuration store
        path: Path to the text file
        preserve_comments: Keep comments and blank lines as entries

    Raises:
        CFIOError: the file can't be opened or read, or a line can't be decoded
        CFLineTooLongError: a line is longer than CF_MAX_LINE characters
        CFMalformedLineError: a line is not a comment nor a declaration
        CFStoreFullError: the store has no room for an entry
    """
    _check_open(store)
    filename = os.fspath(path)
    count = 0

    try:
        with open(filename, "rb") as f:
            for lineno, raw in enumerate(f, start=1):
                line = _decode_line(raw, filename, lineno)
                if len(line) > CF_MAX_LINE:
                    raise CFLineTooLongError(
                        f"line longer than {CF_MAX_LINE} characters", filename, lineno)

                try:
                    key, value = cf_parse_line(line)
                except CFMalformedLineError as e:
                    e.path = filename
                    e.lineno = lineno
                    raise

                try:
                    if key == CF_BLANK_KEY or is_comment_key(key):
                        if not preserve_comments:
                            continue
                        _cf_put(store, key, value)
                    else:
                        cf_set_key(store, key, value)
                except CFCapacityError as e:
                    raise CFStoreFullError(str(e), filename, lineno) from e
                count += 1
    except CFIOError:
        raise
    except OSError as e:
        raise CFIOError(f"Error reading configuration file: {e}") from e

    logger.debug("Read %d entries from %s", count, filename)


def cf_format_entry(key: str, value: str) -> str:
    """
    Render one entry as a line, newline included.

    Comments with no text are written as the marker alone.
    """
    if key == CF_BLANK_KEY:
        return "\n"
    if is_comment_key(key):
        return f"{key} {value}\n" if value else f"{key}\n"
    return f"{key} = {value}\n"


def cf_write(store: CFStore, path: PathLike) -> None:
    """
    Write a store to a configuration file, in slot order.

    Args:
        store: The configuration store
        path: Path to the text file, replaced if it exists

    Raises:
        CFIOError: the file can't be opened, written or closed
    """
    _check_open(store)
    filename = os.fspath(path)
    count = 0

    try:
        with open(filename, "w", encoding=CF_ENCODING) as f:
            for key, value in cf_iter_entries(store):
                f.write(cf_format_entry(key, value))
                count += 1
    except (OSError, UnicodeError) as e:
        raise CFIOError(f"Error writing configuration file: {e}") from e

    logger.debug("Wrote %d entries to %s", count, filename)
