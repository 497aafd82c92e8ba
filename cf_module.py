"""
Configuration file store.

This module keeps key / value pairs for human-editable configuration files
in a store of fixed capacity, with typed accessors built on top of the raw
string values. Reading and writing the text format lives in cf_text_module.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Tuple


logger = logging.getLogger(__name__)


# Constants
CF_BUF_SIZE = 130  # 128 data chars + newline + terminator
CF_MAX_LINE = CF_BUF_SIZE - 2
CF_COMMENT_KEYS = ("#", ";")
CF_BLANK_KEY = ""
CF_KEY_PUNCTUATION = "._-"
CF_TRUE = "true"
CF_FALSE = "false"
CF_ENCODING = "utf-8"


# Errors
class CFError(Exception):
    """Base class for configuration store errors."""


class CFEmptyKeyError(CFError, ValueError):
    """The key name is empty."""


class CFReservedKeyError(CFError, ValueError):
    """The key is a comment marker and can't hold a typed value."""


class CFCapacityError(CFError):
    """No free slot left in the store."""


class CFAllocationError(CFError, MemoryError):
    """Memory for a key or value couldn't be allocated."""


class CFClosedError(CFError):
    """The store has been destroyed."""


class CFIOError(CFError, IOError):
    """A configuration file couldn't be opened, read or written."""


class CFParseError(CFError):
    """A configuration file line couldn't be parsed."""

    def __init__(self, message: str, path: Optional[str] = None, lineno: int = 0):
        self.message = message
        self.path = path
        self.lineno = lineno
        super().__init__(self.__str__())

    def __str__(self) -> str:
        if self.path is not None and self.lineno:
            return f"{self.path}:{self.lineno}: {self.message}"
        if self.lineno:
            return f"line {self.lineno}: {self.message}"
        return self.message


class CFLineTooLongError(CFParseError):
    """A line is longer than CF_MAX_LINE characters."""


class CFMalformedLineError(CFParseError):
    """Bad key name, missing '=' or empty value."""


class CFStoreFullError(CFParseError):
    """The store ran out of slots while reading a file."""


# Data structures
@dataclass
class CFStore:
    """Fixed capacity key / value store. A slot is free when its key is None."""
    capacity: int = 0
    keys: List[Optional[str]] = None
    values: List[Optional[str]] = None
    is_open: bool = False

    def __post_init__(self):
        if self.keys is None:
            self.keys = [None] * self.capacity
        if self.values is None:
            self.values = [None] * self.capacity

    def __len__(self) -> int:
        return cf_count(self)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and cf_has_key(self, key)


# String helpers
def skip_spaces(text: str) -> str:
    """Skip spaces and tabs on the left of a string."""
    return text.lstrip(" \t")


def trim_string(text: str) -> str:
    """Trim spaces and tabs from both ends of a string."""
    return text.strip(" \t")


def is_key_char(ch: str) -> bool:
    """Check if a character is valid in a key name (A-Z a-z 0-9 . _ -)."""
    return ch.isascii() and (ch.isalnum() or ch in CF_KEY_PUNCTUATION)


def is_comment_key(key: str) -> bool:
    """Check if a key is a comment marker."""
    return key in CF_COMMENT_KEYS


def is_pseudo_key(key: str) -> bool:
    """Check if a key stands for a comment or a blank line."""
    return key == CF_BLANK_KEY or key in CF_COMMENT_KEYS


def _check_open(store: CFStore) -> None:
    if store is None or not store.is_open:
        raise CFClosedError("configuration store has been destroyed")


def _check_str(name: str, value) -> None:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str, not {type(value).__name__}")


# Slot helpers
def _cf_find(store: CFStore, key: str) -> int:
    """
    Find a key.

    Returns:
        Slot number, or -1 if the key is not in the store
    """
    for i, slot_key in enumerate(store.keys):
        if slot_key is not None and slot_key == key:
            return i
    return -1


def _cf_add(store: CFStore, key: str) -> int:
    """
    Put a key in the first free slot. Duplicates are not checked here.

    Returns:
        Slot number, or -1 if the store is full
    """
    for i, slot_key in enumerate(store.keys):
        if slot_key is None:
            store.keys[i] = key
            return i
    return -1


def _cf_set_slot(store: CFStore, value: str, entry: int) -> None:
    """Install a copy of value in a slot, keeping the old value on failure."""
    try:
        store.values[entry] = str(value)
    except MemoryError as e:
        raise CFAllocationError(f"can't allocate {len(value)} characters") from e


def _cf_del(store: CFStore, entry: int) -> None:
    """Free a slot."""
    store.values[entry] = None
    store.keys[entry] = None


def _cf_put(store: CFStore, key: str, value: str) -> int:
    """
    Set the value of a key, adding the key if needed.

    Pseudo keys (comments and blank lines) are never looked up, so each
    one goes to a new slot.

    Returns:
        Slot number of the entry
    """
    entry = -1 if is_pseudo_key(key) else _cf_find(store, key)
    if entry != -1:
        _cf_set_slot(store, value, entry)
        return entry

    entry = _cf_add(store, key)
    if entry == -1:
        logger.debug("No free slot for key %r (capacity %d)", key, store.capacity)
        raise CFCapacityError(f"no free slot for key '{key}' (capacity {store.capacity})")

    try:
        _cf_set_slot(store, value, entry)
    except CFAllocationError:
        _cf_del(store, entry)
        raise
    return entry


# Main CF functions
def cf_create(capacity: int) -> CFStore:
    """
    Create an empty configuration store.

    Args:
        capacity: Maximum number of entries, comments and blank lines included

    Returns:
        A CFStore with every slot free
    """
    if isinstance(capacity, bool) or not isinstance(capacity, int):
        raise TypeError(f"capacity must be an int, not {type(capacity).__name__}")
    if capacity < 0:
        raise ValueError(f"capacity can't be negative: {capacity}")

    try:
        store = CFStore(capacity=capacity)
    except MemoryError as e:
        raise CFAllocationError(f"can't allocate a store of {capacity} entries") from e
    store.is_open = True
    return store


def cf_destroy(store: CFStore) -> None:
    """Release every entry of a store. The store can't be used afterwards."""
    if store is not None and store.is_open:
        store.keys = []
        store.values = []
        store.capacity = 0
        store.is_open = False


def cf_set_key(store: CFStore, key: str, value: str) -> None:
    """
    Set the raw value of a key.

    An existing key gets its value replaced in place. The keys '#' and ';'
    always add a new comment entry.

    Args:
        store: The configuration store
        key: Key name, not empty
        value: Raw value, stored verbatim
    """
    _check_open(store)
    _check_str("key", key)
    _check_str("value", value)
    if not key:
        raise CFEmptyKeyError("key can't be empty")
    _cf_put(store, key, value)


def cf_get_key(store: CFStore, key: str) -> Optional[str]:
    """Get the raw value of a key, or None if the key doesn't exist."""
    _check_open(store)
    entry = _cf_find(store, key)
    if entry == -1:
        return None
    return store.values[entry]


def cf_add_comment(store: CFStore, text: str = "", marker: str = "#") -> None:
    """Append a comment line."""
    _check_open(store)
    _check_str("text", text)
    if not is_comment_key(marker):
        raise ValueError(f"comment marker must be one of {CF_COMMENT_KEYS}, not {marker!r}")
    _cf_put(store, marker, text)


def cf_add_blank(store: CFStore) -> None:
    """Append a blank line."""
    _check_open(store)
    _cf_put(store, CF_BLANK_KEY, "")


def cf_count(store: CFStore) -> int:
    """Number of used slots."""
    return sum(1 for key in store.keys if key is not None)


def cf_has_key(store: CFStore, key: str) -> bool:
    return cf_get_key(store, key) is not None


def cf_iter_entries(store: CFStore) -> Iterator[Tuple[str, str]]:
    """Yield (key, value) for each used slot, in slot order."""
    _check_open(store)
    for key, value in zip(store.keys, store.values):
        if key is not None:
            yield key, value


def cf_get_all(store: CFStore, visitor: Callable[[str, str], bool]) -> None:
    """
    Call visitor(key, value) for each used slot, comments included.

    The walk stops as soon as the visitor returns a true value.
    """
    for key, value in cf_iter_entries(store):
        if visitor(key, value):
            break


# Get functions
def parse_c_int(text: str) -> int:
    """
    Parse an integer the way C atoi does.

    Leading whitespace is skipped, an optional sign is accepted, and digits
    are read up to the first other character. Returns 0 when there are no
    digits.
    """
    i = 0
    n = len(text)
    while i < n and text[i] in " \t\n\v\f\r":
        i += 1

    negative = False
    if i < n and text[i] in "+-":
        negative = text[i] == "-"
        i += 1

    result = 0
    while i < n and "0" <= text[i] <= "9":
        result = result * 10 + (ord(text[i]) - ord("0"))
        i += 1

    return -result if negative else result


def parse_uint(text: str) -> Optional[int]:
    """Parse a string made only of decimal digits. Returns None otherwise."""
    result = 0
    for ch in text:
        if not "0" <= ch <= "9":
            return None
        result = result * 10 + (ord(ch) - ord("0"))
    return result


def unquote_string(text: str) -> Optional[str]:
    """
    Remove the double quotes around a string.

    Returns:
        The string between the quotes, the string itself if it's not quoted,
        or None if the opening quote is not closed
    """
    if not text.startswith('"'):
        return text
    if len(text) >= 2 and text.endswith('"'):
        return text[1:-1]
    return None


def cf_get_bool(store: CFStore, key: str, default: bool) -> bool:
    """Get a 'true' / 'false' value, or default for anything else."""
    value = cf_get_key(store, key)
    if value == CF_TRUE:
        return True
    if value == CF_FALSE:
        return False
    return default


def cf_get_int(store: CFStore, key: str, default: int) -> int:
    """
    Get an int value.

    Trailing garbage is ignored ('42x' gives 42, 'abc' gives 0). The default
    is only used when the key doesn't exist.
    """
    value = cf_get_key(store, key)
    if value is None:
        return default
    return parse_c_int(value)


def cf_get_uint(store: CFStore, key: str, default: int) -> int:
    """Get an unsigned int value. Anything but decimal digits gives default."""
    value = cf_get_key(store, key)
    if value is None:
        return default
    result = parse_uint(value)
    return default if result is None else result


def cf_get_str(store: CFStore, key: str, default: Optional[str]) -> Optional[str]:
    """
    Get a string value.

    Quoted values are returned without their quotes. A value with an opening
    quote but no closing one gives default.
    """
    value = cf_get_key(store, key)
    if value is None:
        return default
    result = unquote_string(value)
    return default if result is None else result


# Set functions
def _check_typed_key(key: str) -> None:
    _check_str("key", key)
    if not key:
        raise CFEmptyKeyError("key can't be empty")
    if is_comment_key(key):
        raise CFReservedKeyError(f"'{key}' is a comment marker")


def cf_set_bool(store: CFStore, key: str, value: bool) -> None:
    """Set a value to 'true' or 'false'."""
    _check_typed_key(key)
    cf_set_key(store, key, CF_TRUE if value else CF_FALSE)


def cf_set_int(store: CFStore, key: str, value: int) -> None:
    """Set an int value."""
    _check_typed_key(key)
    cf_set_key(store, key, str(int(value)))


def cf_set_uint(store: CFStore, key: str, value: int) -> None:
    """Set an unsigned int value."""
    _check_typed_key(key)
    value = int(value)
    if value < 0:
        raise ValueError(f"unsigned value can't be negative: {value}")
    cf_set_key(store, key, str(value))


def cf_set_str(store: CFStore, key: str, value: str) -> None:
    """Set a string value. It is stored between double quotes."""
    _check_typed_key(key)
    _check_str("value", value)
    try:
        quoted = f'"{value}"'
    except MemoryError as e:
        raise CFAllocationError(f"can't allocate {len(value) + 2} characters") from e
    cf_set_key(store, key, quoted)


# Debug functions
def cf_list_keys(store: CFStore) -> List[str]:
    """
    List the used slots, one line each.

    Format: 'NN : key = value' for keys, 'NN : # text' for comments and
    'NN :' for blank lines.
    """
    _check_open(store)
    lines = []
    for i, (key, value) in enumerate(zip(store.keys, store.values)):
        if key is None:
            continue
        if key == CF_BLANK_KEY:
            lines.append(f"{i:02d} :")
        elif is_comment_key(key):
            lines.append(f"{i:02d} : {key} {value}")
        else:
            lines.append(f"{i:02d} : {key} = {value}")
    return lines


def cf_print_keys(store: CFStore) -> None:
    """Print the used slots."""
    for line in cf_list_keys(store):
        print(line)
