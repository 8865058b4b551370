"""Mount option string helpers (comma-separated name or name=value tokens)."""

from typing import Iterable, List, Optional, Tuple

from .errors import OptionParseError


def _tokens(options: Optional[str]) -> List[str]:
    if not options:
        return []
    return options.split(",")


def _matches(token: str, name: str) -> bool:
    return token == name or token.startswith(name + "=")


def has_option(options: Optional[str], name: str) -> bool:
    """True if any token is exactly name or starts with name=."""
    return any(_matches(t, name) for t in _tokens(options))


def find_option_value(options: Optional[str], name: str) -> Optional[str]:
    """Return the value of the first name=value token.

    A bare name yields "" so callers can tell "present without value" from
    "absent" (None).
    """
    for t in _tokens(options):
        if t == name:
            return ""
        if t.startswith(name + "="):
            return t[len(name) + 1:]
    return None


def find_priority(options: Optional[str]) -> Optional[int]:
    """Parse pri=N. Absent is None, anything but an unsigned decimal raises."""
    for t in _tokens(options):
        if not _matches(t, "pri"):
            continue
        if t == "pri":
            raise OptionParseError("Option pri has no value")
        value = t[len("pri="):]
        if not value or not value.isascii() or not value.isdigit():
            raise OptionParseError(f"Invalid priority value: {value!r}")
        pri = int(value)
        # Priority= takes a signed 32-bit value
        if pri > 2 ** 31 - 1:
            raise OptionParseError(f"Priority value out of range: {value}")
        return pri
    return None


def filter_options(options: Optional[str], names: Iterable[str]) -> Tuple[Optional[str], str]:
    """Remove every token matching one of names.

    Returns (value, filtered): value of the last matching token (None if
    none matched) and the remaining tokens re-joined with commas.
    """
    names = tuple(names)
    value: Optional[str] = None
    kept: List[str] = []
    for t in _tokens(options):
        hit = next((n for n in names if _matches(t, n)), None)
        if hit is None:
            kept.append(t)
        else:
            value = t[len(hit) + 1:] if t != hit else ""
    return value, ",".join(kept)
