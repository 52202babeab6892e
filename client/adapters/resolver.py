"""
Field resolver tables for tolerant payload mapping.

Each canonical field is described by a Field: an ordered tuple of accessors
(one per known wire spelling) and a default. Resolution takes the first
accessor that yields a present, non-null value and falls back to the default.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Sequence, Tuple
from urllib.parse import unquote

Accessor = Callable[[Mapping], Any]

def key(*path: str) -> Accessor:
    """
    Accessor reading a (possibly nested) key path.

    key("profile", "full_name") reads raw["profile"]["full_name"].
    """
    def access(raw: Mapping) -> Any:
        current: Any = raw
        for part in path:
            if not isinstance(current, Mapping) or part not in current:
                return None
            current = current[part]
        return current

    access.__name__ = '.'.join(path)
    return access


@dataclass(frozen=True)
class Field:
    """
    One canonical field and the wire spellings it may arrive under.

    Attributes:
        name: Canonical field name
        accessors: Candidate accessors in priority order
        default: Fallback value, or a zero-argument callable producing it
        skip_blank: Treat empty / whitespace-only strings as absent
    """
    name: str
    accessors: Tuple[Accessor, ...]
    default: Any = None
    skip_blank: bool = False

    def resolve(self, raw: Mapping) -> Any:
        for accessor in self.accessors:
            value = accessor(raw)
            if value is None:
                continue
            if self.skip_blank and isinstance(value, str) and not value.strip():
                continue
            return value
        return self.default() if callable(self.default) else self.default


def resolve_fields(raw: Any, table: Sequence[Field]) -> dict:
    """Resolve every field of a table against a payload; non-mappings resolve to defaults."""
    source = raw if isinstance(raw, Mapping) else {}
    return {f.name: f.resolve(source) for f in table}


def as_mapping(raw: Any) -> Mapping:
    return raw if isinstance(raw, Mapping) else {}


def unwrap(raw: Any, wrappers: Sequence[str], markers: Sequence[str]) -> Mapping:
    """
    Peel a single-entity envelope such as {"data": {...}} or {"file": {...}}.

    The payload is returned as-is when it already carries one of the marker
    keys of the entity.
    """
    current = as_mapping(raw)
    for _ in range(3):
        if any(marker in current for marker in markers):
            return current
        inner = next(
            (current[w] for w in wrappers if isinstance(current.get(w), Mapping)),
            None,
        )
        if inner is None:
            return current
        current = inner
    return current


def list_items(raw: Any, wrappers: Sequence[str]) -> List[Any]:
    """Extract the item list from a bare array or a {"items": [...]}-style envelope."""
    if isinstance(raw, list):
        return raw
    if isinstance(raw, Mapping):
        for wrapper in wrappers:
            value = raw.get(wrapper)
            if isinstance(value, list):
                return value
            if isinstance(value, Mapping):
                nested = list_items(value, wrappers)
                if nested:
                    return nested
    return []


def to_int(value: Any, default: int = 0) -> int:
    """Coerce numbers and numeric-looking strings to int, else default."""
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value == value and value not in (float('inf'), float('-inf')) else default
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return default
        return int(number) if number == number and abs(number) != float('inf') else default
    return default


def to_non_negative_int(value: Any) -> int:
    return max(to_int(value), 0)


ID_KEYS = ('id', '_id', 'user_id', 'userId', 'uuid')


def to_opaque_id(value: Any) -> str:
    """
    Resolve a reference to an opaque id string.

    Accepts a bare number, a numeric or UUID string, or an object carrying an
    id under one of the usual keys.
    """
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else str(value)
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, Mapping):
        for id_key in ID_KEYS:
            resolved = to_opaque_id(value.get(id_key))
            if resolved:
                return resolved
    return ""


def to_bool(value: Any, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ('true', '1', 'yes', 'y', 'read'):
            return True
        if text in ('false', '0', 'no', 'n', 'unread', ''):
            return False
    return default


def to_text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def to_optional_text(value: Any) -> Optional[str]:
    text = to_text(value)
    return text or None


def decode_name(value: Any, default: str) -> str:
    """Percent-decode a wire file name; malformed escapes are kept literally."""
    text = to_text(value)
    if not text:
        return default
    try:
        return unquote(text, errors='strict')
    except UnicodeDecodeError:
        return text


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def to_iso_timestamp(value: Any) -> str:
    """
    Normalize a timestamp to an ISO-8601 string.

    Strings pass through; epoch numbers (seconds or milliseconds) are
    converted to UTC; anything else becomes the current time.
    """
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.isdigit():
            return to_iso_timestamp(int(text))
        return text
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = value / 1000 if value > 1e11 else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat()
        except (OverflowError, OSError, ValueError):
            return utc_now_iso()
    if isinstance(value, datetime):
        moment = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        return moment.isoformat()
    return utc_now_iso()
