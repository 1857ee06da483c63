"""
Row-image decoding and lenient value coercion.

Change-log payloads (KeyValues / NewValues / OldValues) are flat JSON objects
written by the stores' capture triggers. Both stores have drifted over time,
so every lookup here accepts a priority-ordered list of candidate field
names and never raises for a missing or malformed *value*: absent or
unparsable data becomes None / False / 0. Only the natural-key helpers
(require_key, require_key_datetime) raise MappingError, because without a key
there is no row to write.

Pure functions over dicts, no I/O.
"""
import json
from datetime import datetime
from typing import Dict, Iterable, Optional, Sequence, Union

from synchro.errors import MappingError

Scalar = Union[str, int, float, bool, datetime, None]
Payload = Dict[str, Scalar]

TRUE_STRINGS = frozenset({"true", "1"})
# Access checkboxes serialize as "Yes"/"No"
SECONDARY_TRUE_STRINGS = TRUE_STRINGS | {"yes"}

NULL_LITERAL = "null"

_DATETIME_FORMATS = (
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
)


# ── Payload decoding ──────────────────────────────────────────────────────────

def parse_payload(text: Optional[str], field: str = "payload") -> Payload:
    """Decode a JSON row image into a flat name → scalar mapping.

    Args:
        text: JSON text from the change log.
        field: Column name, used in error messages.

    Raises:
        MappingError: empty text, invalid JSON, not an object, or a nested value.
    """
    if text is None or not text.strip():
        raise MappingError(f"{field} is empty")
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MappingError(f"{field} is not valid JSON: {exc}") from exc

    # FOR JSON PATH without WITHOUT_ARRAY_WRAPPER wraps the row in an array
    if isinstance(raw, list) and len(raw) == 1:
        raw = raw[0]
    if not isinstance(raw, dict):
        raise MappingError(f"{field} must be a JSON object, got {type(raw).__name__}")

    payload: Payload = {}
    for name, value in raw.items():
        if isinstance(value, (dict, list)):
            raise MappingError(f"{field}.{name} is not a scalar value")
        payload[name] = value
    return payload


def _first(data: Payload, names: Iterable[str]) -> Scalar:
    """Value of the first candidate name present with a non-null value."""
    for name in names:
        value = data.get(name)
        if value is not None:
            return value
    return None


# ── Value coercion ────────────────────────────────────────────────────────────

def parse_datetime(value: Scalar) -> Optional[datetime]:
    """Parse a date/time leniently. Returns None when absent or unparsable.

    Accepts ISO 8601 (T or space separator, optional fraction and offset)
    and day-first dd/mm/YYYY forms. Offsets are converted to local time and
    dropped, since both stores hold naive local datetimes.
    """
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        return None
    s = value.strip()
    if not s or s.lower() == NULL_LITERAL:
        return None
    try:
        parsed = datetime.fromisoformat(s)
    except ValueError:
        parsed = None
    if parsed is not None:
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone().replace(tzinfo=None)
        return parsed
    for fmt in _DATETIME_FORMATS:
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    return None


def _as_text(value: Scalar) -> str:
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    return str(value)


def get_string(data: Payload, *names: str) -> Optional[str]:
    value = _first(data, names)
    return None if value is None else _as_text(value)


def get_datetime(data: Payload, *names: str) -> Optional[datetime]:
    return parse_datetime(_first(data, names))


def get_int(data: Payload, *names: str, default: int = 0) -> int:
    """Integer value, or ``default`` when missing or not integral."""
    value = _first(data, names)
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else default
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def get_bool(
    data: Payload, *names: str, truthy: frozenset = TRUE_STRINGS
) -> bool:
    """Boolean value: True only for a recognised true spelling.

    ``truthy`` is TRUE_STRINGS for primary-side images and
    SECONDARY_TRUE_STRINGS for Access-side images.
    """
    value = _first(data, names)
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    return str(value).strip().lower() in truthy


# ── Natural keys ──────────────────────────────────────────────────────────────

def require_key(keys: Payload, candidates: Sequence[str]) -> str:
    """Key value as text from the first candidate spelling that is present.

    Raises:
        MappingError: none of the candidates is present.
    """
    value = _first(keys, candidates)
    if value is None:
        raise MappingError(f"Key not found among: {', '.join(candidates)}")
    return _as_text(value)


def require_key_datetime(keys: Payload, candidates: Sequence[str]) -> datetime:
    """Date key from the first candidate spelling that parses.

    Raises:
        MappingError: no candidate holds a parsable date.
    """
    for name in candidates:
        parsed = parse_datetime(keys.get(name))
        if parsed is not None:
            return parsed
    raise MappingError(f"No valid date key among: {', '.join(candidates)}")


def key_datetime_or_now(
    keys: Payload, candidates: Sequence[str], now: Optional[datetime] = None
) -> datetime:
    """Date key from the first candidate that parses, else now (second precision)."""
    try:
        return require_key_datetime(keys, candidates)
    except MappingError:
        return (now or datetime.now()).replace(microsecond=0)
