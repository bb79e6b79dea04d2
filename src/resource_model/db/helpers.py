import re
import uuid
from datetime import date, datetime, timezone
from typing import Any

from dateutil import parser as date_parser

ZERO_UUID = "00000000-0000-0000-0000-000000000000"
ZERO_DATE = "0000-00-00"
ZERO_DATETIME = "0000-00-00 00:00:00"

STORAGE_DATE_FORMAT = "%Y-%m-%d"
STORAGE_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_NON_HEX = re.compile(r"[^a-fA-F0-9]")


def force_to_bool(value: Any) -> bool:
    """Liberally cast a value to ``bool``, treating ``"yes"``/``"no"`` as literals."""
    if isinstance(value, str):
        lowered = value.lower()
        if lowered == "yes":
            return True
        if lowered == "no":
            return False
    return bool(value)


def bool_to_yes_no(value: Any) -> str:
    return "yes" if force_to_bool(value) else "no"


def force_to_proper_uuid(value: Any) -> str:
    """Coerce any value into a lower-case, dashed UUID string.

    Non-hex characters are stripped, then the hex digits are truncated or
    right-padded with zeros to exactly 32 characters. ``None`` becomes the
    zero UUID.
    """
    if value is None:
        return ZERO_UUID
    if isinstance(value, (bytes, bytearray, memoryview)):
        value = bytes(value).hex()
    elif isinstance(value, uuid.UUID):
        value = value.hex
    elif not isinstance(value, str):
        value = str(value)

    digits = _NON_HEX.sub("", value)[:32].ljust(32, "0").lower()
    return f"{digits[0:8]}-{digits[8:12]}-{digits[12:16]}-{digits[16:20]}-{digits[20:32]}"


def uuid_to_bytes(value: str) -> bytes:
    return bytes.fromhex(_NON_HEX.sub("", value))


def to_bytes(value: Any) -> bytes:
    """Convert a value into ``bytes`` for binary columns.

    Lists of ints are packed directly; anything else is read as a hex string.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, (list, tuple)):
        return bytes(value)
    if isinstance(value, uuid.UUID):
        return value.bytes
    digits = _NON_HEX.sub("", str(value)).lower()
    if len(digits) % 2:
        digits = digits[:-1]
    return bytes.fromhex(digits)


def hexify(value: bytes) -> str:
    return "0x" + value.hex()


def parse_datetime(value: Any) -> datetime:
    """Parse a date/time permissively into an aware UTC ``datetime``.

    Accepts ``datetime``/``date`` objects, epoch milliseconds and any string
    python-dateutil understands. Naive values are taken as UTC. Raises
    ``ValueError`` for anything else.
    """
    if isinstance(value, bool):
        raise ValueError(f"Cannot interpret {value!r} as a date/time")
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)):
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise ValueError(f"Cannot interpret {value!r} as a date/time") from exc
    elif isinstance(value, str):
        try:
            parsed = date_parser.parse(value)
        except (OverflowError, ValueError) as exc:
            raise ValueError(f"Cannot interpret {value!r} as a date/time") from exc
    else:
        raise ValueError(f"Cannot interpret {value!r} as a date/time")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_iso_string(value: datetime) -> str:
    """Format an aware datetime as UTC ISO-8601 with milliseconds and ``Z``."""
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def normalize_date_value(value: Any) -> Any:
    """Render driver date values as ``YYYY-MM-DD`` strings, leaving others alone."""
    if isinstance(value, datetime):
        return value.strftime(STORAGE_DATE_FORMAT)
    if isinstance(value, date):
        return value.strftime(STORAGE_DATE_FORMAT)
    return value


def normalize_datetime_value(value: Any) -> Any:
    """Render driver datetime values as ``YYYY-MM-DD HH:MM:SS`` strings."""
    if isinstance(value, datetime):
        return value.strftime(STORAGE_DATETIME_FORMAT)
    if isinstance(value, date):
        return value.strftime(STORAGE_DATE_FORMAT) + " 00:00:00"
    return value
