"""Parsing and type casting of raw request values.

Every failure is re-raised as ``ParseError`` so callers can handle all of
them together (see ``resourcekit.core.errors.install_error_handlers``).

More parsers are defined by calling ``parse`` with a conversion function::

    def parse_money(value):
        return parse(value, lambda raw: Money.from_string(raw))
"""

from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, List, Optional, TypeVar
from zoneinfo import ZoneInfo

from resourcekit.core.config import settings

T = TypeVar("T")

FALSE_VALUES = frozenset({"0", "f", "false", "off", "n", "no"})

# Signed 64-bit range of database integer columns.
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class ParseError(ValueError):
    """Wraps any exception raised while parsing a value.

    ``original_message`` keeps the message of the wrapped exception and
    ``value`` the raw value which failed to parse.
    """

    def __init__(self, original_message: Optional[str] = None, value: Any = None):
        message = f"Error while parsing: {value!r}"
        self.original_message = original_message or message
        self.value = value
        super().__init__(message)

    def __str__(self) -> str:
        return f"{super().__str__()} ({self.original_message})"


def parse(value: Any, func: Callable[[Any], T]) -> Optional[T]:
    if value is None:
        return None
    try:
        return func(value)
    except ParseError:
        raise
    except Exception as exc:
        raise ParseError(str(exc), value) from exc


def parse_array(value: Any, func: Callable[[Any], T]) -> Optional[List[Optional[T]]]:
    """Parses each item of a list. Returns ``None`` if value is not a list."""
    if not isinstance(value, (list, tuple)):
        return None
    return parse(value, lambda items: [None if item is None else func(item) for item in items])


def _text(value: Any) -> str:
    text = str(value).strip()
    if not text:
        raise ValueError("blank value")
    return text


def _to_int(value: Any) -> int:
    number = int(value) if isinstance(value, int) else int(_text(value))
    if not INT64_MIN <= number <= INT64_MAX:
        raise ValueError("integer out of range")
    return number


def _to_float(value: Any) -> float:
    if isinstance(value, (int, float)):
        return float(value)
    return float(_text(value).replace(",", "."))


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    return Decimal(_text(value).replace(",", "."))


def parse_int(value):
    return parse(value, _to_int)


def parse_int_array(value):
    return parse_array(value, _to_int)


def parse_float(value):
    return parse(value, _to_float)


def parse_float_array(value):
    return parse_array(value, _to_float)


def parse_decimal(value):
    return parse(value, _to_decimal)


def parse_decimal_array(value):
    return parse_array(value, _to_decimal)


def parse_string(value):
    return parse(value, str)


def parse_string_array(value):
    return parse_array(value, str)


def _to_boolean(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    text = str(value).strip().lower()
    if not text:
        return None
    return text not in FALSE_VALUES


def parse_boolean(value) -> Optional[bool]:
    """Blank is ``None``, known false literals are ``False``, anything else ``True``."""
    return parse(value, _to_boolean)


def _to_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = _text(value)
    # Accept either YYYY-MM-DD or full ISO datetime and take its date part.
    if "T" in text or " " in text:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    return date.fromisoformat(text)


def parse_date(value) -> Optional[date]:
    return parse(value, _to_date)


def _to_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        try:
            if "T" not in text and " " not in text and len(text) == 10:
                # Date-only value -> start of the day.
                parsed = datetime.combine(date.fromisoformat(text), datetime.min.time())
            else:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            raise ValueError("Invalid datetime")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=ZoneInfo(settings.TIME_ZONE))
    return parsed


def parse_datetime(value) -> Optional[datetime]:
    """Parses ISO datetime, naive values are taken in ``settings.TIME_ZONE``."""
    return parse(value, _to_datetime)


def _to_json(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return json.loads(value)


def parse_json(value) -> Any:
    return parse(value, _to_json)
