"""
Field Interpreter

Classifies a recognized band string as an amount, a timestamp, or neither.

Amounts look like ``-12.34`` and are kept as integer cents. Timestamps
start with ``20YY-MM-DD`` followed by ``H:MM`` or ``HH:MM``; the space
between day and hour is optional because blank columns never produce a
glyph.

Only the calendar day of a timestamp is kept: hour and minute are read
and then forced to zero. OCR'd time-of-day has not been trusted so far;
whether that is the right product behaviour still needs confirmation.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, tzinfo
from decimal import Decimal, InvalidOperation, ROUND_DOWN
from enum import Enum
from typing import Optional, Union
from zoneinfo import ZoneInfo

from .result import ExtractedRecord

logger = logging.getLogger(__name__)


DEFAULT_TIMEZONE = "Asia/Shanghai"

AMOUNT_PATTERN = re.compile(r"^[-+][0-9]+\.[0-9]{2}$")
TIMESTAMP_PATTERN = re.compile(
    r"^(20[0-9]{2})-([0-9]{2})-([0-9]{2})\s*([0-9]{1,2}):([0-9]{1,2})"
)


class FieldKind(Enum):
    AMOUNT = "amount"
    TIMESTAMP = "timestamp"


@dataclass(frozen=True)
class FieldMatch:
    kind: FieldKind
    value: Union[int, datetime]


def resolve_timezone(tz: Union[str, tzinfo, None]) -> tzinfo:
    if tz is None:
        return ZoneInfo(DEFAULT_TIMEZONE)
    if isinstance(tz, str):
        return ZoneInfo(tz)
    return tz


def parse_amount(text: str) -> Optional[int]:
    """
    Parse a signed two-decimal amount into integer cents.

    Returns:
        Cents, e.g. "-12.34" -> -1234, or None if the text is not an amount
    """
    text = text.strip()
    if not AMOUNT_PATTERN.match(text):
        return None
    try:
        cents = Decimal(text) * 100
    except InvalidOperation:
        return None
    return int(cents.to_integral_value(rounding=ROUND_DOWN))


def parse_timestamp(text: str, tz: Union[str, tzinfo, None] = None) -> Optional[datetime]:
    """
    Parse a ``20YY-MM-DD HH:MM`` prefix into a midnight datetime.

    Args:
        text: Recognized band text
        tz: Civil time zone the date is interpreted in

    Returns:
        Timezone-aware datetime at 00:00 of the read day, or None
    """
    m = TIMESTAMP_PATTERN.match(text.strip())
    if not m:
        return None

    year, month, day, hour, minute = (int(g) for g in m.groups())
    # Time of day is read but not trusted
    hour, minute = 0, 0
    try:
        return datetime(year, month, day, hour, minute, tzinfo=resolve_timezone(tz))
    except ValueError as e:
        logger.debug(f"Timestamp-shaped text {text!r} is not a valid date: {e}")
        return None


def interpret(text: str, tz: Union[str, tzinfo, None] = None) -> Optional[FieldMatch]:
    """Classify one band string; None when it is neither field."""
    cents = parse_amount(text)
    if cents is not None:
        return FieldMatch(FieldKind.AMOUNT, cents)
    stamp = parse_timestamp(text, tz)
    if stamp is not None:
        return FieldMatch(FieldKind.TIMESTAMP, stamp)
    return None


class FieldCollector:
    """
    Accumulates fields over the bands of one image.

    Each field keeps the last value seen before the record completed;
    once both are present, further bands are ignored.
    """

    def __init__(self, tz: Union[str, tzinfo, None] = None):
        self._tz = resolve_timezone(tz)
        self.record = ExtractedRecord()

    @property
    def complete(self) -> bool:
        return self.record.is_complete

    def feed(self, text: str) -> Optional[FieldMatch]:
        """
        Interpret one band string and update the record.

        Returns:
            The field found in this string, if any
        """
        if self.complete:
            return None

        found = interpret(text, self._tz)
        if found is None:
            return None
        if found.kind is FieldKind.AMOUNT:
            self.record.amount_cents = found.value
        else:
            self.record.timestamp = found.value
        logger.debug(f"Band {text!r} read as {found.kind.value}: {found.value}")
        return found
