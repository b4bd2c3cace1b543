"""
FieldSync Backend: Field Normalization
=======================================

What:  Converts loosely-typed values from the mobile client into storage values.
How:   Small pure functions, one per value kind. None of them raise: a value
       that cannot be interpreted becomes 0 (numbers) or None (text, dates,
       times), so one malformed field never aborts a whole report.

Formats accepted:
    Dates   DD/MM/YYYY, D/M/YYYY, DD-MM-YYYY, YYYY-MM-DD (optionally followed
            by a time part, as Dart's DateTime.toString() produces)
    Times   HH:MM, HH:MM:SS, and 12-hour forms such as "3:05 PM"
    Numbers plain decimals; a lone comma is read as the decimal separator
"""

from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

INT32_MAX = 2**31 - 1
INT64_MAX = 2**63 - 1

# Integer parses with more digits than this are malformed whatever the cap
_MAX_INT_DIGITS = len(str(INT64_MAX))

_CENT = Decimal("0.01")

_DATE_FORMATS = ("%d/%m/%Y", "%d-%m-%Y", "%Y-%m-%d")
_TIME_FORMATS = ("%H:%M:%S", "%H:%M", "%I:%M %p", "%I:%M:%S %p", "%I:%M%p")


def coerce_text(value: Any) -> Optional[str]:
    """
    Stringify JSON scalars; anything else (objects, lists, null) is None.

    Booleans are rejected so `true` never turns into the text "True".
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    return None


def clean_text(value: Any) -> Optional[str]:
    """Stripped text, or None when there is no content."""
    text = coerce_text(value)
    if text is None:
        return None
    text = text.strip()
    return text or None


def _numeric_text(value: Any) -> Optional[str]:
    text = coerce_text(value)
    if text is None:
        return None
    cleaned = text.strip()
    if "," in cleaned and "." not in cleaned:
        cleaned = cleaned.replace(",", ".")
    return cleaned or None


def parse_amount(value: Any, max_digits: int = 10) -> Decimal:
    """
    Best-effort decimal parse of a monetary amount.

    Returns Decimal 0 for empty, non-numeric, non-finite values and for
    values whose integer part has more than `max_digits` digits (they would
    not fit the money columns). The result is rounded to cents.
    """
    cleaned = _numeric_text(value)
    if cleaned is None:
        return Decimal(0)
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return Decimal(0)
    if not amount.is_finite() or (amount and amount.adjusted() >= max_digits):
        return Decimal(0)
    return amount.quantize(_CENT, rounding=ROUND_HALF_UP)


def parse_int(value: Any, max_abs: Optional[int] = None) -> int:
    """
    Best-effort integer parse; fractional parts are truncated toward zero.

    Values beyond `max_abs` (when given), or longer than a 64-bit integer,
    are treated as malformed and become 0. The digit count is checked on the
    Decimal exponent before converting, so "9e999999999" stays cheap.
    """
    cleaned = _numeric_text(value)
    if cleaned is None:
        return 0
    try:
        number = Decimal(cleaned)
    except InvalidOperation:
        return 0
    if not number.is_finite():
        return 0
    digit_limit = len(str(max_abs)) if max_abs is not None else _MAX_INT_DIGITS
    if number.adjusted() >= digit_limit:
        return 0
    result = int(number)
    if max_abs is not None and abs(result) > max_abs:
        return 0
    return result


def normalize_date(value: Any) -> Optional[date]:
    """
    Translate a human date into a calendar date.

    "04/10/2001" → date(2001, 10, 4). Empty or unparseable input → None,
    never a malformed string.
    """
    text = clean_text(value)
    if text is None:
        return None

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            pass

    # "2001-10-04 00:00:00.000" / "2001-10-04T00:00:00Z"
    if len(text) > 10 and text[10] in (" ", "T"):
        try:
            return datetime.strptime(text[:10], "%Y-%m-%d").date()
        except ValueError:
            pass

    return None


def normalize_time(value: Any) -> Optional[time]:
    """Translate "HH:MM", "HH:MM:SS" or a 12-hour time; otherwise None."""
    text = clean_text(value)
    if text is None:
        return None

    for fmt in _TIME_FORMATS:
        try:
            return datetime.strptime(text.upper(), fmt).time()
        except ValueError:
            pass
    return None
