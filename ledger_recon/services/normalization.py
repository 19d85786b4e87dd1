"""Concept normalization, number extraction and amount parsing."""

import re
from decimal import ROUND_FLOOR, Decimal, InvalidOperation

_NON_WORD = re.compile(r"[^A-Za-z0-9_\s]")
_WHITESPACE = re.compile(r"\s+")
_DIGIT_RUN = re.compile(r"[0-9]+")
_NUMERIC_PREFIX = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")

CENT = Decimal("0.01")
_HALF = Decimal("0.5")


def normalize(text: str | None) -> str:
    """Lowercase, replace punctuation with spaces and collapse whitespace.

    Only ASCII letters, digits and underscores survive; accented letters become
    separators ("Nómina" -> "n mina").
    """
    if not text:
        return ""
    cleaned = _NON_WORD.sub(" ", text.lower())
    return _WHITESPACE.sub(" ", cleaned).strip()


def extract_numbers(text: str | None) -> list[str]:
    """Return every digit run of the raw text with leading zeros stripped.

    A run made only of zeros becomes an empty string; it keeps its slot so the
    list stays positionally aligned with the runs in the text.
    """
    if not text:
        return []
    return [run.lstrip("0") for run in _DIGIT_RUN.findall(text)]


def parse_amount(value: object) -> Decimal:
    """Parse a Spanish-formatted amount ("-1.750,00") into a Decimal.

    Never raises: anything unparseable yields ``Decimal("0")``.
    """
    if isinstance(value, Decimal):
        return value if value.is_finite() else Decimal("0")
    if isinstance(value, bool) or value is None:
        return Decimal("0")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        try:
            parsed = Decimal(str(value))
        except InvalidOperation:
            return Decimal("0")
        return parsed if parsed.is_finite() else Decimal("0")

    text = str(value).strip()
    # Thousands separators are dots, the decimal separator is a comma
    text = text.replace(".", "").replace(",", ".", 1)
    match = _NUMERIC_PREFIX.match(text)
    if not match:
        return Decimal("0")
    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return Decimal("0")


def round_amount(amount: Decimal) -> Decimal:
    """Round to cents, the exact-match key between entries and records.

    Half cents round towards positive infinity on both signs: 10.005 -> 10.01
    and -10.005 -> -10.00.
    """
    cents = (amount * 100 + _HALF).to_integral_value(rounding=ROUND_FLOOR)
    return (cents * CENT).quantize(CENT)
