"""Ledger entries, external records and their stable identities.

Rows arrive as plain mappings from an external loader (spreadsheet, CSV or
HTTP payload). Rows without a date or an amount are dropped here; every other
row becomes an immutable value carrying its normalized concept, the digit runs
of its raw concept and an id that only depends on the row contents, so reruns
over unchanged rows reproduce the same ids and persisted overrides keep
resolving.
"""

import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from ledger_recon.logger import get_logger
from ledger_recon.services.normalization import extract_numbers, normalize, parse_amount

logger = get_logger(__name__)

EntryNumber = str | int | float | None

ENTRY_ID_PREFIX = "ACC"
RECORD_ID_PREFIX = "BANK"
RECORD_CONCEPT_KEY_LENGTH = 20

_EPOCH = date(1970, 1, 1)
_MILLIS_PER_DAY = 86_400_000
_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def epoch_millis(value: date) -> int:
    """Milliseconds since the Unix epoch at UTC midnight of ``value``."""
    return (value - _EPOCH).days * _MILLIS_PER_DAY


def format_amount(amount: Decimal) -> str:
    """Render an amount as its plain numeric value ("-150", "1750.5", "0")."""
    if amount == 0:
        return "0"
    return format(amount.normalize(), "f")


def format_entry_number(entry_number: EntryNumber) -> str:
    """Entry number as used in ids; missing, blank, zero and NaN numbers render as ""."""
    if entry_number is None or entry_number == "" or entry_number == 0:
        return ""
    if isinstance(entry_number, float) and math.isnan(entry_number):
        return ""
    if isinstance(entry_number, float) and entry_number.is_integer():
        return str(int(entry_number))
    return str(entry_number)


def concept_key(concept: str) -> str:
    """Alphanumeric characters found in the first 20 characters of a concept."""
    return _NON_ALNUM.sub("", concept[:RECORD_CONCEPT_KEY_LENGTH])


def build_entry_id(entry_date: date, entry_number: EntryNumber, amount: Decimal) -> str:
    return (
        f"{ENTRY_ID_PREFIX}_{epoch_millis(entry_date)}_"
        f"{format_entry_number(entry_number)}_{format_amount(amount)}"
    )


def build_record_id(txn_date: date, concept: str, amount: Decimal) -> str:
    return f"{RECORD_ID_PREFIX}_{epoch_millis(txn_date)}_{concept_key(concept)}_{format_amount(amount)}"


@dataclass(frozen=True)
class LedgerEntry:
    """One internal accounting entry to reconcile."""

    id: str
    entry_date: date
    entry_number: EntryNumber
    concept: str
    amount: Decimal
    normalized_concept: str
    numbers: tuple[str, ...]

    @classmethod
    def create(
        cls,
        *,
        entry_date: date,
        concept: str,
        amount: Decimal,
        entry_number: EntryNumber = None,
        id: str | None = None,
    ) -> "LedgerEntry":
        concept = concept or ""
        return cls(
            id=id or build_entry_id(entry_date, entry_number, amount),
            entry_date=entry_date,
            entry_number=entry_number,
            concept=concept,
            amount=amount,
            normalized_concept=normalize(concept),
            numbers=tuple(extract_numbers(concept)),
        )


@dataclass(frozen=True)
class ExternalRecord:
    """One counterpart transaction line, e.g. a bank statement movement."""

    id: str
    txn_date: date
    value_date: date | None
    concept: str
    additional: str
    amount: Decimal
    normalized_concept: str
    numbers: tuple[str, ...]

    @classmethod
    def create(
        cls,
        *,
        txn_date: date,
        concept: str,
        amount: Decimal,
        additional: str = "",
        value_date: date | None = None,
        id: str | None = None,
    ) -> "ExternalRecord":
        concept = concept or ""
        additional = additional or ""
        full_concept = f"{concept} {additional}"
        return cls(
            id=id or build_record_id(txn_date, concept, amount),
            txn_date=txn_date,
            value_date=value_date,
            concept=concept,
            additional=additional,
            amount=amount,
            normalized_concept=normalize(full_concept),
            numbers=tuple(extract_numbers(full_concept)),
        )


def parse_date(value: Any) -> date | None:
    """Parse ``date``/``datetime`` values, ISO strings and DD/MM/YYYY strings."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    try:
        return datetime.strptime(text, "%d/%m/%Y").date()
    except ValueError:
        return None


def _has_amount(value: Any) -> bool:
    # Zero is a valid amount; only missing cells are rejected
    return value is not None and value != ""


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def load_ledger_entries(rows: Iterable[Mapping[str, Any]]) -> list[LedgerEntry]:
    """Build ledger entries from rows with date/entry_number/concept/amount keys."""
    entries: list[LedgerEntry] = []
    skipped = 0
    for row in rows:
        entry_date = parse_date(row.get("date"))
        if entry_date is None or not _has_amount(row.get("amount")):
            skipped += 1
            continue
        entries.append(
            LedgerEntry.create(
                id=row.get("id") or None,
                entry_date=entry_date,
                entry_number=row.get("entry_number"),
                concept=_text(row.get("concept")),
                amount=parse_amount(row.get("amount")),
            )
        )

    if skipped:
        logger.info("Skipped malformed ledger rows", skipped=skipped, loaded=len(entries))
    return entries


def load_external_records(rows: Iterable[Mapping[str, Any]]) -> list[ExternalRecord]:
    """Build external records from rows with date/value_date/concept/additional/amount keys."""
    records: list[ExternalRecord] = []
    skipped = 0
    for row in rows:
        txn_date = parse_date(row.get("date"))
        if txn_date is None or not _has_amount(row.get("amount")):
            skipped += 1
            continue
        records.append(
            ExternalRecord.create(
                id=row.get("id") or None,
                txn_date=txn_date,
                value_date=parse_date(row.get("value_date")),
                concept=_text(row.get("concept")),
                additional=_text(row.get("additional")),
                amount=parse_amount(row.get("amount")),
            )
        )

    if skipped:
        logger.info("Skipped malformed external rows", skipped=skipped, loaded=len(records))
    return records
