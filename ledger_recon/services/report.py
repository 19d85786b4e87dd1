"""Summary counts and display ordering for reconciliation results."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from functools import cmp_to_key

from ledger_recon.services.loading import EntryNumber, LedgerEntry
from ledger_recon.services.reconciliation import ReconciliationResult


class EntryStatus(str, Enum):
    AUTO_MATCHED = "auto_matched"
    MANUAL_MATCHED = "manual_matched"
    CONFLICT = "conflict"
    UNMATCHED = "unmatched"


@dataclass(frozen=True)
class ReconciliationSummary:
    matched: int
    auto_matched: int
    manual_matched: int
    conflicts: int
    unmatched_entries: int
    unmatched_records: int

    @property
    def total_processed(self) -> int:
        return self.matched + self.conflicts + self.unmatched_entries


@dataclass(frozen=True)
class ReportRow:
    entry_id: str
    entry_date: date
    entry_number: EntryNumber
    concept: str
    amount: Decimal
    status: EntryStatus
    record_id: str | None = None
    score: float | None = None
    candidate_count: int = 0


def summarize(result: ReconciliationResult) -> ReconciliationSummary:
    manual = sum(1 for match in result.matched if match.is_manual)
    return ReconciliationSummary(
        matched=len(result.matched),
        auto_matched=len(result.matched) - manual,
        manual_matched=manual,
        conflicts=len(result.conflicts),
        unmatched_entries=len(result.unmatched_entries),
        unmatched_records=len(result.unmatched_records),
    )


def _as_number(entry_number: EntryNumber) -> float | None:
    if entry_number is None or entry_number == "":
        return 0.0
    try:
        return float(str(entry_number).strip())
    except ValueError:
        return None


def compare_entry_numbers(a: EntryNumber, b: EntryNumber) -> int:
    """Numeric comparison when both parse as numbers, text comparison otherwise."""
    num_a = _as_number(a)
    num_b = _as_number(b)
    if num_a is not None and num_b is not None:
        return (num_a > num_b) - (num_a < num_b)
    text_a = "" if a is None else str(a)
    text_b = "" if b is None else str(b)
    return (text_a > text_b) - (text_a < text_b)


def _compare_rows(a: ReportRow, b: ReportRow) -> int:
    if a.entry_date != b.entry_date:
        return -1 if a.entry_date < b.entry_date else 1
    return compare_entry_numbers(a.entry_number, b.entry_number)


def _row(entry: LedgerEntry, status: EntryStatus, **extra: object) -> ReportRow:
    return ReportRow(
        entry_id=entry.id,
        entry_date=entry.entry_date,
        entry_number=entry.entry_number,
        concept=entry.concept,
        amount=entry.amount,
        status=status,
        **extra,
    )


def ordered_rows(result: ReconciliationResult) -> list[ReportRow]:
    """One row per ledger entry ordered by (date, entry number)."""
    rows: list[ReportRow] = []
    for match in result.matched:
        status = EntryStatus.MANUAL_MATCHED if match.is_manual else EntryStatus.AUTO_MATCHED
        rows.append(_row(match.entry, status, record_id=match.record.id, score=match.score))
    for conflict in result.conflicts:
        rows.append(_row(conflict.entry, EntryStatus.CONFLICT, candidate_count=len(conflict.candidates)))
    for entry in result.unmatched_entries:
        rows.append(_row(entry, EntryStatus.UNMATCHED))

    return sorted(rows, key=cmp_to_key(_compare_rows))
