"""Combined match score: date proximity plus concept similarity."""

from datetime import date

from ledger_recon.services.loading import ExternalRecord, LedgerEntry
from ledger_recon.services.similarity import concept_similarity

DATE_WEIGHT = 0.3
CONCEPT_WEIGHT = 0.7


def score_date(entry_date: date, record_date: date, tolerance_days: int) -> float:
    """Score date proximity (0 - DATE_WEIGHT).

    Same day earns the full weight; inside the tolerance window the weight
    decays linearly over twice the tolerance, so the window edge still scores
    half the weight.
    """
    diff_days = abs((entry_date - record_date).days)
    if diff_days == 0:
        return DATE_WEIGHT
    if diff_days <= tolerance_days:
        return DATE_WEIGHT * (1 - diff_days / (2 * tolerance_days))
    return 0.0


def score_match(entry: LedgerEntry, record: ExternalRecord, tolerance_days: int) -> float:
    """Score an entry/record pair in [0, 1]."""
    similarity = concept_similarity(
        entry.normalized_concept,
        record.normalized_concept,
        entry.numbers,
        record.numbers,
    )
    return score_date(entry.entry_date, record.txn_date, tolerance_days) + CONCEPT_WEIGHT * similarity
