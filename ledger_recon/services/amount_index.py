"""Candidate lookup by rounded amount."""

from collections import defaultdict
from collections.abc import Callable, Sequence
from decimal import Decimal

from ledger_recon.services.loading import ExternalRecord
from ledger_recon.services.normalization import round_amount


class AmountIndex:
    """Positions of external records grouped by amount rounded to cents.

    Built once per run. Lookups return positions into the record sequence the
    index was built from, in input order.
    """

    def __init__(self, records: Sequence[ExternalRecord]) -> None:
        self._buckets: dict[Decimal, list[int]] = defaultdict(list)
        for position, record in enumerate(records):
            self._buckets[round_amount(record.amount)].append(position)

    def __len__(self) -> int:
        return len(self._buckets)

    def candidates(self, amount: Decimal, is_available: Callable[[int], bool]) -> list[int]:
        """Positions sharing the rounded amount that are still available."""
        return [position for position in self._buckets.get(round_amount(amount), ()) if is_available(position)]
