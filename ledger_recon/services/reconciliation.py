"""Reconciliation matching engine.

Each ledger entry, in input order, goes through:

    override check -> candidate retrieval -> scoring -> decision

and ends in exactly one of matched, conflicts or unmatched entries. External
records live in a pool owned by the run; a record leaves the pool the moment
it is matched and is never offered to a later entry.
"""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import yaml

from ledger_recon.config import Settings, settings
from ledger_recon.logger import get_logger, log_timing
from ledger_recon.services.amount_index import AmountIndex
from ledger_recon.services.loading import ExternalRecord, LedgerEntry
from ledger_recon.services.scoring import score_match

logger = get_logger(__name__)

MANUAL_MATCH_SCORE = 1.0
CLEAR_WINNER_MARGIN = 0.2
MAX_CONFLICT_CANDIDATES = 5
MAX_DATE_TOLERANCE_DAYS = 10

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "reconciliation.yaml"


@dataclass(frozen=True)
class ReconciliationConfig:
    """Runtime configuration for one reconciliation run."""

    date_tolerance_days: int = 3
    min_similarity_score: float = 0.3

    def __post_init__(self) -> None:
        if not 0 <= self.date_tolerance_days <= MAX_DATE_TOLERANCE_DAYS:
            raise ValueError(
                f"date_tolerance_days must be between 0 and {MAX_DATE_TOLERANCE_DAYS}, "
                f"got {self.date_tolerance_days}"
            )
        if not 0.0 <= self.min_similarity_score <= 1.0:
            raise ValueError(f"min_similarity_score must be between 0 and 1, got {self.min_similarity_score}")


DEFAULT_CONFIG = ReconciliationConfig()


def _read_yaml_config(path: Path, base: ReconciliationConfig) -> ReconciliationConfig:
    try:
        raw = yaml.safe_load(path.read_text()) or {}
        scoring = raw.get("scoring", {})
        thresholds = scoring.get("thresholds", {})
        tolerances = scoring.get("tolerances", {})
        return ReconciliationConfig(
            date_tolerance_days=int(tolerances.get("date_days", base.date_tolerance_days)),
            min_similarity_score=float(thresholds.get("min_similarity_score", base.min_similarity_score)),
        )
    except Exception as e:
        logger.warning(
            "Failed to load reconciliation config - using defaults",
            config_path=str(path),
            error=str(e),
            error_type=type(e).__name__,
        )
        return base


def load_reconciliation_config(
    path: Path | str | None = None,
    *,
    date_tolerance_days: int | None = None,
    min_similarity_score: float | None = None,
    app_settings: Settings | None = None,
) -> ReconciliationConfig:
    """Build the configuration for a run.

    Precedence, lowest first: defaults, YAML file, environment settings that
    were explicitly set, keyword arguments. A new value is built on every call.
    """
    active = app_settings or settings
    config = DEFAULT_CONFIG

    if path is not None:
        config_path = Path(path)
    elif active.reconciliation_config_path:
        config_path = Path(active.reconciliation_config_path)
    else:
        config_path = DEFAULT_CONFIG_PATH

    if config_path.exists():
        config = _read_yaml_config(config_path, config)

    explicit = active.model_fields_set
    tolerance = config.date_tolerance_days
    threshold = config.min_similarity_score
    if "date_tolerance_days" in explicit:
        tolerance = active.date_tolerance_days
    if "min_similarity_score" in explicit:
        threshold = active.min_similarity_score
    if date_tolerance_days is not None:
        tolerance = date_tolerance_days
    if min_similarity_score is not None:
        threshold = min_similarity_score

    return ReconciliationConfig(date_tolerance_days=tolerance, min_similarity_score=threshold)


class ConflictReason(str, Enum):
    """Why an entry needs human review."""

    LOW_CONFIDENCE = "low_confidence"
    MULTIPLE_CANDIDATES = "multiple_candidates"


@dataclass(frozen=True)
class MatchResult:
    entry: LedgerEntry
    record: ExternalRecord
    score: float
    is_manual: bool


@dataclass(frozen=True)
class ScoredCandidate:
    record: ExternalRecord
    score: float


@dataclass(frozen=True)
class Conflict:
    entry: LedgerEntry
    candidates: tuple[ScoredCandidate, ...]
    reason: ConflictReason


@dataclass
class ReconciliationResult:
    """Partition of the entries plus the records nobody claimed."""

    matched: list[MatchResult] = field(default_factory=list)
    conflicts: list[Conflict] = field(default_factory=list)
    unmatched_entries: list[LedgerEntry] = field(default_factory=list)
    unmatched_records: list[ExternalRecord] = field(default_factory=list)


class RecordPool:
    """External records still available for matching during one run."""

    def __init__(self, records: Sequence[ExternalRecord]) -> None:
        self._records = list(records)
        self._available = set(range(len(self._records)))
        self._positions_by_id: dict[str, list[int]] = {}
        for position, record in enumerate(self._records):
            self._positions_by_id.setdefault(record.id, []).append(position)

    def __getitem__(self, position: int) -> ExternalRecord:
        return self._records[position]

    def is_available(self, position: int) -> bool:
        return position in self._available

    def find_available(self, record_id: str) -> int | None:
        """First available position carrying ``record_id``."""
        for position in self._positions_by_id.get(record_id, ()):
            if position in self._available:
                return position
        return None

    def consume(self, position: int) -> ExternalRecord:
        self._available.remove(position)
        return self._records[position]

    def remaining(self) -> list[ExternalRecord]:
        return [record for position, record in enumerate(self._records) if position in self._available]


Scorer = Callable[[LedgerEntry, ExternalRecord, int], float]


class ReconciliationEngine:
    """Classifies ledger entries against external records.

    ``scorer`` receives (entry, record, date tolerance in days) and defaults to
    the weighted date + concept score.
    """

    def __init__(self, config: ReconciliationConfig, scorer: Scorer = score_match) -> None:
        self.config = config
        self.scorer = scorer

    def run(
        self,
        entries: Sequence[LedgerEntry],
        records: Sequence[ExternalRecord],
        overrides: Mapping[str, str] | None = None,
    ) -> ReconciliationResult:
        overrides = overrides or {}
        result = ReconciliationResult()
        pool = RecordPool(records)
        index = AmountIndex(records)

        with log_timing(
            "reconciliation",
            logger=logger,
            entries=len(entries),
            records=len(records),
            amount_buckets=len(index),
            overrides=len(overrides),
        ) as timing:
            for entry in entries:
                if self._apply_override(entry, overrides, pool, result):
                    continue
                self._match_automatically(entry, index, pool, result)

            result.unmatched_records = pool.remaining()
            timing.update(
                matched=len(result.matched),
                conflicts=len(result.conflicts),
                unmatched_entries=len(result.unmatched_entries),
                unmatched_records=len(result.unmatched_records),
            )

        return result

    def _apply_override(
        self,
        entry: LedgerEntry,
        overrides: Mapping[str, str],
        pool: RecordPool,
        result: ReconciliationResult,
    ) -> bool:
        record_id = overrides.get(entry.id)
        if not record_id:
            return False

        position = pool.find_available(record_id)
        if position is None:
            # Stale or already claimed target: fall back to automatic matching
            logger.debug("Manual override target unavailable", entry_id=entry.id, record_id=record_id)
            return False

        record = pool.consume(position)
        result.matched.append(MatchResult(entry=entry, record=record, score=MANUAL_MATCH_SCORE, is_manual=True))
        return True

    def _match_automatically(
        self,
        entry: LedgerEntry,
        index: AmountIndex,
        pool: RecordPool,
        result: ReconciliationResult,
    ) -> None:
        positions = index.candidates(entry.amount, pool.is_available)
        if not positions:
            result.unmatched_entries.append(entry)
            return

        tolerance = self.config.date_tolerance_days
        scored = [(position, self.scorer(entry, pool[position], tolerance)) for position in positions]
        # Stable sort: equal scores keep discovery order
        scored.sort(key=lambda item: item[1], reverse=True)

        best_position, best_score = scored[0]
        second_score = scored[1][1] if len(scored) > 1 else 0.0
        above_threshold = best_score > self.config.min_similarity_score
        clear_winner = len(scored) == 1 or (best_score - second_score > CLEAR_WINNER_MARGIN)

        if above_threshold and clear_winner:
            record = pool.consume(best_position)
            result.matched.append(MatchResult(entry=entry, record=record, score=best_score, is_manual=False))
            return

        reason = ConflictReason.MULTIPLE_CANDIDATES if above_threshold else ConflictReason.LOW_CONFIDENCE
        candidates = tuple(
            ScoredCandidate(record=pool[position], score=score)
            for position, score in scored[:MAX_CONFLICT_CANDIDATES]
        )
        result.conflicts.append(Conflict(entry=entry, candidates=candidates, reason=reason))


def reconcile(
    entries: Sequence[LedgerEntry],
    records: Sequence[ExternalRecord],
    config: ReconciliationConfig = DEFAULT_CONFIG,
    overrides: Mapping[str, str] | None = None,
) -> ReconciliationResult:
    """Run one reconciliation pass with an explicit configuration."""
    return ReconciliationEngine(config).run(entries, records, overrides)
