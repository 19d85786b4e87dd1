"""Reconciliation API router.

Rows are posted by the caller on every run; only the manual override map is
persisted between runs.
"""

from fastapi import APIRouter
from sqlalchemy.exc import SQLAlchemyError

from ledger_recon.deps import OverrideStore
from ledger_recon.logger import get_logger, log_exception
from ledger_recon.schemas.reconciliation import (
    BatchResolveRequest,
    BatchResolveResponse,
    CandidateResponse,
    ClearOverridesResponse,
    ConflictListResponse,
    ConflictReasonEnum,
    ConflictResponse,
    EntryStatusEnum,
    ExternalRecordResponse,
    LedgerEntryResponse,
    MatchResponse,
    OverrideListResponse,
    OverrideResolveRequest,
    OverrideResponse,
    ReconciliationConfigResponse,
    ReconciliationRunRequest,
    ReconciliationRunResponse,
    ReconciliationSummaryResponse,
    ReportRowResponse,
)
from ledger_recon.services.loading import (
    ExternalRecord,
    LedgerEntry,
    load_external_records,
    load_ledger_entries,
)
from ledger_recon.services.reconciliation import (
    Conflict,
    MatchResult,
    ReconciliationEngine,
    ReconciliationResult,
    load_reconciliation_config,
)
from ledger_recon.services.report import ordered_rows, summarize
from ledger_recon.utils.exceptions import (
    raise_bad_request,
    raise_internal_error,
    raise_service_unavailable,
)

router = APIRouter(prefix="/reconciliation", tags=["reconciliation"])
logger = get_logger(__name__)


def _build_entry_response(entry: LedgerEntry) -> LedgerEntryResponse:
    return LedgerEntryResponse(
        id=entry.id,
        entry_date=entry.entry_date,
        entry_number=entry.entry_number,
        concept=entry.concept,
        amount=entry.amount,
    )


def _build_record_response(record: ExternalRecord) -> ExternalRecordResponse:
    return ExternalRecordResponse(
        id=record.id,
        txn_date=record.txn_date,
        value_date=record.value_date,
        concept=record.concept,
        additional=record.additional,
        amount=record.amount,
    )


def _build_match_response(match: MatchResult) -> MatchResponse:
    return MatchResponse(
        entry=_build_entry_response(match.entry),
        record=_build_record_response(match.record),
        score=match.score,
        is_manual=match.is_manual,
    )


def _build_conflict_response(conflict: Conflict) -> ConflictResponse:
    return ConflictResponse(
        entry=_build_entry_response(conflict.entry),
        candidates=[
            CandidateResponse(
                record=_build_record_response(candidate.record),
                score=candidate.score,
                score_percent=round(candidate.score * 100),
            )
            for candidate in conflict.candidates
        ],
        reason=ConflictReasonEnum(conflict.reason.value),
    )


async def _load_overrides(store: OverrideStore) -> dict[str, str]:
    try:
        return await store.get_all()
    except SQLAlchemyError as e:
        log_exception(logger, e, "Failed to read manual overrides")
        raise_service_unavailable("Override store unavailable", cause=e)


async def _run(payload: ReconciliationRunRequest, store: OverrideStore) -> ReconciliationResult:
    try:
        config = load_reconciliation_config(
            date_tolerance_days=payload.date_tolerance_days,
            min_similarity_score=payload.min_similarity_score,
        )
    except ValueError as e:
        raise_bad_request(str(e), cause=e)

    overrides = await _load_overrides(store)
    entries = load_ledger_entries(row.model_dump() for row in payload.entries)
    records = load_external_records(row.model_dump() for row in payload.records)

    try:
        return ReconciliationEngine(config).run(entries, records, overrides)
    except Exception as e:
        # Nothing from a failed run is returned or persisted
        log_exception(logger, e, "Reconciliation run failed", entries=len(entries), records=len(records))
        raise_internal_error("Reconciliation run failed", cause=e)


@router.post("/run", response_model=ReconciliationRunResponse)
async def run_reconciliation(
    payload: ReconciliationRunRequest,
    store: OverrideStore,
) -> ReconciliationRunResponse:
    result = await _run(payload, store)
    summary = summarize(result)

    return ReconciliationRunResponse(
        matched=[_build_match_response(match) for match in result.matched],
        conflicts=[_build_conflict_response(conflict) for conflict in result.conflicts],
        unmatched_entries=[_build_entry_response(entry) for entry in result.unmatched_entries],
        unmatched_records=[_build_record_response(record) for record in result.unmatched_records],
        summary=ReconciliationSummaryResponse(
            matched=summary.matched,
            auto_matched=summary.auto_matched,
            manual_matched=summary.manual_matched,
            conflicts=summary.conflicts,
            unmatched_entries=summary.unmatched_entries,
            unmatched_records=summary.unmatched_records,
            total_processed=summary.total_processed,
        ),
        rows=[
            ReportRowResponse(
                entry_id=row.entry_id,
                entry_date=row.entry_date,
                entry_number=row.entry_number,
                concept=row.concept,
                amount=row.amount,
                status=EntryStatusEnum(row.status.value),
                record_id=row.record_id,
                score=row.score,
                candidate_count=row.candidate_count,
            )
            for row in ordered_rows(result)
        ],
    )


@router.post("/conflicts", response_model=ConflictListResponse)
async def list_conflicts(
    payload: ReconciliationRunRequest,
    store: OverrideStore,
) -> ConflictListResponse:
    """Rerun the engine and return the entries that still need review."""
    result = await _run(payload, store)
    items = [_build_conflict_response(conflict) for conflict in result.conflicts]
    return ConflictListResponse(items=items, total=len(items))


@router.get("/config", response_model=ReconciliationConfigResponse)
async def get_config() -> ReconciliationConfigResponse:
    config = load_reconciliation_config()
    return ReconciliationConfigResponse(
        date_tolerance_days=config.date_tolerance_days,
        min_similarity_score=config.min_similarity_score,
    )


@router.get("/overrides", response_model=OverrideListResponse)
async def list_overrides(store: OverrideStore) -> OverrideListResponse:
    overrides = await _load_overrides(store)
    items = [OverrideResponse(entry_id=entry_id, record_id=record_id) for entry_id, record_id in overrides.items()]
    return OverrideListResponse(items=items, total=len(items))


@router.put("/overrides/{entry_id}", response_model=OverrideResponse)
async def resolve_one(
    entry_id: str,
    payload: OverrideResolveRequest,
    store: OverrideStore,
) -> OverrideResponse:
    if not entry_id.strip():
        raise_bad_request("entry_id must not be blank")
    await store.set_one(entry_id, payload.record_id)
    return OverrideResponse(entry_id=entry_id, record_id=payload.record_id)


@router.post("/overrides/batch", response_model=BatchResolveResponse, response_model_exclude_none=True)
async def resolve_batch(payload: BatchResolveRequest, store: OverrideStore) -> BatchResolveResponse:
    result = await store.set_batch((pair.entry_id, pair.record_id) for pair in payload.matches)
    if result.success:
        return BatchResolveResponse(success=True, count=result.count)
    return BatchResolveResponse(success=False, message=result.message)


@router.delete("/overrides", response_model=ClearOverridesResponse)
async def clear_overrides(store: OverrideStore) -> ClearOverridesResponse:
    removed = await store.clear()
    return ClearOverridesResponse(removed=removed)
