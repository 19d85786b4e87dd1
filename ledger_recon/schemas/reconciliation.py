"""Pydantic schemas for reconciliation API."""

from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from ledger_recon.schemas.base import BaseResponse, ListResponse


DateLike = date | str | None


class ConflictReasonEnum(str, Enum):
    """Why an entry was left for review."""

    LOW_CONFIDENCE = "low_confidence"
    MULTIPLE_CANDIDATES = "multiple_candidates"


class EntryStatusEnum(str, Enum):
    """Outcome of an entry in the display listing."""

    AUTO_MATCHED = "auto_matched"
    MANUAL_MATCHED = "manual_matched"
    CONFLICT = "conflict"
    UNMATCHED = "unmatched"


# Input rows stay loose on purpose: malformed rows are dropped by the loader,
# not rejected by validation.
class LedgerEntryRow(BaseModel):
    """One ledger row as read from the source sheet."""

    id: str | None = None
    date: DateLike = None
    entry_number: int | float | str | None = None
    concept: str | None = ""
    amount: Decimal | str | None = None


class ExternalRecordRow(BaseModel):
    """One bank/external row as read from the source sheet."""

    id: str | None = None
    date: DateLike = None
    value_date: DateLike = None
    concept: str | None = ""
    additional: str | None = ""
    amount: Decimal | str | None = None


class ReconciliationRunRequest(BaseModel):
    """Request body to run reconciliation."""

    entries: list[LedgerEntryRow] = Field(default_factory=list)
    records: list[ExternalRecordRow] = Field(default_factory=list)
    date_tolerance_days: int | None = Field(default=None, ge=0, le=10)
    min_similarity_score: float | None = Field(default=None, ge=0.0, le=1.0)


class LedgerEntryResponse(BaseResponse):
    id: str
    entry_date: date
    entry_number: int | float | str | None
    concept: str
    amount: Decimal


class ExternalRecordResponse(BaseResponse):
    id: str
    txn_date: date
    value_date: date | None
    concept: str
    additional: str
    amount: Decimal


class MatchResponse(BaseResponse):
    entry: LedgerEntryResponse
    record: ExternalRecordResponse
    score: float
    is_manual: bool


class CandidateResponse(BaseResponse):
    record: ExternalRecordResponse
    score: float
    score_percent: int


class ConflictResponse(BaseResponse):
    entry: LedgerEntryResponse
    candidates: list[CandidateResponse]
    reason: ConflictReasonEnum


class ReconciliationSummaryResponse(BaseResponse):
    matched: int
    auto_matched: int
    manual_matched: int
    conflicts: int
    unmatched_entries: int
    unmatched_records: int
    total_processed: int


class ReportRowResponse(BaseResponse):
    entry_id: str
    entry_date: date
    entry_number: int | float | str | None
    concept: str
    amount: Decimal
    status: EntryStatusEnum
    record_id: str | None = None
    score: float | None = None
    candidate_count: int = 0


class ReconciliationRunResponse(BaseModel):
    """Full result of a reconciliation run."""

    matched: list[MatchResponse]
    conflicts: list[ConflictResponse]
    unmatched_entries: list[LedgerEntryResponse]
    unmatched_records: list[ExternalRecordResponse]
    summary: ReconciliationSummaryResponse
    rows: list[ReportRowResponse]


ConflictListResponse = ListResponse[ConflictResponse]


class ReconciliationConfigResponse(BaseResponse):
    date_tolerance_days: int
    min_similarity_score: float


class OverrideResponse(BaseModel):
    entry_id: str
    record_id: str


OverrideListResponse = ListResponse[OverrideResponse]


class OverrideResolveRequest(BaseModel):
    """Request body to pin one entry to one record."""

    record_id: str = Field(min_length=1)


class OverridePair(BaseModel):
    entry_id: str | None = None
    record_id: str | None = None


class BatchResolveRequest(BaseModel):
    """Request body for batch override resolution."""

    matches: list[OverridePair] = Field(default_factory=list)


class BatchResolveResponse(BaseModel):
    success: bool
    count: int | None = None
    message: str | None = None


class ClearOverridesResponse(BaseModel):
    removed: int
