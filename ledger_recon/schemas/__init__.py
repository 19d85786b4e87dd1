from ledger_recon.schemas.base import BaseResponse, ListResponse
from ledger_recon.schemas.reconciliation import (
    BatchResolveRequest,
    BatchResolveResponse,
    ClearOverridesResponse,
    ConflictListResponse,
    ConflictReasonEnum,
    ConflictResponse,
    EntryStatusEnum,
    ExternalRecordRow,
    LedgerEntryRow,
    OverrideListResponse,
    OverrideResolveRequest,
    OverrideResponse,
    ReconciliationConfigResponse,
    ReconciliationRunRequest,
    ReconciliationRunResponse,
)

__all__ = [
    "BaseResponse",
    "ListResponse",
    "BatchResolveRequest",
    "BatchResolveResponse",
    "ClearOverridesResponse",
    "ConflictListResponse",
    "ConflictReasonEnum",
    "ConflictResponse",
    "EntryStatusEnum",
    "ExternalRecordRow",
    "LedgerEntryRow",
    "OverrideListResponse",
    "OverrideResolveRequest",
    "OverrideResponse",
    "ReconciliationConfigResponse",
    "ReconciliationRunRequest",
    "ReconciliationRunResponse",
]
