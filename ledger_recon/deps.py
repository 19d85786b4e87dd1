"""Common FastAPI dependencies for consistent type annotations.

Usage:
    from ledger_recon.deps import OverrideStore

    async def my_endpoint(store: OverrideStore):
        overrides = await store.get_all()
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ledger_recon.config import settings
from ledger_recon.database import get_db, get_session_maker
from ledger_recon.services.overrides import ManualOverrideStore


def get_override_store() -> ManualOverrideStore:
    return ManualOverrideStore(
        get_session_maker(),
        lock_timeout=settings.override_lock_timeout_seconds,
    )


DbSession = Annotated[AsyncSession, Depends(get_db)]
OverrideStore = Annotated[ManualOverrideStore, Depends(get_override_store)]

__all__ = ["DbSession", "OverrideStore", "get_override_store"]
