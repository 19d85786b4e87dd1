"""SQLAlchemy models."""

from ledger_recon.models.override import ManualOverride

__all__ = ["ManualOverride"]
