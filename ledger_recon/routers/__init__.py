from ledger_recon.routers import reconciliation

__all__ = ["reconciliation"]
