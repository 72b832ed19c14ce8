"""Domain layer for ledgerkit."""

_SERVICES = {
    "AccountService": "ledgerkit.domain.account",
    "BalanceService": "ledgerkit.domain.balance",
    "CategoryService": "ledgerkit.domain.category",
    "ReportService": "ledgerkit.domain.report",
    "SnapshotService": "ledgerkit.domain.snapshot",
    "TransactionService": "ledgerkit.domain.transaction",
}

__all__ = list(_SERVICES)


# Services are imported lazily; the database layer imports domain.entities
# and would otherwise loop back through this package.
def __getattr__(name):
    if name in _SERVICES:
        import importlib

        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
