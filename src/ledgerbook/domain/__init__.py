"""Domain layer for ledgerbook application.

Services are resolved lazily: the database layer imports
``ledgerbook.domain.entities`` and must not pull the services in with it.
"""

from importlib import import_module

_EXPORTS = {
    "AccountService": "ledgerbook.domain.account",
    "BalanceRecalculator": "ledgerbook.domain.balance",
    "ConsistencyValidator": "ledgerbook.domain.validation",
    "DailySummaryAggregator": "ledgerbook.domain.summary",
    "LedgerEngine": "ledgerbook.domain.ledger",
    "TransactionStore": "ledgerbook.domain.transaction",
    "VendorLedgerQuery": "ledgerbook.domain.ledger_query",
}

__all__ = sorted(_EXPORTS)


def __getattr__(name):
    module_name = _EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
    return getattr(import_module(module_name), name)
