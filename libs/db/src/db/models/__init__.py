"""Shared SQLAlchemy models registry for the ledger database.

Currently includes the ledger domain models used by ``ledger_insights``.
"""

from .ledger import Base, FxRate, LedgerEntry

__all__ = [
    "Base",
    "FxRate",
    "LedgerEntry",
]
