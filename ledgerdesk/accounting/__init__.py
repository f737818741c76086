"""Core accounting domain logic for the journal-entry workspace."""

from .engine import (
    Account,
    AccountingEngine,
    EntryNotPostable,
    JournalEntry,
    JournalFilters,
    JournalLine,
)

__all__ = [
    "AccountingEngine",
    "Account",
    "EntryNotPostable",
    "JournalEntry",
    "JournalFilters",
    "JournalLine",
]
