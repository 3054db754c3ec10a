"""Notification services.

Provides deduplication-aware notification processing:
- to_notify / append: pure ledger operations
- LedgerStore: append-only, file-backed ledger of notified ids
- CommandNotifier / NullNotifier: hand-off to the external sender

Usage:
    from paperwatch.services.notification import LedgerStore, to_notify

    store = LedgerStore("data/notified.csv")
    pending = to_notify(catalog, store.load())
"""

from paperwatch.services.notification.ledger import (
    LedgerStore,
    append,
    to_notify,
)
from paperwatch.services.notification.dispatch import (
    CommandNotifier,
    Notifier,
    NullNotifier,
)

__all__ = [
    "LedgerStore",
    "append",
    "to_notify",
    "CommandNotifier",
    "Notifier",
    "NullNotifier",
]
