"""
core.domain — Shared domain utilities for cross-app service layers.

Modules
-------
exceptions         Domain-specific exceptions that map cleanly to HTTP responses.
exception_handler  DRF handler translating those exceptions into responses.
notifications      Synchronous notification persistence helper.
transactions       Helpers for ``transaction.atomic`` + version-checked updates.

Usage from any app::

    from core.domain.exceptions import DomainError, NotFound, StorageConflict
    from core.domain.notifications import NotificationService
    from core.domain.transactions import compare_and_swap, run_in_atomic
"""
