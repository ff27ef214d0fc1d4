"""
core.domain — Shared domain utilities for cross-app service layers.

Modules
-------
exceptions         Domain-specific exceptions that map cleanly to HTTP responses.
exception_handler  DRF handler rendering those exceptions.
access             The single capability check consumed by every case-scoped operation.
notifications      Notification store interface, database store, creation helper.
transactions       Row locking and unique-identifier retry helpers.

Usage from any app::

    from core.domain.exceptions import DomainError, InvalidTransition
    from core.domain.access import Capability, require_capability
    from core.domain.notifications import NotificationService
    from core.domain.transactions import lock_for_update
"""
