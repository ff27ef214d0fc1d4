"""
core.domain.exceptions — Domain-specific exception hierarchy.

Service layers raise these when a business rule is violated.  They are
deliberately **not** DRF exceptions so that services can be called from
management commands, the SLA scheduler and tests without an HTTP
context.  ``core.domain.exception_handler`` maps them to responses.

Mapping cheatsheet
------------------
┌─────────────────────┬────────────────────────────────────────┬──────┐
│ Domain Exception    │ Raised when                            │ Code │
├─────────────────────┼────────────────────────────────────────┼──────┤
│ DomainError         │ generic business-rule violation        │ 400  │
│ PermissionDenied    │ capability check denied                │ 403  │
│ NotFound            │ case / staff / investigation missing   │ 404  │
│ Conflict            │ operation violates a stored invariant  │ 409  │
│ InvalidTransition   │ status change not in the table         │ 409  │
└─────────────────────┴────────────────────────────────────────┴──────┘

Field-level input problems are *not* domain errors: serializers raise
DRF ``ValidationError`` (400) with per-field messages before a service
is ever called.

Recommended usage inside a service::

    from core.domain.exceptions import InvalidTransition

    if target not in ALLOWED_TRANSITIONS[case.status]:
        raise InvalidTransition(current=case.status, target=target)
"""

from __future__ import annotations


class DomainError(Exception):
    """
    Base class for all domain / business-rule errors.

    Converted to a 400 Bad Request at the view boundary.
    """

    def __init__(self, message: str = "A business rule was violated.") -> None:
        self.message = message
        super().__init__(self.message)


class PermissionDenied(DomainError):
    """
    The actor is not allowed to perform this operation on the resource
    (wrong role, not the owner, not the assignee, or account inactive).

    Maps to HTTP 403.
    """

    def __init__(self, message: str = "You do not have permission to perform this action.") -> None:
        super().__init__(message)


class NotFound(DomainError):
    """
    The referenced case, staff member, investigation, attachment or
    notification does not exist.

    Maps to HTTP 404.
    """

    def __init__(self, message: str = "The requested resource was not found.") -> None:
        super().__init__(message)


class Conflict(DomainError):
    """
    The operation conflicts with the current state of the resource.

    Typical usage: deactivating a staff member who still owns active
    cases, assigning a case to an inactive or non-staff account.
    Maps to HTTP 409.
    """

    def __init__(self, message: str = "The operation conflicts with the current state.") -> None:
        super().__init__(message)


class InvalidTransition(Conflict):
    """
    A case status change that the transition table does not allow from
    the current status.  Maps to HTTP 409.

    Example::

        raise InvalidTransition(
            current="completed",
            target="under_investigation",
            reason="Completed is a terminal status.",
        )
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        current: str | None = None,
        target: str | None = None,
        reason: str | None = None,
    ) -> None:
        if message is None:
            parts = ["Invalid status transition"]
            if current and target:
                parts.append(f"from '{current}' to '{target}'")
            message = " ".join(parts) + "."
            if reason:
                message = f"{message} {reason}"
        super().__init__(message)
        self.current = current
        self.target = target
        self.reason = reason
