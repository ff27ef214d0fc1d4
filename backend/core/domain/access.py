"""
core.domain.access — The single capability check.

Every case-scoped operation asks one question: *may this actor perform
this capability on this resource?*  The answer is computed here and
nowhere else, so ownership rules are not re-derived per endpoint.

╔══════════════════════════════════════════════════════════════════╗
║  is_allowed(actor, resource, capability)  → bool                ║
║  require_capability(actor, resource, cap) → None | 403           ║
║  scope_cases(queryset, actor)             → role-scoped queryset║
╚══════════════════════════════════════════════════════════════════╝

``resource`` is a ``Case``, an ``Investigation`` or ``None`` for
system-level capabilities (analytics, staff management, SLA).

Rule summary
------------
* An actor whose account status is not ``active`` is denied everything.
* ``admin``       — every capability on every resource.
* ``supervisor``  — view / assign any case; reports, performance, SLA.
* ``staff``       — full case work on cases assigned to them; edit
                    investigations they authored; dashboard reports.
* ``citizen``     — view own cases and manage their evidence.

Usage in an app's service layer::

    from core.domain.access import Capability, require_capability

    require_capability(user, case, Capability.UPDATE_STATUS)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from django.apps import apps
from django.db.models import QuerySet

from accounts.models import AccountStatus, UserRole

if TYPE_CHECKING:
    from accounts.models import User


class Capability:
    """Capability names understood by ``is_allowed``."""

    VIEW = "view"
    UPDATE_STATUS = "update_status"
    ASSIGN = "assign"
    ADD_EVIDENCE = "add_evidence"
    MANAGE_EVIDENCE = "manage_evidence"
    ADD_INVESTIGATION = "add_investigation"
    EDIT_INVESTIGATION = "edit_investigation"
    VIEW_REPORTS = "view_reports"
    VIEW_PERFORMANCE = "view_performance"
    VIEW_SLA = "view_sla"
    RUN_SLA = "run_sla"
    MANAGE_STAFF = "manage_staff"
    MANAGE_USERS = "manage_users"


# ── System-level grants (resource is None) ──────────────────────────
_SYSTEM_GRANTS: dict[str, frozenset[str]] = {
    UserRole.SUPERVISOR: frozenset({
        Capability.VIEW_REPORTS,
        Capability.VIEW_PERFORMANCE,
        Capability.VIEW_SLA,
    }),
    UserRole.STAFF: frozenset({
        Capability.VIEW_REPORTS,
    }),
    UserRole.CITIZEN: frozenset(),
}

# ── Case-level grants, keyed by the actor's relation to the case ───
_SUPERVISOR_CASE_GRANTS = frozenset({
    Capability.VIEW,
    Capability.ASSIGN,
    Capability.VIEW_REPORTS,
})
_ASSIGNEE_CASE_GRANTS = frozenset({
    Capability.VIEW,
    Capability.UPDATE_STATUS,
    Capability.ADD_EVIDENCE,
    Capability.MANAGE_EVIDENCE,
    Capability.ADD_INVESTIGATION,
    Capability.VIEW_REPORTS,
})
_REPORTER_CASE_GRANTS = frozenset({
    Capability.VIEW,
    Capability.ADD_EVIDENCE,
    Capability.MANAGE_EVIDENCE,
})


def _is_active(actor: User | None) -> bool:
    return (
        actor is not None
        and getattr(actor, "is_authenticated", False)
        and actor.is_active
        and actor.status == AccountStatus.ACTIVE
    )


def _case_grants(actor: User, case: Any) -> frozenset[str]:
    grants: set[str] = set()
    if actor.role == UserRole.SUPERVISOR:
        grants |= _SUPERVISOR_CASE_GRANTS
    if actor.role == UserRole.STAFF and case.assigned_staff_id == actor.pk:
        grants |= _ASSIGNEE_CASE_GRANTS
    if case.reporter_id is not None and case.reporter_id == actor.pk:
        grants |= _REPORTER_CASE_GRANTS
    return frozenset(grants)


def _investigation_grants(actor: User, investigation: Any) -> frozenset[str]:
    grants: set[str] = set()
    if Capability.VIEW in _case_grants(actor, investigation.case):
        grants.add(Capability.VIEW)
    if actor.role == UserRole.STAFF and investigation.author_id == actor.pk:
        grants |= {Capability.VIEW, Capability.EDIT_INVESTIGATION}
    return frozenset(grants)


def is_allowed(actor: User | None, resource: Any, capability: str) -> bool:
    """
    Decide whether ``actor`` may exercise ``capability`` on ``resource``.

    Args:
        actor:      The authenticated user (``None`` / anonymous → deny).
        resource:   ``Case``, ``Investigation`` or ``None`` (system-level).
        capability: One of the ``Capability`` constants.

    Returns:
        ``True`` to allow, ``False`` to deny.
    """
    if not _is_active(actor):
        return False
    if actor.role == UserRole.ADMIN or actor.is_superuser:
        return True

    if resource is None:
        return capability in _SYSTEM_GRANTS.get(actor.role, frozenset())

    Case = apps.get_model("cases", "Case")
    Investigation = apps.get_model("investigations", "Investigation")

    if isinstance(resource, Case):
        return capability in _case_grants(actor, resource)
    if isinstance(resource, Investigation):
        return capability in _investigation_grants(actor, resource)
    return False


def require_capability(
    actor: User | None,
    resource: Any,
    capability: str,
    *,
    message: str = "",
) -> None:
    """
    Guard that raises ``PermissionDenied`` when ``is_allowed`` denies.

    Example::

        require_capability(user, case, Capability.ASSIGN)
    """
    from core.domain.exceptions import PermissionDenied as DomainPermissionDenied

    if not is_allowed(actor, resource, capability):
        raise DomainPermissionDenied(
            message or f"You are not allowed to perform '{capability}' on this resource."
        )


# ── Queryset scoping ────────────────────────────────────────────────

ScopeFilter = Callable[[QuerySet, "User"], QuerySet]

# Ordered (role, filter) rules; first match wins.
CASE_SCOPE_RULES: list[tuple[str, ScopeFilter]] = [
    (UserRole.ADMIN,      lambda qs, u: qs),
    (UserRole.SUPERVISOR, lambda qs, u: qs),
    (UserRole.STAFF,      lambda qs, u: qs.filter(assigned_staff=u)),
    (UserRole.CITIZEN,    lambda qs, u: qs.filter(reporter=u)),
]


def scope_cases(queryset: QuerySet, actor: User) -> QuerySet:
    """
    Restrict a case queryset to the rows ``actor`` may view.

    Mirrors ``is_allowed(actor, case, Capability.VIEW)`` at the
    queryset level so list endpoints never leak unrelated cases.
    """
    if not _is_active(actor):
        return queryset.none()
    if actor.is_superuser:
        return queryset
    for role, filter_fn in CASE_SCOPE_RULES:
        if actor.role == role:
            return filter_fn(queryset, actor)
    return queryset.none()
