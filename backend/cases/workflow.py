"""
Case status transition table.

``ALLOWED_TRANSITIONS`` maps every status to the statuses that may
follow it.  Terminal statuses map to an empty set.  ``assigned`` may
follow itself: a reassignment appends a fresh ``assigned`` entry, which
restarts the SLA dwell clock.
"""

from __future__ import annotations

from .models import CaseStatus

S = CaseStatus

TERMINAL_STATUSES: frozenset[str] = frozenset({
    S.COMPLETED,
    S.CLOSED,
    S.REJECTED,
})

RESOLVED_STATUSES: frozenset[str] = frozenset({
    S.COMPLETED,
    S.CLOSED,
})

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    S.FILED: frozenset({
        S.ASSIGNED, S.REJECTED, S.CLOSED,
    }),
    S.ASSIGNED: frozenset({
        S.ASSIGNED, S.UNDER_INVESTIGATION, S.REJECTED, S.CLOSED,
    }),
    S.UNDER_INVESTIGATION: frozenset({
        S.ASSIGNED, S.EVIDENCE_COLLECTED, S.SUSPECT_IDENTIFIED,
        S.REPORT_SUBMITTED, S.REJECTED, S.CLOSED,
    }),
    S.EVIDENCE_COLLECTED: frozenset({
        S.ASSIGNED, S.UNDER_INVESTIGATION, S.SUSPECT_IDENTIFIED,
        S.REPORT_SUBMITTED, S.CLOSED,
    }),
    S.SUSPECT_IDENTIFIED: frozenset({
        S.ASSIGNED, S.UNDER_INVESTIGATION, S.EVIDENCE_COLLECTED,
        S.REPORT_SUBMITTED, S.CLOSED,
    }),
    S.REPORT_SUBMITTED: frozenset({
        S.ASSIGNED, S.UNDER_INVESTIGATION, S.COMPLETED, S.CLOSED,
    }),
    S.COMPLETED: frozenset(),
    S.CLOSED: frozenset(),
    S.REJECTED: frozenset(),
}


def allowed_next(status: str) -> frozenset[str]:
    return ALLOWED_TRANSITIONS.get(status, frozenset())


def can_transition(current: str, target: str) -> bool:
    return target in allowed_next(current)
