"""
SLA threshold table.

Maximum dwell time, in hours, a case may spend in a monitored status
before it is flagged overdue.  Statuses absent from the table are not
monitored.
"""

from cases.models import CaseStatus

SLA_THRESHOLD_HOURS: dict[str, int] = {
    CaseStatus.FILED: 24,
    CaseStatus.ASSIGNED: 72,
    CaseStatus.UNDER_INVESTIGATION: 168,
    CaseStatus.EVIDENCE_COLLECTED: 24,
}

MONITORED_STATUSES: frozenset[str] = frozenset(SLA_THRESHOLD_HOURS)


def threshold_for(status: str) -> int | None:
    return SLA_THRESHOLD_HOURS.get(status)
