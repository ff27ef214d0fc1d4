"""
Unit tests for ``core.domain.access`` — the capability matrix and the
case queryset scoping that mirrors it.
"""

from __future__ import annotations

import pytest

from accounts.models import AccountStatus, UserRole
from cases.models import Case
from core.domain.access import Capability, is_allowed, require_capability, scope_cases
from core.domain.exceptions import PermissionDenied

pytestmark = pytest.mark.django_db


@pytest.fixture()
def actors(create_user):
    return {
        "admin": create_user(username="acl_admin", role=UserRole.ADMIN),
        "supervisor": create_user(username="acl_super", role=UserRole.SUPERVISOR),
        "staff": create_user(username="acl_staff", role=UserRole.STAFF, staff_id="STF-001"),
        "other_staff": create_user(username="acl_staff2", role=UserRole.STAFF, staff_id="STF-002"),
        "reporter": create_user(username="acl_reporter"),
        "stranger": create_user(username="acl_stranger"),
    }


@pytest.fixture()
def case(actors, create_case):
    case = create_case(reporter=actors["reporter"])
    Case.objects.filter(pk=case.pk).update(assigned_staff=actors["staff"])
    case.refresh_from_db()
    return case


class TestCaseCapabilities:

    @pytest.mark.parametrize(
        "actor, capability, expected",
        [
            ("admin", Capability.UPDATE_STATUS, True),
            ("admin", Capability.ASSIGN, True),
            ("supervisor", Capability.VIEW, True),
            ("supervisor", Capability.ASSIGN, True),
            ("supervisor", Capability.UPDATE_STATUS, False),
            ("staff", Capability.UPDATE_STATUS, True),
            ("staff", Capability.ADD_INVESTIGATION, True),
            ("staff", Capability.ASSIGN, False),
            ("other_staff", Capability.VIEW, False),
            ("reporter", Capability.VIEW, True),
            ("reporter", Capability.ADD_EVIDENCE, True),
            ("reporter", Capability.UPDATE_STATUS, False),
            ("stranger", Capability.VIEW, False),
        ],
    )
    def test_matrix(self, actors, case, actor, capability, expected):
        assert is_allowed(actors[actor], case, capability) is expected

    def test_inactive_actor_is_denied_everything(self, actors, case):
        admin = actors["admin"]
        admin.status = AccountStatus.SUSPENDED
        admin.save(update_fields=["status"])

        assert not is_allowed(admin, case, Capability.VIEW)
        assert not is_allowed(admin, None, Capability.VIEW_SLA)

    def test_anonymous_actor_is_denied(self, case):
        assert not is_allowed(None, case, Capability.VIEW)

    def test_require_capability_raises(self, actors, case):
        with pytest.raises(PermissionDenied):
            require_capability(actors["stranger"], case, Capability.VIEW)
        require_capability(actors["reporter"], case, Capability.VIEW)


class TestSystemCapabilities:

    @pytest.mark.parametrize(
        "actor, capability, expected",
        [
            ("admin", Capability.RUN_SLA, True),
            ("admin", Capability.MANAGE_STAFF, True),
            ("supervisor", Capability.VIEW_SLA, True),
            ("supervisor", Capability.VIEW_PERFORMANCE, True),
            ("supervisor", Capability.RUN_SLA, False),
            ("supervisor", Capability.MANAGE_STAFF, False),
            ("staff", Capability.VIEW_REPORTS, True),
            ("staff", Capability.VIEW_SLA, False),
            ("reporter", Capability.VIEW_REPORTS, False),
        ],
    )
    def test_matrix(self, actors, actor, capability, expected):
        assert is_allowed(actors[actor], None, capability) is expected


class TestCaseScoping:

    def test_scope_matches_view_capability(self, actors, case, create_case):
        other = create_case(reporter=actors["stranger"])

        for name, actor in actors.items():
            visible = set(scope_cases(Case.objects.all(), actor).values_list("pk", flat=True))
            expected = {
                c.pk for c in (case, other) if is_allowed(actor, c, Capability.VIEW)
            }
            assert visible == expected, name
