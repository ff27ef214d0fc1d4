"""
Root conftest.py — shared fixtures for the entire test suite.

Provides:
  - ``api_client`` fixture returning a DRF ``APIClient``.
  - ``create_user`` factory fixture for creating test users.
  - ``auth_header`` fixture for authenticated requests (JWT).
  - ``create_case`` factory fixture for filing a case with its
    initial history entry.
"""

from __future__ import annotations

import pytest
from rest_framework.test import APIClient


@pytest.fixture()
def api_client() -> APIClient:
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture()
def create_user(db):
    """
    Factory fixture that creates a user with sensible defaults.

    Usage::

        def test_something(create_user):
            citizen = create_user(username="alice")
            staff = create_user(role="staff", department="Cyber", staff_id="STF-001")
    """
    from accounts.models import AccountStatus, User, UserRole

    _counter = 0

    def _factory(
        *,
        username: str | None = None,
        password: str = "TestPass123!",
        email: str | None = None,
        role: str = UserRole.CITIZEN,
        status: str = AccountStatus.ACTIVE,
        **kwargs,
    ) -> User:
        nonlocal _counter
        _counter += 1
        if username is None:
            username = f"testuser{_counter}"
        if email is None:
            email = f"{username}@test.local"

        return User.objects.create_user(
            username=username,
            password=password,
            email=email,
            role=role,
            status=status,
            **kwargs,
        )

    return _factory


@pytest.fixture()
def auth_header(create_user):
    """
    Returns a helper that creates a user and an ``Authorization``
    header dict with a valid JWT access token.

    Usage::

        def test_protected(auth_header, api_client):
            header = auth_header(role="admin")
            api_client.credentials(HTTP_AUTHORIZATION=header["Authorization"])
            resp = api_client.get("/api/core/dashboard/")
            assert resp.status_code == 200

    The returned dict looks like::

        {"Authorization": "Bearer eyJ..."}
    """
    from rest_framework_simplejwt.tokens import AccessToken

    def _make(**user_kwargs) -> dict[str, str]:
        user = create_user(**user_kwargs)
        token = AccessToken.for_user(user)
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture()
def create_case(db):
    """
    Factory fixture that files a complaint through the service layer.

    Usage::

        def test_case(create_user, create_case):
            case = create_case(reporter=create_user())
    """
    from cases.models import CrimeType
    from cases.services import CaseCreationService

    def _factory(*, reporter, **overrides):
        data = {
            "title": "Stolen bicycle",
            "description": "My bicycle was taken from the rack outside the library.",
            "crime_type": CrimeType.THEFT_ROBBERY,
            "latitude": 12.9716,
            "longitude": 77.5946,
            "address": "MG Road, Bengaluru, Karnataka",
        }
        data.update(overrides)
        return CaseCreationService.file_complaint(reporter, data)

    return _factory
