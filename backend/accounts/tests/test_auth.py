"""
Tests for citizen registration, multi-identifier login and the ``me``
profile endpoints.
"""

from __future__ import annotations

import pytest
from django.urls import reverse

from accounts.models import AccountStatus, User, UserRole

pytestmark = pytest.mark.django_db

PASSWORD = "TestPass123!"


def _registration(**overrides) -> dict:
    payload = {
        "username": "ananya",
        "password": "Str0ngPass!",
        "password_confirm": "Str0ngPass!",
        "email": "ananya@example.com",
        "first_name": "Ananya",
        "last_name": "Iyer",
        "mobile": "+919812345678",
        "address": {"street": "12 Lake View", "city": "Kochi", "state": "Kerala", "pincode": "682001"},
    }
    payload.update(overrides)
    return payload


class TestRegistration:

    def test_register_returns_tokens_and_citizen_profile(self, api_client):
        response = api_client.post(reverse("accounts:register"), _registration(), format="json")

        assert response.status_code == 201, response.data
        assert {"access", "refresh", "user"} <= set(response.data)
        user = response.data["user"]
        assert user["role"] == UserRole.CITIZEN
        assert user["status"] == AccountStatus.ACTIVE
        assert user["address"]["city"] == "Kochi"
        assert "password" not in user
        assert User.objects.get(username="ananya").check_password("Str0ngPass!")

    def test_password_mismatch(self, api_client):
        response = api_client.post(
            reverse("accounts:register"),
            _registration(password_confirm="Different1!"),
            format="json",
        )
        assert response.status_code == 400
        assert "password_confirm" in response.data

    def test_short_password_and_bad_mobile(self, api_client):
        response = api_client.post(
            reverse("accounts:register"),
            _registration(password="short", password_confirm="short", mobile="phone"),
            format="json",
        )
        assert response.status_code == 400
        assert {"password", "mobile"} <= set(response.data)

    def test_duplicate_email_is_rejected(self, api_client, create_user):
        create_user(username="someone", email="ananya@example.com")

        response = api_client.post(reverse("accounts:register"), _registration(), format="json")

        assert response.status_code in (400, 409)
        assert not User.objects.filter(username="ananya").exists()


class TestLogin:

    @pytest.fixture()
    def staff(self, create_user):
        return create_user(
            username="kiran",
            email="kiran@example.com",
            role=UserRole.STAFF,
            department="Traffic",
            staff_id="STF-007",
        )

    @pytest.mark.parametrize("identifier", ["kiran", "kiran@example.com", "KIRAN@example.com", "STF-007"])
    def test_login_with_any_identifier(self, api_client, staff, identifier):
        response = api_client.post(
            reverse("accounts:login"),
            {"identifier": identifier, "password": PASSWORD},
            format="json",
        )

        assert response.status_code == 200, response.data
        assert response.data["user"]["staff_id"] == "STF-007"
        assert response.data["access"]

    def test_wrong_password(self, api_client, staff):
        response = api_client.post(
            reverse("accounts:login"),
            {"identifier": "kiran", "password": "nope-nope"},
            format="json",
        )
        assert response.status_code == 400

    @pytest.mark.parametrize("status", [AccountStatus.INACTIVE, AccountStatus.SUSPENDED])
    def test_non_active_accounts_cannot_log_in(self, api_client, create_user, status):
        create_user(username="dormant", status=status)

        response = api_client.post(
            reverse("accounts:login"),
            {"identifier": "dormant", "password": PASSWORD},
            format="json",
        )
        assert response.status_code == 400

    def test_token_authenticates_requests(self, api_client, staff):
        login = api_client.post(
            reverse("accounts:login"),
            {"identifier": "STF-007", "password": PASSWORD},
            format="json",
        )
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {login.data['access']}")

        response = api_client.get(reverse("accounts:me"))

        assert response.status_code == 200
        assert response.data["username"] == "kiran"


class TestMe:

    def test_requires_authentication(self, api_client):
        assert api_client.get(reverse("accounts:me")).status_code == 401

    def test_get_and_patch_profile(self, api_client, auth_header):
        api_client.credentials(HTTP_AUTHORIZATION=auth_header(username="meena")["Authorization"])

        response = api_client.get(reverse("accounts:me"))
        assert response.data["username"] == "meena"

        response = api_client.patch(
            reverse("accounts:me"),
            {"first_name": "Meena", "mobile": "+919900112233", "role": UserRole.ADMIN},
            format="json",
        )

        assert response.status_code == 200, response.data
        assert response.data["first_name"] == "Meena"
        assert response.data["mobile"] == "+919900112233"
        assert response.data["role"] == UserRole.CITIZEN

    def test_email_collision(self, api_client, auth_header, create_user):
        create_user(username="taken", email="taken@example.com")
        api_client.credentials(HTTP_AUTHORIZATION=auth_header()["Authorization"])

        response = api_client.patch(
            reverse("accounts:me"), {"email": "TAKEN@example.com"}, format="json"
        )
        assert response.status_code == 400


class TestChangePassword:

    @pytest.fixture()
    def user(self, create_user):
        return create_user(username="ravi")

    def test_change_password(self, api_client, user):
        api_client.force_authenticate(user)

        response = api_client.post(
            reverse("accounts:change-password"),
            {"current_password": PASSWORD, "new_password": "Fresh1"},
            format="json",
        )

        assert response.status_code == 200, response.data
        user.refresh_from_db()
        assert user.check_password("Fresh1")
        login = api_client.post(
            reverse("accounts:login"),
            {"identifier": "ravi", "password": "Fresh1"},
            format="json",
        )
        assert login.status_code == 200

    def test_wrong_current_password(self, api_client, user):
        api_client.force_authenticate(user)

        response = api_client.post(
            reverse("accounts:change-password"),
            {"current_password": "not-it", "new_password": "Fresh1"},
            format="json",
        )

        assert response.status_code == 400
        assert response.data["kind"] == "domain_error"
        user.refresh_from_db()
        assert user.check_password(PASSWORD)

    def test_validation(self, api_client, user):
        api_client.force_authenticate(user)

        response = api_client.post(
            reverse("accounts:change-password"),
            {"new_password": "abc"},
            format="json",
        )

        assert response.status_code == 400
        assert {"current_password", "new_password"} <= set(response.data)

    def test_requires_authentication(self, api_client):
        response = api_client.post(
            reverse("accounts:change-password"),
            {"current_password": PASSWORD, "new_password": "Fresh1"},
            format="json",
        )
        assert response.status_code == 401
