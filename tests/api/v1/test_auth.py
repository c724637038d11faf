"""
Tests for authentication API endpoints.

These tests cover the /api/auth endpoints including:
- Registration and login
- Token refresh with rotation, and the token check
- Logout and access-token revocation
- Change password
- Forgot/reset password
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import UserStatus
from app.core.security import create_access_token, decode_access_token, hash_token
from app.models.user import Users
from app.utils import utc_now

TEST_PASSWORD = "Abcd123!@"
REFRESH_COOKIE = "refreshToken"
NEW_PASSWORD = "Xyz789$%ab"


def refresh_cookie_header(token: str) -> dict[str, str]:
    return {"Cookie": f"{REFRESH_COOKIE}={token}"}


def register_payload(**overrides) -> dict:
    payload = {
        "phone": "01712345678",
        "firstName": "Rahim",
        "lastName": "Uddin",
        "password": TEST_PASSWORD,
        "email": "rahim@example.com",
    }
    payload.update(overrides)
    return payload


@pytest.mark.api
class TestRegister:
    """Tests for POST /api/auth/register endpoint."""

    async def test_register_success(self, client: AsyncClient):
        response = await client.post("/api/auth/register", json=register_payload())

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["phone"] == "01712345678"
        assert data["user"]["firstName"] == "Rahim"
        assert data["user"]["role"] == "USER"
        assert data["user"]["status"] == "ACTIVE"
        assert data["user"]["membershipCategory"] == "FREE"
        assert "password" not in data["user"]
        assert "refreshToken" not in data["user"]

        claims = decode_access_token(data["accessToken"])
        assert claims["sub"] == data["user"]["id"]
        assert claims["role"] == "USER"

        assert REFRESH_COOKIE in response.cookies

    async def test_register_sets_http_only_scoped_cookie(self, client: AsyncClient):
        response = await client.post("/api/auth/register", json=register_payload())

        set_cookie = response.headers["set-cookie"]
        assert "HttpOnly" in set_cookie
        assert "Path=/api/auth/refresh-token" in set_cookie
        assert "SameSite=strict" in set_cookie

    async def test_register_accepts_phone_number_alias(self, client: AsyncClient):
        payload = register_payload()
        payload["phoneNumber"] = payload.pop("phone")

        response = await client.post("/api/auth/register", json=payload)

        assert response.status_code == 200
        assert response.json()["user"]["phone"] == "01712345678"

    async def test_register_normalizes_email(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register", json=register_payload(email="  Rahim@Example.COM ")
        )

        assert response.status_code == 200
        assert response.json()["user"]["email"] == "rahim@example.com"

    async def test_register_without_email(self, client: AsyncClient):
        response = await client.post("/api/auth/register", json=register_payload(email=""))

        assert response.status_code == 200
        assert response.json()["user"]["email"] is None

    async def test_register_duplicate_phone(
        self, client: AsyncClient, db_session: AsyncSession, test_user: Users
    ):
        count_query = select(func.count()).select_from(Users)
        before = (await db_session.execute(count_query)).scalar_one()

        response = await client.post(
            "/api/auth/register",
            json=register_payload(phone=test_user.phone, email="other@example.com"),
        )

        assert response.status_code == 400
        data = response.json()
        assert data["message"] == "User already exists"
        assert data["errorName"] == "DuplicateAccountError"
        assert (await db_session.execute(count_query)).scalar_one() == before

    async def test_register_duplicate_email(self, client: AsyncClient, test_user: Users):
        response = await client.post(
            "/api/auth/register",
            json=register_payload(phone="01612345678", email=test_user.email),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "User already exists"

    @pytest.mark.parametrize(
        "password",
        [
            "Sh1!",
            "Abcdefgh12345678!",
            "alllowercase1!",
            "NOUPPER1!",
            "NoDigits!!",
            "NoSpecial12",
            "Has space1!A",
        ],
    )
    async def test_register_rejects_weak_password(self, client: AsyncClient, password: str):
        response = await client.post("/api/auth/register", json=register_payload(password=password))

        assert response.status_code == 400
        assert response.json()["errorName"] == "ValidationError"

    async def test_register_rejects_invalid_phone(self, client: AsyncClient):
        response = await client.post("/api/auth/register", json=register_payload(phone="12345"))

        assert response.status_code == 400
        data = response.json()
        assert data["errorName"] == "ValidationError"
        assert "Invalid phone number" in data["message"]


@pytest.mark.api
class TestLogin:
    """Tests for POST /api/auth/login endpoint."""

    async def test_login_with_email(self, client: AsyncClient, test_user: Users):
        response = await client.post(
            "/api/auth/login",
            json={"identifier": "USER@example.com", "password": TEST_PASSWORD},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["id"] == test_user.id
        assert data["user"]["lastLogin"] is not None
        assert decode_access_token(data["accessToken"])["sub"] == test_user.id
        assert REFRESH_COOKIE in response.cookies

    async def test_login_with_phone(self, client: AsyncClient, test_user: Users):
        response = await client.post(
            "/api/auth/login",
            json={"identifier": test_user.phone, "password": TEST_PASSWORD},
        )

        assert response.status_code == 200
        assert response.json()["user"]["id"] == test_user.id

    async def test_login_wrong_password(self, client: AsyncClient, test_user: Users):
        response = await client.post(
            "/api/auth/login",
            json={"identifier": test_user.phone, "password": "Wrong123!"},
        )

        assert response.status_code == 401
        data = response.json()
        assert data["message"] == "Invalid email/phone or password"
        assert data["errorName"] == "InvalidCredentialsError"

    async def test_login_unknown_identifier(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/login",
            json={"identifier": "nobody@example.com", "password": TEST_PASSWORD},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email/phone or password"

    async def test_login_inactive_user(self, client: AsyncClient, make_user):
        await make_user(status=UserStatus.INACTIVE)

        response = await client.post(
            "/api/auth/login",
            json={"identifier": "01712345678", "password": TEST_PASSWORD},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "User account is inactive"

    async def test_login_stores_refresh_token_hash(
        self, client: AsyncClient, db_session: AsyncSession, test_user: Users
    ):
        response = await client.post(
            "/api/auth/login",
            json={"identifier": test_user.phone, "password": TEST_PASSWORD},
        )

        refresh_token = response.cookies[REFRESH_COOKIE]
        await db_session.refresh(test_user)
        assert test_user.refresh_token == hash_token(refresh_token)
        assert test_user.refresh_token != refresh_token

    async def test_login_missing_fields(self, client: AsyncClient):
        response = await client.post("/api/auth/login", json={})

        assert response.status_code == 400
        data = response.json()
        assert data["statusCode"] == 400
        assert data["path"] == "/api/auth/login"
        assert data["method"] == "POST"


async def _login(client: AsyncClient, user: Users, password: str = TEST_PASSWORD) -> tuple[str, str]:
    response = await client.post(
        "/api/auth/login", json={"identifier": user.phone, "password": password}
    )
    assert response.status_code == 200
    return response.json()["accessToken"], response.cookies[REFRESH_COOKIE]


@pytest.mark.api
class TestRefreshToken:
    """Tests for POST /api/auth/refresh-token endpoint."""

    async def test_refresh_rotates_token(self, client: AsyncClient, test_user: Users):
        _, refresh_token = await _login(client, test_user)

        response = await client.post(
            "/api/auth/refresh-token", headers=refresh_cookie_header(refresh_token)
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Token refreshed successfully"
        assert decode_access_token(data["accessToken"])["sub"] == test_user.id

        rotated = response.cookies[REFRESH_COOKIE]
        assert rotated != refresh_token

    async def test_superseded_refresh_token_is_rejected(
        self, client: AsyncClient, test_user: Users
    ):
        _, first = await _login(client, test_user)
        response = await client.post(
            "/api/auth/refresh-token", headers=refresh_cookie_header(first)
        )
        assert response.status_code == 200

        replay = await client.post("/api/auth/refresh-token", headers=refresh_cookie_header(first))

        assert replay.status_code == 401
        data = replay.json()
        assert data["message"] == "Invalid refresh token"
        assert data["errorName"] == "InvalidRefreshTokenError"
        # The stale cookie is cleared on failure
        assert "Max-Age=0" in replay.headers["set-cookie"]

    async def test_new_login_supersedes_previous_session(
        self, client: AsyncClient, test_user: Users
    ):
        _, first = await _login(client, test_user)
        _, second = await _login(client, test_user)

        stale = await client.post("/api/auth/refresh-token", headers=refresh_cookie_header(first))
        fresh = await client.post("/api/auth/refresh-token", headers=refresh_cookie_header(second))

        assert stale.status_code == 401
        assert fresh.status_code == 200

    async def test_refresh_without_cookie(self, client: AsyncClient):
        response = await client.post("/api/auth/refresh-token")

        assert response.status_code == 401
        assert response.json()["message"] == "No refresh token provided"

    async def test_refresh_with_access_token_is_rejected(
        self, client: AsyncClient, test_user: Users
    ):
        access_token, _ = await _login(client, test_user)

        response = await client.post(
            "/api/auth/refresh-token", headers=refresh_cookie_header(access_token)
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid refresh token"

    async def test_refresh_rejected_after_deactivation(
        self, client: AsyncClient, db_session: AsyncSession, test_user: Users
    ):
        _, refresh_token = await _login(client, test_user)
        test_user.status = UserStatus.INACTIVE
        await db_session.commit()

        response = await client.post(
            "/api/auth/refresh-token", headers=refresh_cookie_header(refresh_token)
        )

        assert response.status_code == 401


@pytest.mark.api
class TestCheckToken:
    """Tests for POST /api/auth/refresh-token/check endpoint."""

    async def test_valid_access_token(self, client: AsyncClient, test_user: Users):
        response = await client.post(
            "/api/auth/refresh-token/check",
            headers={"Authorization": f"Bearer {create_access_token(test_user)}"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["valid"] is True
        assert data["message"] == "Token is valid"
        assert data["refreshed"] is False
        assert data["user"]["id"] == test_user.id
        assert data["user"]["email"] == test_user.email
        assert data["user"]["role"] == "USER"

    async def test_expired_access_token_falls_back_to_refresh_cookie(
        self, client: AsyncClient, test_user: Users
    ):
        _, refresh_token = await _login(client, test_user)
        expired = create_access_token(test_user, expires_delta=timedelta(seconds=-10))

        response = await client.post(
            "/api/auth/refresh-token/check",
            headers={
                "Authorization": f"Bearer {expired}",
                **refresh_cookie_header(refresh_token),
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["refreshed"] is True
        assert data["message"] == "Token refreshed successfully"
        assert decode_access_token(data["accessToken"])["sub"] == test_user.id
        assert response.cookies[REFRESH_COOKIE] != refresh_token

    async def test_no_tokens(self, client: AsyncClient):
        response = await client.post("/api/auth/refresh-token/check")

        assert response.status_code == 401
        data = response.json()
        assert data["message"] == "No authentication tokens found"
        assert data["action"] == "login"

    async def test_expired_access_token_without_cookie(
        self, client: AsyncClient, test_user: Users
    ):
        expired = create_access_token(test_user, expires_delta=timedelta(seconds=-10))

        response = await client.post(
            "/api/auth/refresh-token/check",
            headers={"Authorization": f"Bearer {expired}"},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Access token expired and no refresh token available"

    async def test_both_tokens_invalid(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/refresh-token/check",
            headers={"Authorization": "Bearer garbage", **refresh_cookie_header("garbage")},
        )

        assert response.status_code == 401
        data = response.json()
        assert data["message"] == "Both tokens are invalid"
        assert data["action"] == "login"

    async def test_check_lives_under_the_refresh_cookie_path(self, client: AsyncClient):
        # The cookie is only sent below its path, so the check has no other route
        response = await client.post(
            "/api/auth/check-token", headers=refresh_cookie_header("anything")
        )

        assert response.status_code == 404


@pytest.mark.api
class TestLogout:
    """Tests for POST /api/auth/logout endpoint."""

    async def test_logout_revokes_access_token(
        self, client: AsyncClient, db_session: AsyncSession, test_user: Users
    ):
        access_token, refresh_token = await _login(client, test_user)
        headers = {"Authorization": f"Bearer {access_token}"}

        response = await client.post("/api/auth/logout", headers=headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Logged out successfully"
        assert "Max-Age=0" in response.headers["set-cookie"]

        me = await client.get("/api/users/me", headers=headers)
        assert me.status_code == 401
        assert me.json()["message"] == "Token has been revoked"

        await db_session.refresh(test_user)
        assert test_user.refresh_token is None

        refresh = await client.post(
            "/api/auth/refresh-token", headers=refresh_cookie_header(refresh_token)
        )
        assert refresh.status_code == 401

    async def test_logout_does_not_revoke_other_tokens(
        self, client: AsyncClient, test_user: Users
    ):
        first, _ = await _login(client, test_user)
        other = create_access_token(test_user)

        await client.post("/api/auth/logout", headers={"Authorization": f"Bearer {first}"})

        me = await client.get("/api/users/me", headers={"Authorization": f"Bearer {other}"})
        assert me.status_code == 200

    async def test_logout_requires_token(self, client: AsyncClient):
        response = await client.post("/api/auth/logout")

        assert response.status_code == 401
        data = response.json()
        assert data["message"] == "No access token provided"
        assert data["action"] == "login"


@pytest.mark.api
class TestChangePassword:
    """Tests for POST /api/auth/change-password endpoint."""

    async def test_change_password_success(
        self, client: AsyncClient, test_user: Users, user_headers: dict
    ):
        response = await client.post(
            "/api/auth/change-password",
            headers=user_headers,
            json={"oldPassword": TEST_PASSWORD, "newPassword": NEW_PASSWORD},
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Password changed successfully"

        await _login(client, test_user, NEW_PASSWORD)
        old = await client.post(
            "/api/auth/login", json={"identifier": test_user.phone, "password": TEST_PASSWORD}
        )
        assert old.status_code == 401

    async def test_change_password_wrong_old_password(
        self, client: AsyncClient, test_user: Users, user_headers: dict
    ):
        response = await client.post(
            "/api/auth/change-password",
            headers=user_headers,
            json={"oldPassword": "Wrong123!", "newPassword": NEW_PASSWORD},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid old password"

        # Unchanged
        await _login(client, test_user)

    async def test_change_password_weak_new_password(self, client: AsyncClient, user_headers):
        response = await client.post(
            "/api/auth/change-password",
            headers=user_headers,
            json={"oldPassword": TEST_PASSWORD, "newPassword": "weak"},
        )

        assert response.status_code == 400

    async def test_change_password_requires_auth(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/change-password",
            json={"oldPassword": TEST_PASSWORD, "newPassword": NEW_PASSWORD},
        )

        assert response.status_code == 401


@pytest.mark.api
class TestForgotPassword:
    """Tests for POST /api/auth/forgot-password endpoint."""

    GENERIC_MESSAGE = (
        "If an account with that identifier exists, you will receive a password reset email"
    )

    async def test_known_account_enqueues_email(
        self, client: AsyncClient, db_session: AsyncSession, test_user: Users, enqueue_mock
    ):
        response = await client.post(
            "/api/auth/forgot-password", json={"identifier": test_user.email}
        )

        assert response.status_code == 200
        assert response.json()["message"] == self.GENERIC_MESSAGE

        enqueue_mock.assert_awaited_once()
        args, kwargs = enqueue_mock.call_args
        assert args == ("send_password_reset_email_job",)
        assert kwargs["user_id"] == test_user.id

        # Only the hash is stored
        await db_session.refresh(test_user)
        assert test_user.password_reset_token == hash_token(kwargs["token"])
        assert test_user.password_reset_expires_at > utc_now()

    async def test_unknown_identifier_gives_same_response(
        self, client: AsyncClient, enqueue_mock
    ):
        response = await client.post(
            "/api/auth/forgot-password", json={"identifier": "nobody@example.com"}
        )

        assert response.status_code == 200
        assert response.json()["message"] == self.GENERIC_MESSAGE
        enqueue_mock.assert_not_awaited()

    async def test_account_without_email_gives_same_response(
        self, client: AsyncClient, make_user, enqueue_mock
    ):
        user = await make_user(email=None)

        response = await client.post("/api/auth/forgot-password", json={"identifier": user.phone})

        assert response.status_code == 200
        assert response.json()["message"] == self.GENERIC_MESSAGE
        enqueue_mock.assert_not_awaited()

    async def test_queue_failure_gives_same_response(
        self, client: AsyncClient, test_user: Users, enqueue_mock
    ):
        enqueue_mock.return_value = None

        response = await client.post(
            "/api/auth/forgot-password", json={"identifier": test_user.phone}
        )

        assert response.status_code == 200
        assert response.json()["message"] == self.GENERIC_MESSAGE


@pytest.mark.api
class TestResetPasswordWithToken:
    """Tests for POST /api/auth/reset-password-with-token endpoint."""

    async def _request_reset(self, client: AsyncClient, user: Users, enqueue_mock) -> str:
        await client.post("/api/auth/forgot-password", json={"identifier": user.email})
        return enqueue_mock.call_args.kwargs["token"]

    async def test_reset_success(
        self, client: AsyncClient, db_session: AsyncSession, test_user: Users, enqueue_mock
    ):
        _, refresh_token = await _login(client, test_user)
        token = await self._request_reset(client, test_user, enqueue_mock)

        response = await client.post(
            "/api/auth/reset-password-with-token",
            json={"token": token, "newPassword": NEW_PASSWORD},
        )

        assert response.status_code == 200
        assert response.json()["message"] == (
            "Password has been reset successfully. Please login with your new password."
        )

        await _login(client, test_user, NEW_PASSWORD)

        await db_session.refresh(test_user)
        assert test_user.password_reset_token is None
        assert test_user.password_reset_expires_at is None

    async def test_reset_ends_existing_session(
        self, client: AsyncClient, test_user: Users, enqueue_mock
    ):
        _, refresh_token = await _login(client, test_user)
        token = await self._request_reset(client, test_user, enqueue_mock)

        await client.post(
            "/api/auth/reset-password-with-token",
            json={"token": token, "newPassword": NEW_PASSWORD},
        )

        response = await client.post(
            "/api/auth/refresh-token", headers=refresh_cookie_header(refresh_token)
        )
        assert response.status_code == 401

    async def test_reset_token_is_single_use(
        self, client: AsyncClient, test_user: Users, enqueue_mock
    ):
        token = await self._request_reset(client, test_user, enqueue_mock)
        body = {"token": token, "newPassword": NEW_PASSWORD}

        first = await client.post("/api/auth/reset-password-with-token", json=body)
        second = await client.post("/api/auth/reset-password-with-token", json=body)

        assert first.status_code == 200
        assert second.status_code == 401

    async def test_reset_invalid_token(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/reset-password-with-token",
            json={"token": "not-a-real-token", "newPassword": NEW_PASSWORD},
        )

        assert response.status_code == 401
        data = response.json()
        assert data["message"] == "Password reset token is invalid or has expired"
        assert data["errorName"] == "InvalidOrExpiredTokenError"

    async def test_reset_expired_token(
        self, client: AsyncClient, db_session: AsyncSession, test_user: Users, enqueue_mock
    ):
        token = await self._request_reset(client, test_user, enqueue_mock)
        test_user.password_reset_expires_at = utc_now() - timedelta(minutes=1)
        await db_session.commit()

        response = await client.post(
            "/api/auth/reset-password-with-token",
            json={"token": token, "newPassword": NEW_PASSWORD},
        )

        assert response.status_code == 401

        # Old password still works
        await _login(client, test_user)
