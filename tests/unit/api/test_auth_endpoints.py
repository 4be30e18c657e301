"""
Tests for the authentication endpoints: registration, verification,
login/logout and profile updates.
"""

from datetime import timedelta

from sqlalchemy import select

from core.security import ACCESS_TOKEN_COOKIE, unsign_cookie_value, verify_jwt_token
from core.utils.datetime import now
from database.models.users import RefreshToken, User

REGISTER = "/api/v1/auth/register"
LOGIN = "/api/v1/auth/login"
VERIFY = "/api/v1/auth/verify-Email"


def _talent(email="jane@example.com", **overrides):
    payload = {
        "name": "Jane",
        "lastName": "Doe",
        "email": email,
        "password": "secret123",
        "location": {"country": "Canada", "city": "Toronto"},
        "role": "talent",
        "phone": "+1-555-0100",
    }
    payload.update(overrides)
    return payload


async def _get_user(session, email):
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


class TestRegister:
    """Test account registration."""

    def test_register_talent(self, client, mailer, run_db):
        response = client.post(REGISTER, json=_talent())

        assert response.status_code == 201
        assert response.json() == {"msg": "Success! Please check your email to verify your account"}

        user = run_db(_get_user, "jane@example.com")
        assert user.is_verified is False
        assert len(user.verification_token) == 80
        assert user.password != "secret123"
        assert mailer.send_verification_email.call_count == 1

    def test_register_does_not_set_session(self, client):
        response = client.post(REGISTER, json=_talent())
        assert ACCESS_TOKEN_COOKIE not in response.cookies

    def test_mail_uses_request_origin(self, client, mailer):
        client.post(REGISTER, json=_talent(), headers={"origin": "https://app.example"})
        _, email, _, origin = mailer.send_verification_email.call_args.args
        assert email == "jane@example.com"
        assert origin == "https://app.example"

    def test_mail_origin_defaults_to_frontend(self, client, mailer):
        client.post(REGISTER, json=_talent())
        assert mailer.send_verification_email.call_args.args[3] == "http://localhost:3000"

    def test_missing_fields(self, client):
        response = client.post(REGISTER, json={"email": "jane@example.com"})
        assert response.status_code == 400
        assert response.json() == {"msg": "Please provide all the values"}

    def test_missing_city(self, client):
        response = client.post(REGISTER, json=_talent(location={"country": "Canada"}))
        assert response.status_code == 400

    def test_employer_requires_company_fields(self, client):
        response = client.post(REGISTER, json=_talent(role="employer"))
        assert response.status_code == 400
        assert response.json() == {
            "msg": "Employer must provide companyName, companySize, and industry"
        }

    def test_register_employer(self, client, run_db):
        response = client.post(
            REGISTER,
            json=_talent(
                email="boss@example.com",
                role="employer",
                companyName="Acme",
                companySize="51-200",
                industry="Software",
            ),
        )
        assert response.status_code == 201
        user = run_db(_get_user, "boss@example.com")
        assert user.company_name == "Acme"
        assert user.company_size.value == "51-200"

    def test_duplicate_email(self, client):
        client.post(REGISTER, json=_talent())
        response = client.post(REGISTER, json=_talent(email="JANE@example.com"))
        assert response.status_code == 409
        assert response.json() == {"msg": "Email already exists"}

    def test_invalid_role(self, client):
        response = client.post(REGISTER, json=_talent(role="admin"))
        assert response.status_code == 400

    def test_password_over_72_bytes(self, client, run_db):
        response = client.post(REGISTER, json=_talent(password="p" * 100))
        assert response.status_code == 400
        assert response.json() == {"msg": "Password is too long"}
        assert run_db(_get_user, "jane@example.com") is None

    def test_multibyte_password_counted_in_bytes(self, client):
        # 40 characters, 80 bytes
        response = client.post(REGISTER, json=_talent(password="\u00e9" * 40))
        assert response.status_code == 400

    def test_mail_failure_keeps_user(self, client, mailer, run_db):
        mailer.send_verification_email.return_value = False
        response = client.post(REGISTER, json=_talent())
        assert response.status_code == 201
        assert run_db(_get_user, "jane@example.com") is not None


class TestVerifyEmail:
    """Test email verification."""

    def test_verify_via_body(self, client, register, run_db):
        payload, token = register()

        response = client.post(VERIFY, json={"verificationToken": token, "email": payload["email"]})

        assert response.status_code == 200
        assert response.json() == {"msg": "Email Verified"}
        user = run_db(_get_user, payload["email"])
        assert user.is_verified is True
        assert user.verified_at is not None
        assert user.verification_token is None
        assert user.verification_token_expires is None

    def test_verify_via_query(self, client, register):
        payload, token = register()
        response = client.get(VERIFY, params={"verificationToken": token, "email": payload["email"]})
        assert response.status_code == 200

    def test_token_is_single_use(self, client, register):
        payload, token = register()
        body = {"verificationToken": token, "email": payload["email"]}
        client.post(VERIFY, json=body)

        response = client.post(VERIFY, json=body)

        assert response.status_code == 401

    def test_wrong_token(self, client, register):
        payload, _ = register()
        response = client.post(VERIFY, json={"verificationToken": "0" * 80, "email": payload["email"]})
        assert response.status_code == 401
        assert response.json() == {"msg": "Verification Failed"}

    def test_unknown_email(self, client):
        response = client.post(VERIFY, json={"verificationToken": "x", "email": "nobody@example.com"})
        assert response.status_code == 401
        assert response.json() == {"msg": "Please provide valid email address"}

    def test_expired_token(self, client, register, run_db):
        payload, token = register()

        async def expire(session, email):
            user = await _get_user(session, email)
            user.verification_token_expires = now() - timedelta(minutes=1)
            await session.commit()

        run_db(expire, payload["email"])
        response = client.post(VERIFY, json={"verificationToken": token, "email": payload["email"]})

        assert response.status_code == 401
        assert response.json() == {"msg": "Verification token expired. Please request a new one."}


class TestResendVerification:
    """Test reissuing verification tokens."""

    def test_resend_replaces_token(self, client, register, mailer):
        payload, old_token = register()

        response = client.post(
            "/api/v1/auth/resend-verification", json={"email": payload["email"]}
        )

        assert response.status_code == 200
        new_token = mailer.send_verification_email.call_args.args[2]
        assert new_token != old_token
        old = client.post(VERIFY, json={"verificationToken": old_token, "email": payload["email"]})
        assert old.status_code == 401
        new = client.post(VERIFY, json={"verificationToken": new_token, "email": payload["email"]})
        assert new.status_code == 200

    def test_resend_unknown_email(self, client):
        response = client.post(
            "/api/v1/auth/resend-verification", json={"email": "nobody@example.com"}
        )
        assert response.status_code == 401

    def test_resend_already_verified(self, client, make_user):
        user = make_user()
        response = client.post("/api/v1/auth/resend-verification", json={"email": user["email"]})
        assert response.status_code == 400
        assert response.json() == {"msg": "Account already verified"}


class TestLogin:
    """Test login and the session cookies."""

    def test_unverified_login_rejected(self, client, register):
        payload, _ = register()
        response = client.post(LOGIN, json={"email": payload["email"], "password": "secret123"})
        assert response.status_code == 401
        assert response.json() == {"msg": "Please verify your email"}

    def test_unknown_user_and_wrong_password_share_message(self, client, make_user):
        user = make_user()
        unknown = client.post(LOGIN, json={"email": "nobody@example.com", "password": "x"})
        wrong = client.post(LOGIN, json={"email": user["email"], "password": "nope"})

        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json() == wrong.json() == {"msg": "Invalid Credentials"}

    def test_missing_credentials(self, client):
        response = client.post(LOGIN, json={"email": "jane@example.com"})
        assert response.status_code == 400

    def test_login_returns_token_user_and_cookies(self, client, register):
        payload, token = register()
        client.post(VERIFY, json={"verificationToken": token, "email": payload["email"]})

        response = client.post(LOGIN, json={"email": payload["email"], "password": "secret123"})

        assert response.status_code == 200
        token_user = response.json()["tokenUser"]
        assert set(token_user) == {"name", "userId", "role"}
        assert token_user["role"] == "talent"

        cookies = response.headers.get_list("set-cookie")
        assert len(cookies) == 2
        access = unsign_cookie_value(response.cookies[ACCESS_TOKEN_COOKIE])
        assert verify_jwt_token(access)["user"] == token_user

    def test_refresh_record_reused(self, client, make_user, login, run_db):
        user = make_user()
        login(user["email"])

        async def tokens(session):
            result = await session.execute(select(RefreshToken))
            return result.scalars().all()

        records = run_db(tokens)
        assert len(records) == 1
        assert records[0].user_agent

    def test_invalidated_refresh_record_blocks_login(self, client, make_user, run_db):
        user = make_user()

        async def invalidate(session):
            result = await session.execute(select(RefreshToken))
            record = result.scalar_one()
            record.is_valid = False
            await session.commit()

        run_db(invalidate)
        response = client.post(LOGIN, json={"email": user["email"], "password": "secret123"})
        assert response.status_code == 401


class TestSession:
    """Test session-backed endpoints."""

    def test_show_current_user(self, client, make_user):
        user = make_user()
        response = client.get("/api/v1/auth/showCurrentUser")
        assert response.status_code == 200
        assert response.json()["user"]["userId"] == user["userId"]

    def test_show_current_user_requires_session(self, client):
        response = client.get("/api/v1/auth/showCurrentUser")
        assert response.status_code == 401
        assert response.json() == {"msg": "Authentication Invalid"}

    def test_logout_clears_cookies(self, client, make_user):
        make_user()
        response = client.get("/api/v1/auth/logout")

        assert response.status_code == 200
        assert response.json() == {"msg": "user logged out!"}
        cookies = response.headers.get_list("set-cookie")
        assert any(c.startswith("accessToken=logout") for c in cookies)
        assert any(c.startswith("refreshToken=logout") for c in cookies)

    def test_update_user_reissues_cookies(self, client, make_user):
        make_user()
        response = client.patch(
            "/api/v1/auth/updateUser", json={"email": "renamed@example.com", "name": "Janet"}
        )

        assert response.status_code == 200
        assert response.json()["user"]["name"] == "Janet"
        assert ACCESS_TOKEN_COOKIE in response.cookies
        assert client.get("/api/v1/auth/showCurrentUser").json()["user"]["name"] == "Janet"

    def test_update_user_requires_both_values(self, client, make_user):
        make_user()
        response = client.patch("/api/v1/auth/updateUser", json={"name": "Janet"})
        assert response.status_code == 400

    def test_update_user_email_taken(self, client, make_user, login):
        other = make_user()
        me = make_user()
        login(me["email"])
        response = client.patch(
            "/api/v1/auth/updateUser", json={"email": other["email"], "name": "Jane"}
        )
        assert response.status_code == 409

    def test_update_password(self, client, make_user, login):
        user = make_user()
        response = client.patch(
            "/api/v1/auth/updateUserPassword",
            json={"oldPassword": "secret123", "newPassword": "secret456"},
        )
        assert response.status_code == 200
        assert response.json() == {"msg": "Success! Password Updated."}
        login(user["email"], "secret456")

    def test_update_password_wrong_old(self, client, make_user):
        make_user()
        response = client.patch(
            "/api/v1/auth/updateUserPassword",
            json={"oldPassword": "wrong", "newPassword": "secret456"},
        )
        assert response.status_code == 401

    def test_update_password_must_differ(self, client, make_user):
        make_user()
        response = client.patch(
            "/api/v1/auth/updateUserPassword",
            json={"oldPassword": "secret123", "newPassword": "secret123"},
        )
        assert response.status_code == 400

    def test_update_password_too_long(self, client, make_user, login):
        user = make_user()
        response = client.patch(
            "/api/v1/auth/updateUserPassword",
            json={"oldPassword": "secret123", "newPassword": "q" * 100},
        )
        assert response.status_code == 400
        assert response.json() == {"msg": "Password is too long"}
        login(user["email"], "secret123")
