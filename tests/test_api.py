"""
API tests over the ASGI app with an in-memory database.

Covers:
- Signup, login and profile
- Customer registration with the commission cascade
- Team downline and income reporting
- Admin access control
- Insights when the model is unavailable
- OTP-confirmed password change
"""

from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from lexora.auth.jwt import COOKIE_NAME, create_access_token
from lexora.db import get_db
from lexora.main import app
from lexora.services import insights
from lexora.services.sms import SmsError


CUSTOMER = {
    "name": "Dilani Wickramasinghe",
    "contact_info": "0779876543",
    "address": "12 Temple Road, Kandy",
    "token_serial": "T-1001",
    "payment_method": "installments",
    "down_payment": "25000",
}


def _auth(user):
    token = create_access_token(user.id, user.role.value)
    return {"Cookie": f"{COOKIE_NAME}={token}"}


@pytest_asyncio.fixture
async def client(db_session):
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ── health ────────────────────────────────────────────────


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_ready(self, client):
        response = await client.get("/api/health/ready")
        assert response.status_code == 200
        assert response.json()["database"] == "connected"


# ── auth ──────────────────────────────────────────────────


class TestAuth:
    @pytest.mark.asyncio
    async def test_signup_under_admin(self, client, chain):
        response = await client.post("/api/auth/signup", json={
            "name": "Ruwan Perera",
            "email": "ruwan@example.com",
            "mobile_number": "0711000001",
            "password": "secret123",
            "referral_code": "ADMIN1",
        })

        assert response.status_code == 201
        body = response.json()
        assert body["role"] == "Regional Director"
        assert body["referrer_id"] == "user-admin"
        assert len(body["referral_code"]) == 6
        assert COOKIE_NAME in response.cookies

    @pytest.mark.asyncio
    async def test_signup_unknown_code(self, client, chain):
        response = await client.post("/api/auth/signup", json={
            "name": "Nobody",
            "email": "nobody@example.com",
            "mobile_number": "0711000002",
            "password": "secret123",
            "referral_code": "ZZZZZZ",
        })
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_signup_validates_mobile(self, client, chain):
        response = await client.post("/api/auth/signup", json={
            "name": "Bad Mobile",
            "email": "bad@example.com",
            "mobile_number": "07-1100",
            "password": "secret123",
            "referral_code": "ADMIN1",
        })
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_login_and_me(self, client, chain):
        await client.post("/api/auth/signup", json={
            "name": "Kasun",
            "email": "kasun@example.com",
            "mobile_number": "0711000003",
            "password": "secret123",
            "referral_code": "TOM001",
        })
        client.cookies.clear()

        response = await client.post("/api/auth/login", json={
            "email": "Kasun@Example.com",
            "password": "secret123",
        })
        assert response.status_code == 200
        assert response.json()["role"] == "Salesman"

        me = await client.get("/api/auth/me")
        assert me.status_code == 200
        assert me.json()["email"] == "kasun@example.com"

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client, chain):
        await client.post("/api/auth/signup", json={
            "name": "Kasun",
            "email": "kasun@example.com",
            "mobile_number": "0711000003",
            "password": "secret123",
            "referral_code": "TOM001",
        })
        client.cookies.clear()

        response = await client.post("/api/auth/login", json={
            "email": "kasun@example.com",
            "password": "wrong-password",
        })
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_me_requires_cookie(self, client):
        response = await client.get("/api/auth/me")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_me_rejects_bad_token(self, client):
        response = await client.get("/api/auth/me", headers={"Cookie": f"{COOKIE_NAME}=junk"})
        assert response.status_code == 401


# ── customers ─────────────────────────────────────────────


class TestRegisterCustomer:
    @pytest.mark.asyncio
    async def test_salesman_registers_customer(self, client, chain):
        response = await client.post(
            "/api/panel/customers", json=CUSTOMER, headers=_auth(chain["salesman"])
        )

        assert response.status_code == 201
        body = response.json()
        assert body["customer"]["token_serial"] == "T-1001"
        assert body["customer"]["salesman_id"] == "user-salesman"
        assert body["customer"]["commission_distributed"] is True
        assert Decimal(body["total_commission"]) == Decimal("1500")
        assert [c["user_id"] for c in body["credits"]] == [
            "user-salesman", "user-tom", "user-gom", "user-hgm", "user-rd",
        ]

    @pytest.mark.asyncio
    async def test_duplicate_token_conflicts(self, client, chain):
        headers = _auth(chain["salesman"])
        first = await client.post("/api/panel/customers", json=CUSTOMER, headers=headers)
        second = await client.post("/api/panel/customers", json=CUSTOMER, headers=headers)

        assert first.status_code == 201
        assert second.status_code == 409

    @pytest.mark.asyncio
    async def test_only_salesmen_register(self, client, chain):
        response = await client.post(
            "/api/panel/customers", json=CUSTOMER, headers=_auth(chain["tom"])
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_blank_fields_rejected(self, client, chain):
        response = await client.post(
            "/api/panel/customers",
            json={**CUSTOMER, "name": "   "},
            headers=_auth(chain["salesman"]),
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_lists_own_customers(self, client, chain):
        headers = _auth(chain["salesman"])
        await client.post("/api/panel/customers", json=CUSTOMER, headers=headers)

        response = await client.get("/api/panel/customers", headers=headers)
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["items"][0]["token_serial"] == "T-1001"


# ── team ──────────────────────────────────────────────────


class TestTeam:
    @pytest.mark.asyncio
    async def test_downline_after_sale(self, client, chain):
        await client.post(
            "/api/panel/customers", json=CUSTOMER, headers=_auth(chain["salesman"])
        )

        response = await client.get("/api/panel/team/downline", headers=_auth(chain["gom"]))

        assert response.status_code == 200
        body = response.json()
        assert body["team_size"] == 2
        assert [m["id"] for m in body["members"]] == ["user-tom", "user-salesman"]
        assert Decimal(body["personal_income"]) == Decimal("250")
        assert Decimal(body["team_income"]) == Decimal("1000")

    @pytest.mark.asyncio
    async def test_salesman_has_no_team(self, client, chain):
        response = await client.get(
            "/api/panel/team/downline", headers=_auth(chain["salesman"])
        )
        body = response.json()
        assert body["team_size"] == 0
        assert body["members"] == []

    @pytest.mark.asyncio
    async def test_income_records(self, client, chain):
        await client.post(
            "/api/panel/customers", json=CUSTOMER, headers=_auth(chain["salesman"])
        )

        response = await client.get("/api/panel/team/income", headers=_auth(chain["tom"]))

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        record = body["items"][0]
        assert Decimal(record["amount"]) == Decimal("400")
        assert record["granted_for_role"] == "Team Operation Manager"
        assert record["token_serial"] == "T-1001"


# ── admin ─────────────────────────────────────────────────


class TestAdmin:
    @pytest.mark.asyncio
    async def test_requires_admin(self, client, chain):
        response = await client.get("/api/admin/users", headers=_auth(chain["salesman"]))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_lists_users(self, client, chain):
        response = await client.get("/api/admin/users", headers=_auth(chain["admin"]))
        assert response.status_code == 200
        assert response.json()["total"] == len(chain)

    @pytest.mark.asyncio
    async def test_filters_by_role(self, client, chain):
        response = await client.get(
            "/api/admin/users",
            params={"role": "Salesman"},
            headers=_auth(chain["admin"]),
        )
        body = response.json()
        assert body["total"] == 1
        assert body["items"][0]["id"] == "user-salesman"

    @pytest.mark.asyncio
    async def test_user_downline(self, client, chain):
        response = await client.get(
            "/api/admin/users/user-hgm/downline", headers=_auth(chain["admin"])
        )
        assert response.status_code == 200
        assert response.json()["team_size"] == 3

    @pytest.mark.asyncio
    async def test_user_downline_income_matches_panel(self, client, chain):
        await client.post(
            "/api/panel/customers", json=CUSTOMER, headers=_auth(chain["salesman"])
        )

        admin_view = await client.get(
            "/api/admin/users/user-gom/downline", headers=_auth(chain["admin"])
        )
        panel_view = await client.get("/api/panel/team/downline", headers=_auth(chain["gom"]))

        assert admin_view.status_code == 200
        for field in ("personal_income", "team_income"):
            assert Decimal(admin_view.json()[field]) == Decimal(panel_view.json()[field])
        assert Decimal(admin_view.json()["team_income"]) == Decimal("1000")

    @pytest.mark.asyncio
    async def test_unknown_user_downline(self, client, chain):
        response = await client.get(
            "/api/admin/users/missing/downline", headers=_auth(chain["admin"])
        )
        assert response.status_code == 404


# ── insights ──────────────────────────────────────────────


class TestInsights:
    @pytest.mark.asyncio
    async def test_unavailable_without_model(self, client, chain):
        with patch.object(insights, "_get_client", return_value=None):
            response = await client.post("/api/panel/insights", headers=_auth(chain["tom"]))
        assert response.status_code == 503

    @pytest.mark.asyncio
    async def test_returns_insights(self, client, chain):
        async def fake_generate(context):
            assert context.hierarchical_position == "Team Operation Manager"
            return ["Coach your salesman on installments."]

        with patch(
            "lexora.api.panel.insights.generate_actionable_insights", side_effect=fake_generate
        ):
            response = await client.post("/api/panel/insights", headers=_auth(chain["tom"]))

        assert response.status_code == 200
        assert response.json() == {"insights": ["Coach your salesman on installments."]}


# ── profile ───────────────────────────────────────────────


class TestPasswordChange:
    async def _signup(self, client):
        response = await client.post("/api/auth/signup", json={
            "name": "Kasun",
            "email": "kasun@example.com",
            "mobile_number": "0711000003",
            "password": "secret123",
            "referral_code": "TOM001",
        })
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_change_with_texted_code(self, client, chain):
        await self._signup(client)
        sender = AsyncMock()

        with patch("lexora.services.accounts.send_otp_sms", sender):
            response = await client.post(
                "/api/panel/profile/password/otp", json={"current_password": "secret123"}
            )
        assert response.status_code == 200
        mobile, otp = sender.call_args.args
        assert mobile == "0711000003"

        response = await client.put(
            "/api/panel/profile/password", json={"otp": otp, "new_password": "fresh-secret"}
        )
        assert response.status_code == 200

        client.cookies.clear()
        login = await client.post("/api/auth/login", json={
            "email": "kasun@example.com",
            "password": "fresh-secret",
        })
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_wrong_current_password(self, client, chain):
        await self._signup(client)
        sender = AsyncMock()

        with patch("lexora.services.accounts.send_otp_sms", sender):
            response = await client.post(
                "/api/panel/profile/password/otp", json={"current_password": "nope"}
            )
        assert response.status_code == 400
        sender.assert_not_called()

    @pytest.mark.asyncio
    async def test_wrong_code(self, client, chain):
        await self._signup(client)
        sender = AsyncMock()

        with patch("lexora.services.accounts.send_otp_sms", sender):
            await client.post(
                "/api/panel/profile/password/otp", json={"current_password": "secret123"}
            )
        _, otp = sender.call_args.args
        wrong = "000000" if otp != "000000" else "111111"

        response = await client.put(
            "/api/panel/profile/password", json={"otp": wrong, "new_password": "fresh-secret"}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_code_required_before_change(self, client, chain):
        await self._signup(client)
        response = await client.put(
            "/api/panel/profile/password", json={"otp": "123456", "new_password": "fresh-secret"}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_sms_failure(self, client, chain):
        await self._signup(client)
        sender = AsyncMock(side_effect=SmsError("SMS provider error: No credit"))

        with patch("lexora.services.accounts.send_otp_sms", sender):
            response = await client.post(
                "/api/panel/profile/password/otp", json={"current_password": "secret123"}
            )
        assert response.status_code == 502
        assert "No credit" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_requires_login(self, client):
        response = await client.post(
            "/api/panel/profile/password/otp", json={"current_password": "secret123"}
        )
        assert response.status_code == 401
