"""
MedCare Backend: API Endpoint Tests
=====================================

What:  End-to-end tests through the FastAPI app (middleware, gates, handlers,
       per-request transaction) with HTTPX AsyncClient.

What we test:
    ✅ Protected routes reject missing or invalid credentials with 401 and no writes
    ✅ Wrong roles are rejected with 403 before any mutation
    ✅ Join scenario: counter, registration, and role promotion
    ✅ Ratings, cancellation rollback, camps, users, payments, health
"""

import uuid

import pytest
from sqlalchemy import select

from medcare.config import settings
from medcare.models import Camp, Payment, Registration, User

PROTECTED_ROUTES = [
    ("post", "/registrations", {"campId": str(uuid.uuid4())}),
    ("patch", f"/registrations/{uuid.uuid4()}/rating", {"rating": 5}),
    ("post", "/registrations/cancel/pm_any", None),
    ("get", "/registrations/mine", None),
    ("post", "/camps", {"name": "Camp", "fees": 10}),
    ("post", "/camps/reconcile", None),
    ("get", "/users", None),
    ("get", "/users/me/role", None),
    ("post", "/payments/intent", {"fees": 10}),
    ("post", "/payments", {"amount": 10, "payment_method_id": "pm_x"}),
]


async def _send(client, method, path, body):
    if body is None:
        return await client.request(method.upper(), path)
    return await client.request(method.upper(), path, json=body)


class TestAuthentication:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method, path, body", PROTECTED_ROUTES)
    async def test_missing_credential_is_401(self, client, method, path, body):
        response = await _send(client, method, path, body)

        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"
        assert response.json()["message"] == "unauthorized access"

    @pytest.mark.asyncio
    async def test_invalid_credential_gets_same_body_as_missing(self, client):
        missing = await client.get("/users/me/role")
        client.cookies.set(settings.token_cookie_name, "forged.token.value")
        invalid = await client.get("/users/me/role")

        assert invalid.status_code == 401
        assert invalid.json()["message"] == missing.json()["message"]

    @pytest.mark.asyncio
    async def test_unauthenticated_join_makes_no_writes(self, client, make_camp, db_session, count_rows):
        camp = await make_camp(participant_count=0)

        response = await client.post("/registrations", json={"campId": str(camp.id)})

        assert response.status_code == 401
        assert await count_rows(Registration) == 0
        count = await db_session.scalar(select(Camp.participant_count).where(Camp.id == camp.id))
        assert count == 0

    @pytest.mark.asyncio
    async def test_jwt_endpoint_sets_httponly_cookie(self, client, make_user):
        await make_user("pat@example.com", role="participant")

        response = await client.post("/auth/jwt", json={"email": "pat@example.com"})

        assert response.status_code == 200
        set_cookie = response.headers["set-cookie"].lower()
        assert f"{settings.token_cookie_name}=" in set_cookie
        assert "httponly" in set_cookie

        role = await client.get("/users/me/role")
        assert role.status_code == 200
        assert role.json()["role"] == "participant"

    @pytest.mark.asyncio
    async def test_logout_clears_cookie(self, client):
        response = await client.post("/auth/logout")

        assert response.status_code == 200
        assert f"{settings.token_cookie_name}=" in response.headers["set-cookie"]


class TestAuthorization:

    @pytest.mark.asyncio
    async def test_participant_cannot_create_camp(self, client, sign_in, make_user, count_rows):
        await make_user("pat@example.com", role="participant")
        sign_in("pat@example.com")

        response = await client.post("/camps", json={"name": "Sneaky Camp", "fees": 5})

        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"
        assert await count_rows(Camp) == 0

    @pytest.mark.asyncio
    async def test_unknown_user_is_forbidden(self, client, sign_in, count_rows):
        sign_in("nobody@example.com")

        response = await client.post("/camps", json={"name": "Ghost Camp", "fees": 5})

        assert response.status_code == 403
        assert await count_rows(Camp) == 0

    @pytest.mark.asyncio
    async def test_user_without_role_cannot_rate(
        self, client, sign_in, make_user, make_camp, make_registration, db_session
    ):
        await make_user("new@example.com", role=None)
        camp = await make_camp(average_rating=2.0)
        reg = await make_registration(camp, participant_email="new@example.com", rating=2)
        sign_in("new@example.com")

        response = await client.patch(f"/registrations/{reg.id}/rating", json={"rating": 5})

        assert response.status_code == 403
        rating = await db_session.scalar(select(Registration.rating).where(Registration.id == reg.id))
        assert rating == 2


class TestJoinCamp:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("prior_role", [None, "participants"])
    async def test_join_scenario(self, client, sign_in, make_user, make_camp, db_session, prior_role):
        await make_user("pat@example.com", role=prior_role)
        camp = await make_camp(participant_count=0)
        sign_in("pat@example.com")

        response = await client.post("/registrations", json={"campId": str(camp.id)})

        assert response.status_code == 201
        assert response.json()["success"] is True
        count = await db_session.scalar(select(Camp.participant_count).where(Camp.id == camp.id))
        assert count == 1
        rows = (
            await db_session.execute(
                select(Registration.participant_email, Registration.camp_id)
            )
        ).all()
        assert [tuple(row) for row in rows] == [("pat@example.com", camp.id)]
        role = await db_session.scalar(select(User.role).where(User.email == "pat@example.com"))
        assert role == "participant"

    @pytest.mark.asyncio
    async def test_malformed_camp_id_is_400(self, client, sign_in):
        sign_in("pat@example.com")

        response = await client.post("/registrations", json={"camp_id": "12345"})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_unknown_camp_is_404(self, client, sign_in, count_rows):
        sign_in("pat@example.com")

        response = await client.post("/registrations", json={"camp_id": str(uuid.uuid4())})

        assert response.status_code == 404
        assert await count_rows(Registration) == 0


class TestRating:

    @pytest.mark.asyncio
    async def test_rating_updates_camp_average(
        self, client, sign_in, make_user, make_camp, make_registration, db_session
    ):
        await make_user("pat@example.com", role="participant")
        camp = await make_camp()
        await make_registration(camp, participant_email="other@example.com", rating=2)
        reg = await make_registration(camp, participant_email="pat@example.com")
        sign_in("pat@example.com")

        response = await client.patch(
            f"/registrations/{reg.id}/rating", json={"rating": 5, "rating_text": "Great staff"}
        )

        assert response.status_code == 200
        assert response.json()["average_rating"] == pytest.approx(3.5)
        average = await db_session.scalar(select(Camp.average_rating).where(Camp.id == camp.id))
        assert average == pytest.approx(3.5)

    @pytest.mark.asyncio
    async def test_out_of_range_rating_is_400_and_average_unchanged(
        self, client, sign_in, make_user, make_camp, make_registration, db_session
    ):
        await make_user("pat@example.com", role="participant")
        camp = await make_camp(average_rating=4.0)
        reg = await make_registration(camp, participant_email="pat@example.com", rating=4)
        sign_in("pat@example.com")

        response = await client.patch(f"/registrations/{reg.id}/rating", json={"rating": 9})

        assert response.status_code == 400
        average = await db_session.scalar(select(Camp.average_rating).where(Camp.id == camp.id))
        assert average == pytest.approx(4.0)

    @pytest.mark.asyncio
    async def test_unknown_registration_is_404_and_average_untouched(
        self, client, sign_in, make_user, make_camp, db_session
    ):
        await make_user("pat@example.com", role="participant")
        camp = await make_camp(average_rating=3.0)
        sign_in("pat@example.com")

        response = await client.patch(f"/registrations/{uuid.uuid4()}/rating", json={"rating": 5})

        assert response.status_code == 404
        average = await db_session.scalar(select(Camp.average_rating).where(Camp.id == camp.id))
        assert average == pytest.approx(3.0)


class TestCancel:

    @pytest.mark.asyncio
    async def test_unknown_reference_is_404_and_changes_nothing(
        self, client, sign_in, make_user, count_rows
    ):
        await make_user("pat@example.com", role="participant")
        sign_in("pat@example.com")

        response = await client.post("/registrations/cancel/pm_does_not_exist")

        assert response.status_code == 404
        assert await count_rows(Registration) == 0
        assert await count_rows(Payment) == 0

    @pytest.mark.asyncio
    async def test_half_match_rolls_back(
        self, client, sign_in, make_user, make_camp, make_registration, db_session
    ):
        """A registration without a payment is not canceled on its own."""
        await make_user("pat@example.com", role="participant")
        camp = await make_camp()
        await make_registration(camp, participant_email="pat@example.com", payment_method_id="pm_only_reg")
        sign_in("pat@example.com")

        response = await client.post("/registrations/cancel/pm_only_reg")

        assert response.status_code == 404
        status = await db_session.scalar(
            select(Registration.status).where(Registration.payment_method_id == "pm_only_reg")
        )
        assert status == "Active"

    @pytest.mark.asyncio
    async def test_cancel_own_registration(
        self, client, sign_in, make_user, make_camp, make_registration, make_payment, db_session
    ):
        await make_user("pat@example.com", role="participant")
        camp = await make_camp()
        await make_registration(camp, participant_email="pat@example.com", payment_method_id="pm_ok")
        await make_payment(payer_email="pat@example.com", payment_method_id="pm_ok")
        sign_in("pat@example.com")

        response = await client.post("/registrations/cancel/pm_ok")

        assert response.status_code == 200
        pay_status = await db_session.scalar(select(Payment.status).where(Payment.payment_method_id == "pm_ok"))
        assert pay_status == "Canceled"

    @pytest.mark.asyncio
    async def test_organizer_cannot_cancel_on_another_organizers_camp(
        self, client, sign_in, make_user, make_camp, make_registration, make_payment, db_session
    ):
        await make_user("org-b@example.com", role="organizer")
        camp = await make_camp(organizer_email="org-a@example.com")
        await make_registration(camp, participant_email="pat@example.com", payment_method_id="pm_x")
        await make_payment(payer_email="pat@example.com", payment_method_id="pm_x")
        sign_in("org-b@example.com")

        response = await client.post("/registrations/cancel/pm_x")

        assert response.status_code == 404
        reg_status = await db_session.scalar(
            select(Registration.status).where(Registration.payment_method_id == "pm_x")
        )
        pay_status = await db_session.scalar(select(Payment.status).where(Payment.payment_method_id == "pm_x"))
        assert reg_status == "Active"
        assert pay_status == "Active"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email, role", [("org-a@example.com", "organizer"), ("admin@example.com", "admin")])
    async def test_camp_owner_and_admin_can_cancel(
        self, client, sign_in, make_user, make_camp, make_registration, make_payment, db_session, email, role
    ):
        await make_user(email, role=role)
        camp = await make_camp(organizer_email="org-a@example.com")
        await make_registration(camp, participant_email="pat@example.com", payment_method_id="pm_y")
        await make_payment(payer_email="pat@example.com", payment_method_id="pm_y")
        sign_in(email)

        response = await client.post("/registrations/cancel/pm_y")

        assert response.status_code == 200
        reg_status = await db_session.scalar(
            select(Registration.status).where(Registration.payment_method_id == "pm_y")
        )
        assert reg_status == "Canceled"


class TestCamps:

    @pytest.mark.asyncio
    async def test_organizer_creates_camp_with_embedded_identity(self, client, sign_in, make_user):
        await make_user("org@example.com", role="organizer", display_name="Dr. Org")
        sign_in("org@example.com")

        response = await client.post(
            "/camps", json={"name": "Vision Camp", "fees": 12.5, "category": "Eye"}
        )

        assert response.status_code == 201
        body = response.json()
        assert body["organizer_email"] == "org@example.com"
        assert body["organizer_name"] == "Dr. Org"
        assert body["participant_count"] == 0

    @pytest.mark.asyncio
    async def test_non_numeric_fees_rejected(self, client, sign_in, make_user, count_rows):
        await make_user("org@example.com", role="organizer")
        sign_in("org@example.com")

        response = await client.post("/camps", json={"name": "Bad Fees", "fees": "abc"})

        assert response.status_code == 400
        assert await count_rows(Camp) == 0

    @pytest.mark.asyncio
    async def test_public_listing_sets_total_header(self, client, make_camp):
        for i in range(3):
            await make_camp(name=f"Camp {i}")

        response = await client.get("/camps", params={"limit": 2})

        assert response.status_code == 200
        assert response.headers["x-total-count"] == "3"
        body = response.json()
        assert len(body["camps"]) == 2
        assert body["has_more"] is True

    @pytest.mark.asyncio
    async def test_invalid_sort_is_400(self, client):
        response = await client.get("/camps", params={"sort": "random"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_get_camp_by_id(self, client, make_camp):
        camp = await make_camp(name="Single Camp")

        found = await client.get(f"/camps/{camp.id}")
        missing = await client.get(f"/camps/{uuid.uuid4()}")
        malformed = await client.get("/camps/not-an-id")

        assert found.status_code == 200
        assert found.json()["name"] == "Single Camp"
        assert missing.status_code == 404
        assert malformed.status_code == 400

    @pytest.mark.asyncio
    async def test_admin_reconcile(self, client, sign_in, make_user, make_camp, make_registration):
        await make_user("admin@example.com", role="admin")
        camp = await make_camp(participant_count=7)
        await make_registration(camp)
        sign_in("admin@example.com")

        response = await client.post(f"/camps/{camp.id}/reconcile")

        assert response.status_code == 200
        assert response.json()["camps_updated"] == 1


class TestUsers:

    @pytest.mark.asyncio
    async def test_resave_keeps_role(self, client, make_user, db_session):
        await make_user("pat@example.com", role="participant")

        response = await client.post(
            "/users",
            json={"uid": "uid-pat@example.com", "email": "pat@example.com", "display_name": "Pat"},
        )

        assert response.status_code == 200
        assert response.json()["role"] == "participant"
        assert response.json()["display_name"] == "Pat"

    @pytest.mark.asyncio
    async def test_new_user_starts_without_role(self, client):
        response = await client.post("/users", json={"uid": "u-1", "email": "fresh@example.com"})

        assert response.status_code == 200
        assert response.json()["role"] is None

    @pytest.mark.asyncio
    async def test_admin_changes_role_and_clears_request(self, client, sign_in, make_user):
        await make_user("admin@example.com", role="admin")
        await make_user("pat@example.com", role="participant")
        sign_in("admin@example.com")

        response = await client.patch("/users/pat@example.com/role", json={"role": "organizer"})

        assert response.status_code == 200
        assert response.json() == {"email": "pat@example.com", "role": "organizer", "status": None}

    @pytest.mark.asyncio
    async def test_organizer_request_sets_status(self, client, sign_in, make_user):
        await make_user("pat@example.com", role="participant")
        sign_in("pat@example.com")

        response = await client.post("/users/me/organizer-request")

        assert response.status_code == 200
        assert response.json()["status"] == "Requested"

    @pytest.mark.asyncio
    async def test_second_uid_with_taken_email_is_rejected(self, client, count_rows):
        first = await client.post("/users", json={"uid": "u1", "email": "dup@example.com"})
        second = await client.post("/users", json={"uid": "u2", "email": "dup@example.com"})

        assert first.status_code == 200
        assert second.status_code == 400
        assert second.json()["error"] == "validation_error"
        assert await count_rows(User) == 1

    @pytest.mark.asyncio
    async def test_resave_cannot_take_another_users_email(self, client, make_user, db_session):
        await make_user("taken@example.com")
        await make_user("pat@example.com")

        response = await client.post(
            "/users", json={"uid": "uid-pat@example.com", "email": "taken@example.com"}
        )

        assert response.status_code == 400
        email = await db_session.scalar(select(User.email).where(User.uid == "uid-pat@example.com"))
        assert email == "pat@example.com"

    @pytest.mark.asyncio
    async def test_admin_cannot_lower_a_role(self, client, sign_in, make_user, db_session):
        await make_user("admin@example.com", role="admin")
        await make_user("org@example.com", role="organizer")
        sign_in("admin@example.com")

        response = await client.patch("/users/org@example.com/role", json={"role": "participant"})

        assert response.status_code == 400
        role = await db_session.scalar(select(User.role).where(User.email == "org@example.com"))
        assert role == "organizer"


class TestPayments:

    @pytest.mark.asyncio
    async def test_payment_intent_returns_client_secret(self, client, sign_in, fake_gateway):
        sign_in("pat@example.com")

        response = await client.post("/payments/intent", json={"fees": 20})

        assert response.status_code == 200
        assert response.json() == {"client_secret": "pi_test_2000_secret"}
        assert fake_gateway.calls == [(2000, "usd")]

    @pytest.mark.asyncio
    async def test_zero_fee_never_reaches_gateway(self, client, sign_in, fake_gateway):
        sign_in("pat@example.com")

        response = await client.post("/payments/intent", json={"fees": 0})

        assert response.status_code == 400
        assert fake_gateway.calls == []

    @pytest.mark.asyncio
    async def test_record_and_list_payments(self, client, sign_in, make_user):
        await make_user("pat@example.com", role="participant")
        sign_in("pat@example.com")

        created = await client.post("/payments", json={"amount": 20, "payment_method_id": "pm_card"})
        listing = await client.get("/payments")

        assert created.status_code == 201
        assert created.json()["status"] == "Active"
        assert listing.json()["total_count"] == 1


class TestHealth:

    @pytest.mark.asyncio
    async def test_health_reports_database_and_gateway(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["payment_gateway"] == "available"

    @pytest.mark.asyncio
    async def test_responses_carry_request_id(self, client):
        response = await client.get("/camps", headers={"X-Request-ID": "abc-123"})

        assert response.headers["x-request-id"] == "abc-123"
