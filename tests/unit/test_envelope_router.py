"""HTTP-level tests for the envelope and account routers via ASGITransport.

Auth, DB session and services are swapped through FastAPI dependency
overrides; the app lifespan (DB/Redis startup) is not run.
"""

import random
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from src.cr_account.application.service import AccountApplicationService
from src.cr_common.database import get_db_session
from src.cr_common.errors import LockContentionError
from src.cr_envelope.api.router import get_envelope_service
from src.cr_envelope.application.service import EnvelopeApplicationService
from src.cr_envelope.domain.policy import EnvelopePolicy
from src.cr_gateway.auth.dependencies import get_current_user_id
from src.main import app
from tests.unit.fakes import (
    FakeAccountRepository,
    FakeEnvelopeRepository,
    FakeOrderLedger,
    FakeStore,
    FakeTimer,
)


class Caller:
    user_id = "alice"


@pytest.fixture
def store() -> FakeStore:
    s = FakeStore()
    s.add_account("alice", 50000)
    s.add_account("bob")
    return s


@pytest.fixture
def caller() -> Caller:
    return Caller()


@pytest.fixture(autouse=True)
def overrides(store: FakeStore, caller: Caller, monkeypatch: pytest.MonkeyPatch):
    service = EnvelopeApplicationService(
        envelopes=FakeEnvelopeRepository(store),
        accounts=FakeAccountRepository(store),
        ledger=FakeOrderLedger(store),
        timer=FakeTimer(),
        policy=EnvelopePolicy(),
        rng=random.Random(0),
    )

    async def fake_db() -> AsyncGenerator:
        async with store.session() as db:
            yield db

    app.dependency_overrides[get_db_session] = fake_db
    app.dependency_overrides[get_current_user_id] = lambda: caller.user_id
    app.dependency_overrides[get_envelope_service] = lambda: service
    monkeypatch.setattr(
        "src.cr_account.api.router._service",
        AccountApplicationService(repo=FakeAccountRepository(store)),
    )
    yield
    app.dependency_overrides.clear()


async def _create(client: AsyncClient, **body) -> str:
    payload = {"type": "FIXED", "total_amount": "100.00", "total_count": 3, **body}
    resp = await client.post("/api/v1/redenvelope/create", json=payload)
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["id"]


class TestEnvelopeRoutes:
    async def test_create_then_claim(self, client: AsyncClient, caller: Caller) -> None:
        env_id = await _create(client, greeting="enjoy")

        caller.user_id = "bob"
        resp = await client.post("/api/v1/redenvelope/claim", json={"id": env_id})

        assert resp.status_code == 200
        body = resp.json()
        assert body["code"] == 0
        assert body["data"]["amount_cents"] == 3333
        assert body["data"]["red_envelope"]["remaining_count"] == 2
        assert "X-Request-ID" in resp.headers

    async def test_detail(self, client: AsyncClient, caller: Caller) -> None:
        env_id = await _create(client)
        caller.user_id = "bob"
        await client.post("/api/v1/redenvelope/claim", json={"id": env_id})

        resp = await client.get(f"/api/v1/redenvelope/{env_id}")

        data = resp.json()["data"]
        assert data["red_envelope"]["id"] == env_id
        assert data["user_claimed"]["user_id"] == "bob"
        assert len(data["claims"]) == 1

    async def test_list_sent(self, client: AsyncClient) -> None:
        await _create(client)
        resp = await client.post(
            "/api/v1/redenvelope/list", json={"page": 1, "page_size": 10, "type": "sent"}
        )
        data = resp.json()["data"]
        assert data["total"] == 1
        assert data["page_size"] == 10

    async def test_claim_missing_envelope_is_404(self, client: AsyncClient) -> None:
        resp = await client.post("/api/v1/redenvelope/claim", json={"id": 12345})
        assert resp.status_code == 404
        body = resp.json()
        assert body["code"] == 6001
        assert body["error_kind"] == "NOT_FOUND"
        assert body["data"] is None

    async def test_id_beyond_bigint_is_404(self, client: AsyncClient) -> None:
        too_big = str(2**64)

        claim = await client.post("/api/v1/redenvelope/claim", json={"id": too_big})
        detail = await client.get(f"/api/v1/redenvelope/{too_big}")

        assert claim.status_code == 404
        assert claim.json()["error_kind"] == "NOT_FOUND"
        assert detail.status_code == 404
        assert detail.json()["code"] == 6001

    async def test_double_claim_is_409(self, client: AsyncClient, caller: Caller) -> None:
        env_id = await _create(client)
        caller.user_id = "bob"
        await client.post("/api/v1/redenvelope/claim", json={"id": env_id})
        resp = await client.post("/api/v1/redenvelope/claim", json={"id": env_id})
        assert resp.status_code == 409
        assert resp.json()["error_kind"] == "ALREADY_CLAIMED"

    async def test_lock_contention_sets_retry_after(self, client: AsyncClient) -> None:
        busy = AsyncMock()
        busy.claim.side_effect = LockContentionError(7)
        app.dependency_overrides[get_envelope_service] = lambda: busy

        resp = await client.post("/api/v1/redenvelope/claim", json={"id": 7})

        assert resp.status_code == 429
        assert resp.headers["Retry-After"] == "1"
        assert resp.json()["error_kind"] == "LOCK_CONTENTION"

    async def test_insufficient_balance_is_422(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/v1/redenvelope/create",
            json={"type": "RANDOM", "total_amount": "9999.00", "total_count": 2},
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 2001

    async def test_sub_cent_amount_fails_validation(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/v1/redenvelope/create",
            json={"type": "FIXED", "total_amount": "1.001", "total_count": 1},
        )
        assert resp.status_code == 422


class TestAccountRoutes:
    async def test_balance(self, client: AsyncClient) -> None:
        await _create(client)
        resp = await client.get("/api/v1/account/balance")
        data = resp.json()["data"]
        assert data["available_balance_cents"] == 40000
        assert data["total_payment_display"] == "100.00"


class TestAuth:
    async def test_missing_token_is_401(self, client: AsyncClient) -> None:
        del app.dependency_overrides[get_current_user_id]
        resp = await client.get("/api/v1/account/balance")
        assert resp.status_code == 401


async def test_health(client: AsyncClient) -> None:
    resp = await client.get("/health")
    assert resp.json()["status"] == "ok"
