import pytest
from starlette.testclient import TestClient

from tokenhunt.api.app import app
from tokenhunt.domain.models import PaymentStatus
from tokenhunt.storage.memory import MemoryStore

HUNT_PAYLOAD = {
    "lat": 25.0330,
    "lng": 121.5654,
    "radius_meters": 50,
    "reward_amount": 100,
    "max_claims": 1000,
    "campaign_name": "Night Market Drop",
    "sponsor_wallet": "0xsponsor",
}


@pytest.fixture
def store(monkeypatch):
    import tokenhunt.api.routes as routes

    # Patch the cached store factory so API tests stay in memory.
    mem = MemoryStore()
    monkeypatch.setattr(routes, "_store", lambda: mem)
    return mem


@pytest.fixture
def client(store):
    with TestClient(app) as c:
        yield c


def test_create_spawn_and_claim_flow(client, store):
    resp = client.post("/api/hunts", json=HUNT_PAYLOAD)
    assert resp.status_code == 201
    hunt = resp.json()["hunt"]
    assert hunt["claimed_count"] == 0
    assert hunt["max_claims"] == 1000

    spawn = client.post("/api/rewards/spawn").json()
    again = client.post("/api/rewards/spawn").json()
    assert spawn["rewards_inserted"] == 50
    assert again["rewards_inserted"] == 0

    rewards = client.get("/api/rewards", params={"hunt_id": hunt["hunt_id"]}).json()["rewards"]
    assert len(rewards) == 50
    target = rewards[0]
    here = {"lat": target["lat"], "lng": target["lng"]}

    ok = client.post("/api/rewards/claim", json={"reward_id": target["reward_id"], "location": here})
    assert ok.status_code == 200
    assert ok.json()["reward"]["claimed"] is True
    assert ok.json()["reward"]["amount"] == pytest.approx(2.0)

    dup = client.post("/api/rewards/claim", json={"reward_id": target["reward_id"], "location": here})
    assert dup.status_code == 409
    assert dup.json()["detail"]["code"] == "ALREADY_CLAIMED"

    hunts = client.get("/api/hunts").json()
    assert hunts["count"] == 1
    assert hunts["hunts"][0]["claimed_count"] == 1


def test_claim_errors_map_to_status_codes(client, store):
    hunt_id = client.post("/api/hunts", json=HUNT_PAYLOAD).json()["hunt"]["hunt_id"]
    client.post("/api/rewards/spawn")
    target = client.get("/api/rewards").json()["rewards"][0]

    missing = client.post(
        "/api/rewards/claim", json={"reward_id": "nope", "location": {"lat": 0, "lng": 0}}
    )
    far = client.post(
        "/api/rewards/claim",
        json={"reward_id": target["reward_id"], "location": {"lat": target["lat"] + 0.01, "lng": target["lng"]}},
    )

    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "NOT_FOUND"
    assert far.status_code == 403
    assert far.json()["detail"]["code"] == "OUT_OF_RANGE"
    assert store.get_reward(target["reward_id"]).claimed is False
    assert store.get_hunt(hunt_id).claimed_count == 0


def test_invalid_hunt_is_rejected(client):
    resp = client.post("/api/hunts", json={**HUNT_PAYLOAD, "max_claims": 0})
    assert resp.status_code == 422

    blank = client.post("/api/hunts", json={**HUNT_PAYLOAD, "campaign_name": "   "})
    assert blank.status_code == 422


def test_presence_reports_hunt_radius(client):
    hunt_id = client.post("/api/hunts", json=HUNT_PAYLOAD).json()["hunt"]["hunt_id"]

    inside = client.get(f"/api/hunts/{hunt_id}/presence", params={"lat": 25.0333, "lng": 121.5654}).json()
    outside = client.get(f"/api/hunts/{hunt_id}/presence", params={"lat": 25.0340, "lng": 121.5654}).json()
    missing = client.get("/api/hunts/ghost/presence", params={"lat": 0, "lng": 0})

    assert inside["within_range"] is True
    assert outside["within_range"] is False
    assert missing.status_code == 404


def test_delete_hunts_cascades(client, store):
    client.post("/api/hunts", json=HUNT_PAYLOAD)
    client.post("/api/hunts", json={**HUNT_PAYLOAD, "max_claims": 3})
    client.post("/api/rewards/spawn")

    resp = client.delete("/api/hunts").json()

    assert resp["deleted_hunts"] == 2
    assert resp["deleted_rewards"] == 53
    assert client.get("/api/rewards").json()["rewards"] == []


def test_payment_initiate_and_confirm(client, monkeypatch):
    import tokenhunt.api.routes as routes

    class _Stub:
        def __init__(self):
            self.reference = None

        def get_payment_status(self, transaction_id):
            return PaymentStatus(transaction_id=transaction_id, reference=self.reference, status="mined")

    stub = _Stub()
    monkeypatch.setattr(routes, "_payment_client", lambda: stub)

    ref = client.post("/api/payments/initiate", json={"amount": "5"}).json()
    stub.reference = ref["id"]

    ok = client.post("/api/payments/confirm", json={"reference": ref["id"], "transaction_id": "tx-1"})
    again = client.post("/api/payments/confirm", json={"reference": ref["id"], "transaction_id": "tx-1"})

    assert ok.status_code == 200
    assert ok.json()["success"] is True
    assert again.status_code == 404


def test_health(client):
    assert client.get("/api/health").json()["status"] == "ok"
