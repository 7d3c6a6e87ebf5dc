from fastapi.testclient import TestClient

from app.api.routes import dashboard as dashboard_routes
from app.domain.models import InstrumentType
from app.main import app
from app.services.sheet_client import SnapshotFetchError

client = TestClient(app)

SNAPSHOT = {
    "assets": [
        {"name": "AAA", "type": InstrumentType.STOCKS.value, "shares": 10, "currentPrice": 1500, "avgPurchasePrice": 1000},
        {"name": "Savings", "type": InstrumentType.CASH.value, "value": 1000},
    ],
    "history": [
        {"date": "2024/01", InstrumentType.CASH.value: 900, "AAA": 14000},
        {"date": "2024/02", InstrumentType.CASH.value: 1000, "AAA": 15000},
    ],
}


class _FakeClient:
    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error
        self.closed = False

    def fetch_snapshot(self):
        if self.error is not None:
            raise self.error
        return self.payload

    def close(self):
        self.closed = True


def test_root_and_health():
    assert client.get("/").json()["service"] == "kura"
    body = client.get("/health/").json()
    assert body["status"] == "ok"
    assert "source_configured" in body


def test_get_dashboard_fetches_and_derives(monkeypatch):
    fake = _FakeClient(payload=SNAPSHOT)
    monkeypatch.setattr(dashboard_routes, "get_client", lambda: fake)

    resp = client.get("/api/v1/dashboard/", params={"grouping": "individual", "view": "instrument"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["summary"]["total_assets"] == 16000
    assert body["grouping"] == "individual"
    assert len(body["groups"]) == 2
    assert body["trend"] == {"view": "instrument", "series_keys": ["AAA"]}
    assert fake.closed


def test_get_dashboard_fetch_failure_is_502(monkeypatch):
    fake = _FakeClient(error=SnapshotFetchError("failed to fetch data (HTTP status: 500)", status_code=500))
    monkeypatch.setattr(dashboard_routes, "get_client", lambda: fake)

    resp = client.get("/api/v1/dashboard/")
    assert resp.status_code == 502
    assert "500" in resp.json()["detail"]


def test_get_dashboard_malformed_snapshot_is_422(monkeypatch):
    monkeypatch.setattr(dashboard_routes, "get_client", lambda: _FakeClient(payload={"assets": "nope"}))

    resp = client.get("/api/v1/dashboard/")
    assert resp.status_code == 422
    assert "expected format" in resp.json()["detail"]


def test_get_dashboard_without_source_is_503(monkeypatch):
    def _no_client():
        raise RuntimeError("KURA_SHEET_SCRIPT_URL is not set")

    monkeypatch.setattr(dashboard_routes, "get_client", _no_client)
    resp = client.get("/api/v1/dashboard/")
    assert resp.status_code == 503


def test_post_dashboard_with_focus():
    resp = client.post(
        "/api/v1/dashboard/",
        json={"snapshot": SNAPSHOT, "grouping": "name", "focus": "AAA"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert [g["group_name"] for g in body["groups"]] == ["AAA", "Savings"]
    assert body["trend"] == {"view": "instrument", "series_keys": ["AAA"]}
    assert body["history"]["processed_points"][-1]["純資産"] == 1000


def test_config_endpoint():
    body = client.get("/api/v1/dashboard/config").json()
    assert body["default_grouping"] in {"individual", "name", "owner"}
    assert body["trend_top_n"] >= 0
