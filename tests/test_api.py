import time

import jwt
import pytest
from flask import Flask

from sellerdash import api
from sellerdash.auth import AuthService
from sellerdash.config import Settings


def test_chart_data_defaults_to_trailing_window(flask_client):
    rv = flask_client.get("/api/sales/chart-data/api-store")
    assert rv.status_code == 200
    js = rv.get_json()
    assert js["success"] is True
    assert js["range"]["granularity"] == "month"
    assert js["range"]["startDate"].endswith("-01")
    assert js["summary"]["units"] == 192260
    assert js["summary"]["sales"] == 18657478
    labels = [b["label"] for b in js["data"] if b["label"]]
    assert len(labels) == 13
    assert js["ticks"] == [b["index"] for b in js["data"] if b["label"]]
    assert sorted(int(i) for i in js["labels"]) == js["ticks"]
    assert set(js["yAxisConfig"]) == {"unitsConfig", "salesConfig"}


def test_chart_data_hourly_range(flask_client):
    rv = flask_client.get("/api/sales/chart-data/api-store?granularity=hour&startDate=2025-01-01&endDate=2025-01-01")
    assert rv.status_code == 200
    js = rv.get_json()
    assert len(js["data"]) == 24
    assert js["data"][0]["hour"] == 0
    assert "lastYearUnits" in js["data"][0]
    assert sum(b["units"] for b in js["data"]) == 192260


def test_chart_data_is_stable_across_calls(flask_client):
    url = "/api/sales/chart-data/api-store?granularity=day&startDate=2025-01-01&endDate=2025-01-31"
    assert flask_client.get(url).get_json()["data"] == flask_client.get(url).get_json()["data"]


@pytest.mark.parametrize("query", [
    "granularity=yearly",
    "startDate=2025-01-01",
    "startDate=not-a-date&endDate=2025-01-01",
    "granularity=day&startDate=2025-02-01&endDate=2025-01-01",
    "granularity=day&startDate=2000-01-01&endDate=2025-01-01",
])
def test_chart_data_bad_input_is_400(flask_client, query):
    rv = flask_client.get(f"/api/sales/chart-data/api-store?{query}")
    assert rv.status_code == 400
    js = rv.get_json()
    assert js["success"] is False
    assert js["error"]


def test_compare_endpoint(flask_client):
    rv = flask_client.get("/api/sales/compare/api-store?dimension=week")
    assert rv.status_code == 200
    js = rv.get_json()
    assert [b["label"] for b in js["data"]] == ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    assert [c["key"] for c in js["compare"]["columns"]] == ["current", "lastWeek", "sameWeekLastYear"]

    assert flask_client.get("/api/sales/compare/api-store?dimension=quarter").status_code == 400


def test_generate_is_stateless(flask_client):
    body = {
        "storeId": "generate-only", "totalUnits": 240, "totalSales": 9999,
        "granularity": "hour", "rangeStart": "2025-06-01", "rangeEnd": "2025-06-01",
    }
    rv = flask_client.post("/api/sales/generate", json=body)
    assert rv.status_code == 200
    js = rv.get_json()
    assert js["summary"]["units"] == 240
    assert js["summary"]["sales"] == 9999
    assert js["yAxisConfig"]["unitsConfig"]["domain"] == [0, 750]

    assert flask_client.get("/api/sales/admin/time-series/generate-only?granularity=hour").status_code == 404


def test_generate_rejects_bad_body(flask_client):
    rv = flask_client.post("/api/sales/generate", json={"rangeStart": "2025-02-01", "rangeEnd": "2025-01-01"})
    assert rv.status_code == 400
    assert rv.get_json()["success"] is False
    assert flask_client.post("/api/sales/generate", json={}).status_code == 400


def test_y_axis_endpoint(flask_client):
    rv = flask_client.get("/api/sales/y-axis?maxUnits=0&maxSales=0&granularity=day")
    js = rv.get_json()
    assert js["data"]["unitsConfig"] == {"ticks": [0, 2500, 5000, 7500], "domain": [0, 7500]}
    rv = flask_client.get("/api/sales/y-axis?maxUnits=20000&maxSales=0")
    assert rv.get_json()["data"]["unitsConfig"]["ticks"] == [0, 8000, 16000, 24000]
    assert flask_client.get("/api/sales/y-axis?maxUnits=lots").status_code == 400


def test_admin_regenerate_then_read_and_delete(flask_client):
    rv = flask_client.post("/api/sales/admin/time-series/generate/admin-store")
    assert rv.status_code == 200
    js = rv.get_json()
    assert js["message"]
    assert set(js["data"]) == {"hour", "day", "week", "month"}

    rv = flask_client.get("/api/sales/admin/time-series/admin-store?granularity=day")
    assert rv.status_code == 200
    stored = rv.get_json()["data"]
    assert stored["request"]["storeId"] == "admin-store"
    assert stored["buckets"]

    rv = flask_client.delete("/api/sales/admin/time-series/admin-store")
    assert rv.status_code == 200
    assert flask_client.get("/api/sales/admin/time-series/admin-store?granularity=day").status_code == 404


@pytest.fixture()
def secured_client():
    settings = Settings(disable_auth=False, jwt_secret="secret")
    server = Flask("secured")
    AuthService(settings).init_app(server)
    server.register_blueprint(api.bp)
    return server.test_client(), settings


def _token(settings, role):
    payload = {"sub": "u@example.com", "role": role, "exp": int(time.time()) + 60}
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


def test_admin_routes_require_admin_role(secured_client):
    client, settings = secured_client
    url = "/api/sales/admin/time-series/generate/secure-store"

    assert client.post(url).status_code == 401

    seller = {"Authorization": f"Bearer {_token(settings, 'Seller')}"}
    rv = client.post(url, headers=seller)
    assert rv.status_code == 403
    assert rv.get_json()["success"] is False

    # Sellers can still read their charts
    assert client.get("/api/sales/chart-data/secure-store?granularity=hour", headers=seller).status_code == 200

    admin = {"Authorization": f"Bearer {_token(settings, 'Administrator')}"}
    assert client.post(url, headers=admin).status_code == 200
