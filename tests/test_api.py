from fastapi.testclient import TestClient

from vnpit.api.http import app as api_app
from vnpit.config import get_settings


def test_health_includes_build_meta(monkeypatch):
    monkeypatch.setenv("BUILD_VERSION", "1.2.3")
    monkeypatch.setenv("BUILD_SHA", "abc123")
    monkeypatch.setenv("VNPIT_FILE_LOGGING", "false")
    get_settings.cache_clear()
    with TestClient(api_app) as client:
        body = client.get("/health").json()
    assert body["ok"] is True
    assert body["build"] == {"version": "1.2.3", "sha": "abc123"}
    assert body["regimes"] == ["pre_2020", "pre_2026", "2026"]
    get_settings.cache_clear()


def test_compute_monthly_salary():
    with TestClient(api_app) as client:
        resp = client.post("/tax/compute", json={"gross_income": 20000000, "reference_date": "2026-03-01"})
    body = resp.json()
    assert resp.status_code == 200
    assert body["regime"] == "2026"
    assert body["insurance_deduction"] == 2100000
    assert body["taxable_income"] == 2400000
    assert body["tax_amount"] == 120000
    assert body["net_income"] == 17780000
    assert body["effective_rate"] == 0.006
    assert body["tax_breakdown"][0]["rate"] == 0.05


def test_compute_rejects_negative_income():
    with TestClient(api_app) as client:
        resp = client.post("/tax/compute", json={"gross_income": -1, "reference_date": "2026-03-01"})
    assert resp.status_code == 422
    assert resp.json() == {"ok": False, "issues": ["negative_gross_income"]}


def test_early_reference_date_is_covered():
    with TestClient(api_app) as client:
        resp = client.post("/tax/compute", json={"gross_income": 20000000, "reference_date": "2019-12-31"})
    assert resp.status_code == 200
    assert resp.json()["regime"] == "pre_2020"
    assert resp.json()["tax_amount"] == 640000


def test_gross_from_net():
    with TestClient(api_app) as client:
        resp = client.post("/tax/gross-from-net", json={"target_net": 17780000, "reference_date": "2026-03-01"})
    body = resp.json()
    assert resp.status_code == 200
    assert body["converged"] is True
    assert body["gross"] == 20000000
    assert body["result"]["tax_amount"] == 120000


def test_gross_from_net_reports_non_convergence(monkeypatch):
    monkeypatch.setenv("VNPIT_SOLVER_MAX_ITERATIONS", "1")
    monkeypatch.setenv("VNPIT_SOLVER_TOLERANCE", "0")
    get_settings.cache_clear()
    with TestClient(api_app) as client:
        resp = client.post("/tax/gross-from-net", json={"target_net": 17780000, "reference_date": "2026-03-01"})
    body = resp.json()
    assert resp.status_code == 422
    assert body["converged"] is False
    assert body["target_net"] == 17780000
    assert body["best_gross"] > 0
    get_settings.cache_clear()


def test_multi_source():
    payload = {
        "person": {"reference_date": "2026-03-01"},
        "sources": [
            {"type": "salary", "amount": 20000000, "frequency": "monthly"},
            {"type": "inheritance", "amount": 900000000, "is_from_family": True},
            {"type": "dividend", "amount": 10000000},
        ],
    }
    with TestClient(api_app) as client:
        resp = client.post("/tax/multi-source", json=payload)
    body = resp.json()
    assert resp.status_code == 200
    assert body["total_tax"] == 1440000 + 500000
    assert body["per_category_breakdown"]["inheritance"]["tax"] == 0


def test_regimes_for_reference_date():
    with TestClient(api_app) as client:
        body = client.get("/regimes", params={"reference_date": "2026-03-01"}).json()
        listing = client.get("/regimes").json()
    assert body["salary"]["code"] == "2026"
    assert body["by_category"]["dividend"] == "pre_2026"
    assert body["by_category"]["freelance"] == "2026"
    assert [r["code"] for r in listing["regimes"]] == ["pre_2020", "pre_2026", "2026"]


def test_special_income_endpoints():
    with TestClient(api_app) as client:
        severance = client.post(
            "/tax/severance",
            json={"type": "severance", "total_amount": 300000000, "average_salary": 20000000},
        ).json()
        foreigner = client.post(
            "/tax/foreigner",
            json={
                "nationality": "SG",
                "reference_date": "2026-03-01",
                "gross_income": 50000000,
                "days_in_vietnam": 90,
            },
        ).json()
        household = client.post(
            "/tax/household-business",
            json={
                "reference_date": "2025-06-01",
                "businesses": [{"category": "services", "monthly_revenue": 10000000}],
            },
        ).json()
        crypto = client.post(
            "/tax/digital-assets",
            json={"transactions": [{"trade_date": "2026-07-01", "type": "sell", "total_value": 100000000}]},
        ).json()
    assert severance["tax_amount"] == 10000000
    assert foreigner["residency_status"] == "non_resident"
    assert foreigner["tax_amount"] == 10000000
    assert foreigner["treaty_country"] == "Singapore"
    assert household["total_pit"] == 2400000
    assert household["total_vat"] == 6000000
    assert crypto["total_tax"] == 100000


def test_inheritance_gift_endpoint():
    payload = {
        "transaction_type": "gift",
        "relationship": "non_relative",
        "reference_date": "2026-03-01",
        "assets": [{"type": "cash", "value": 50000000}, {"type": "jewelry", "value": 20000000}],
    }
    with TestClient(api_app) as client:
        resp = client.post("/tax/inheritance-gift", json=payload)
        empty = client.post("/tax/inheritance-gift", json={**payload, "assets": []})
    body = resp.json()
    assert resp.status_code == 200
    assert body["tax_amount"] == 6000000
    assert body["declaration_deadline"] == "2026-03-11"
    assert empty.status_code == 422
    assert empty.json()["issues"] == ["no_assets"]


def test_household_income_method_endpoint():
    with TestClient(api_app) as client:
        body = client.post(
            "/tax/household-business",
            json={
                "reference_date": "2026-03-01",
                "tax_method": "income",
                "businesses": [
                    {"category": "services", "monthly_revenue": 100000000, "monthly_expenses": 60000000}
                ],
            },
        ).json()
    assert body["tax_method"] == "income"
    assert body["total_pit"] == 72000000
