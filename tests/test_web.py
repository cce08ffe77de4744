import pytest

from loan_compare_web.app import app

LOAN = {"principal": "1cr", "current_rate": "9", "new_rate": "7.5", "tenure": "25", "tenure_unit": "years"}


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


def test_index_lists_scenarios(client):
    response = client.get("/")
    assert response.status_code == 200
    data = response.get_json()
    assert set(data["scenarios"]) == {"same-tenure", "same-emi", "extra-payment", "combined"}
    assert "combined_balance" in data["scenarios"]["combined"]["fields"]


def test_metrics(client):
    response = client.get("/api/metrics", query_string=LOAN)
    assert response.status_code == 200
    data = response.get_json()
    assert data["status"] == "ok"
    assert data["metrics"]["current_emi"] == pytest.approx(83920, abs=1)
    assert data["metrics"]["new_tenure"] < 300


def test_metrics_with_quarterly_extra_payment(client):
    response = client.get("/api/metrics", query_string={**LOAN, "extra": "30000", "frequency": "quarterly"})
    data = response.get_json()
    assert data["metrics"]["months_with_extra"] < 300


def test_metrics_insufficient_payment(client):
    response = client.get(
        "/api/metrics", query_string={"principal": "1cr", "current_rate": "7", "new_rate": "15", "tenure": "300"}
    )
    assert response.status_code == 200
    data = response.get_json()
    assert data["status"] == "insufficient_payment"
    assert data["metrics"]["current_emi"] == 0
    assert data["error"]


def test_missing_principal_is_rejected(client):
    response = client.get("/api/metrics", query_string={"current_rate": "9", "new_rate": "7.5", "tenure": "300"})
    assert response.status_code == 400
    assert response.get_json()["status"] == "invalid_input"


def test_bad_frequency_is_rejected(client):
    response = client.get("/api/metrics", query_string={**LOAN, "extra": "100", "frequency": "weekly"})
    assert response.status_code == 400


def test_schedule(client):
    response = client.get("/api/schedule", query_string={"principal": "1000000", "rate": "10", "tenure": "12"})
    data = response.get_json()
    assert data["status"] == "ok"
    assert data["months"] == 12
    assert data["truncated"] == 0
    assert data["schedule"][-1]["balance"] == 0.0


def test_schedule_preview_and_full(client):
    query = {"principal": "1cr", "rate": "9", "tenure": "300"}
    preview = client.get("/api/schedule", query_string=query).get_json()
    assert len(preview["schedule"]) == app.config["MAX_SCHEDULE_ROWS"]
    assert preview["truncated"] == 300 - app.config["MAX_SCHEDULE_ROWS"]
    full = client.get("/api/schedule", query_string={**query, "full": "1"}).get_json()
    assert len(full["schedule"]) == 300
    assert full["truncated"] == 0


def test_schedule_with_insufficient_fixed_emi(client):
    response = client.get(
        "/api/schedule", query_string={"principal": "100000", "rate": "12", "tenure": "12", "fixed_emi": "900"}
    )
    data = response.get_json()
    assert data["status"] == "insufficient_payment"
    assert data["schedule"] == []


def test_same_emi_comparison(client):
    response = client.get("/api/comparison/same-emi", query_string=LOAN)
    data = response.get_json()
    assert data["status"] == "ok"
    assert data["scenario"] == "same-emi"
    assert len(data["rows"]) == 300
    assert data["rows"][-1]["modified_balance"] is None
    assert data["rows"][0]["modified_balance"] > 0


def test_unknown_comparison(client):
    response = client.get("/api/comparison/refinance", query_string=LOAN)
    assert response.status_code == 404
