import pytest

from loan_ledger_web.app import CHART_HEIGHT, CHART_WIDTH, app, balance_chart_points, parse_form_list

FORM = {
    "principal": "100000",
    "rate": "5",
    "term": "12",
    "start_date": "2024-01-01",
    "shift": "following",
    "strategy": "installment",
    "holidays": "2024-02-10:2024-02-17:Spring Festival",
    "rate_changes": "2024-04-01:7",
    "repayments": "2024-03-15:20000",
    "lang": "en",
    "show_segments": "1",
}


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


def test_parse_form_list():
    assert parse_form_list("a, b\nc,,") == ["a", "b", "c"]
    assert parse_form_list(["x ", ""]) == ["x"]
    assert parse_form_list("") == []


def test_balance_chart_points_scale_to_the_canvas():
    series = [{"balance": 50.0}, {"balance": 0.0}]
    points = balance_chart_points(100, series, width=200, height=100)
    assert points == "0.0,0.0 100.0,50.0 200.0,100.0"


def test_balance_chart_points_empty_series():
    assert balance_chart_points(100, []) == ""


def test_index_renders_form(client):
    response = client.get("/")
    assert response.status_code == 200
    assert b"Loan Ledger" in response.data


def test_post_renders_schedule(client):
    response = client.post("/", data=FORM)
    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert "Paid off" in body
    assert 'class="INSTALLMENT"' in body
    assert 'class="SEGMENT"' in body
    assert 'class="REPAYMENT"' in body
    assert 'class="balance-chart"' in body
    assert f'width="{CHART_WIDTH}" height="{CHART_HEIGHT}"' in body
    assert "<polyline points=\"0.0,0.0 " in body


def test_post_hides_breakdown(client):
    form = dict(FORM)
    form.pop("show_segments")
    body = client.post("/", data=form).get_data(as_text=True)
    assert 'class="SEGMENT"' not in body


def test_post_reports_errors(client):
    form = dict(FORM, principal="abc")
    body = client.post("/", data=form).get_data(as_text=True)
    assert 'class="error"' in body
    assert "Invalid amount" in body


def test_api_schedule(client):
    payload = dict(FORM, repayments=["2024-03-15:20000"])
    response = client.post("/api/schedule", json=payload)
    assert response.status_code == 200
    data = response.get_json()
    assert data["summary"]["installments"] == 12
    assert any(row["type"] == "REPAYMENT" for row in data["schedule"])


def test_api_rejects_invalid_input(client):
    response = client.post("/api/schedule", json=dict(FORM, term="0"))
    assert response.status_code == 400
    assert "Tenure" in response.get_json()["error"]
