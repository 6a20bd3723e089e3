import base64
from decimal import Decimal

from app.config import Settings, get_settings
from app.main import app
from tests.payloads import quote_body


def _pdf(b64: str) -> bytes:
    return base64.b64decode(b64)


def test_create_quote(client):
    r = client.post("/api/quotes", json=quote_body())
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["quoteNumber"] == "Q-2025-0001"
    assert body["issueDate"] == "2025-10-06"
    assert body["validUntil"] == "2025-11-05"
    assert Decimal(body["total"]) == Decimal("3425")
    assert _pdf(body["pdfBase64"]).startswith(b"%PDF")


def test_get_quote_regenerates_pdf(client):
    created = client.post("/api/quotes", json=quote_body()).json()
    r = client.get("/api/quotes/Q-2025-0001")
    assert r.status_code == 200
    body = r.json()
    assert body["id"] == created["id"]
    assert body["termMonths"] == 999
    assert Decimal(body["basePrice"]) == Decimal("2800")
    assert body["payload"]["quoteNumber"] == "Q-2025-0001"
    assert _pdf(body["pdfBase64"]).startswith(b"%PDF")


def test_get_unknown_quote_is_404(client):
    assert client.get("/api/quotes/Q-NOPE").status_code == 404


def test_list_quotes_filters_and_pages(client):
    client.post("/api/quotes", json=quote_body(quoteNumber="Q-1"))
    client.post("/api/quotes", json=quote_body(quoteNumber="Q-2", stateCode="TX"))
    client.post("/api/quotes", json=quote_body(quoteNumber="Q-3"))

    all_quotes = client.get("/api/quotes").json()
    assert [q["quoteNumber"] for q in all_quotes] == ["Q-1", "Q-2", "Q-3"]

    fl = client.get("/api/quotes", params={"stateCode": "FL"}).json()
    assert [q["quoteNumber"] for q in fl] == ["Q-1", "Q-3"]

    page = client.get("/api/quotes", params={"limit": 1, "offset": 1}).json()
    assert [q["quoteNumber"] for q in page] == ["Q-2"]


def test_term_defaults_to_lifetime(client):
    body = quote_body()
    body["coverage"].pop("termMonths")
    created = client.post("/api/quotes", json=body)
    assert created.status_code == 201
    assert client.get("/api/quotes/Q-2025-0001").json()["termMonths"] == 999


def test_total_mismatch_strict_is_422(client):
    app.dependency_overrides[get_settings] = lambda: Settings(STRICT_QUOTE_TOTALS=True)
    body = quote_body()
    body["pricing"]["total"] = 1
    r = client.post("/api/quotes", json=body)
    assert r.status_code == 422
    assert client.get("/api/quotes").json() == []


def test_total_mismatch_lenient_is_accepted(client):
    body = quote_body()
    body["pricing"]["total"] = 1
    assert client.post("/api/quotes", json=body).status_code == 201
