import base64
import re

from app.config import Settings, get_settings
from app.main import app
from app.models.policy import PolicyRecord
from tests.payloads import policy_body

NUMBER = re.compile(r"^WEC-FL-\d{4}-\d{9}$")


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}
    assert r.headers["X-Request-ID"]


def test_create_policy_uploads_pdf(client, storage):
    r = client.post("/api/policies", json=policy_body())
    assert r.status_code == 201, r.text
    body = r.json()
    assert NUMBER.match(body["policyNumber"])
    key = f"policies/2025/10/{body['policyNumber']}.pdf"
    assert body["pdfUrl"] == f"memory://{key}"
    assert storage.get_bytes(key).startswith(b"%PDF")
    assert storage.content_type(key) == "application/pdf"


def test_create_policy_keeps_given_number(client):
    r = client.post("/api/policies", json=policy_body(policyNumber="WEC-FL-2025-555555555"))
    assert r.status_code == 201
    assert r.json()["policyNumber"] == "WEC-FL-2025-555555555"


def test_get_policy(client):
    created = client.post("/api/policies", json=policy_body()).json()
    r = client.get(f"/api/policies/{created['id']}")
    assert r.status_code == 200
    body = r.json()
    assert body["policyNumber"] == created["policyNumber"]
    assert body["termMonths"] == 84
    assert body["effectiveDate"] == "2025-10-06"
    assert body["pdfUrl"] == created["pdfUrl"]


def test_get_unknown_policy_is_404(client):
    assert client.get("/api/policies/does-not-exist").status_code == 404


def test_dry_run_returns_data_url_and_persists_nothing(client, db_session, storage):
    before = set(storage.keys())
    r = client.post("/api/policies", params={"dryRun": "true"}, json=policy_body())
    assert r.status_code == 201
    body = r.json()
    assert body["id"] == "dry-run"
    prefix = "data:application/pdf;base64,"
    assert body["pdfUrl"].startswith(prefix)
    assert base64.b64decode(body["pdfUrl"][len(prefix):]).startswith(b"%PDF")
    assert db_session.query(PolicyRecord).count() == 0
    assert set(storage.keys()) == before


def test_missing_static_pdf_rolls_back_row(client, db_session, storage, settings):
    storage.delete(settings.PDF_TERMS_KEY)
    r = client.post("/api/policies", json=policy_body())
    assert r.status_code == 502
    assert settings.PDF_TERMS_KEY in r.json()["detail"]
    assert db_session.query(PolicyRecord).count() == 0


def test_invalid_payload_is_422(client):
    body = policy_body()
    body["owner"]["email"] = "not-an-email"
    assert client.post("/api/policies", json=body).status_code == 422

    body = policy_body()
    body["coverage"]["termMonths"] = 60
    assert client.post("/api/policies", json=body).status_code == 422


def test_unknown_product_version_strict_is_422(client):
    app.dependency_overrides[get_settings] = lambda: Settings(STRICT_PRODUCT_VERSIONS=True)
    r = client.post("/api/policies", json=policy_body(productVersion="XYZ-UNKNOWN"))
    assert r.status_code == 422
    assert "XYZ-UNKNOWN" in r.json()["detail"]


def test_unknown_product_version_lenient_succeeds(client):
    r = client.post("/api/policies", json=policy_body(productVersion="XYZ-UNKNOWN"))
    assert r.status_code == 201


def test_issued_pdf_is_served_from_files(client):
    created = client.post("/api/policies", json=policy_body()).json()
    key = created["pdfUrl"].removeprefix("memory://")
    r = client.get(f"/files/{key}")
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert client.get("/files/policies/none.pdf").status_code == 404
