"""HTTP tests for the invoicing API (in-process TestClient, SQLite in memory)."""

import pytest
from fastapi.testclient import TestClient

from backend.app import create_app


@pytest.fixture
def client(engine, clock):
    app = create_app(engine, clock=clock, configure_logging=False)
    return TestClient(app)


@pytest.fixture
def customer_id(client):
    response = client.post("/api/v1/customers", json={"name": "Kunde GmbH", "country_code": "de"})
    assert response.status_code == 201
    return response.json()["id"]


INVOICE_BODY = {
    "discount_amount": "10",
    "tax_rate": "10",
    "items": [
        {"description": "Consulting", "hours": 2, "rate": 100},
        {"description": "Parking", "quantity": 1, "unit_price": "10.00"},
    ],
}


def create_invoice(client, customer_id, **overrides):
    body = {**INVOICE_BODY, "customer_id": customer_id, **overrides}
    response = client.post("/api/v1/invoices", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def test_health_endpoints(client) -> None:
    assert client.get("/health/live").json() == {"status": "OK"}
    ready = client.get("/health/ready").json()
    assert ready["db"] == "OK"
    assert ready["status"] == "OK"


def test_calculate_preview(client) -> None:
    response = client.post(
        "/api/v1/invoices/calculate",
        json={"items": [{"description": "Design", "quantity": 1, "unit_price": 100, "taxes": [{"percent": 20}, {"percent": 5}]}]},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["tax_mode"] == "line"
    assert body["tax_amount"] == "25.00"
    assert body["total"] == "125.00"
    assert [row["percent"] for row in body["tax_summary"]] == ["5.00", "20.00"]


def test_calculate_rejects_negative_values(client) -> None:
    response = client.post(
        "/api/v1/invoices/calculate",
        json={"items": [{"description": "Refund", "quantity": -1, "unit_price": 10}]},
    )

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "validation_error"


def test_invoice_crud_roundtrip(client, customer_id) -> None:
    created = create_invoice(client, customer_id)

    assert created["status"] == "draft"
    assert created["invoice_number"].startswith("DRAFT-")
    assert created["total"] == "220.00"
    assert created["customer"]["country_code"] == "DE"

    fetched = client.get(f"/api/v1/invoices/{created['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["items"][0]["description"] == "Consulting"

    updated = client.put(f"/api/v1/invoices/{created['id']}", json={"notes": "Thanks"})
    assert updated.status_code == 200
    assert updated.json()["notes"] == "Thanks"

    listing = client.get("/api/v1/invoices").json()
    assert [row["id"] for row in listing] == [created["id"]]

    assert client.delete(f"/api/v1/invoices/{created['id']}").status_code == 204
    missing = client.get(f"/api/v1/invoices/{created['id']}")
    assert missing.status_code == 404
    assert missing.json()["detail"]["error"] == "invoice_not_found"


def test_unknown_customer_is_404(client) -> None:
    response = client.post("/api/v1/invoices", json={**INVOICE_BODY, "customer_id": "missing"})

    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "customer_not_found"


def test_publish_share_and_unpublish(client, customer_id) -> None:
    created = create_invoice(client, customer_id)
    public_url = f"/api/v1/public/invoices/{created['share_token']}"
    assert client.get(public_url).status_code == 404

    published = client.post(f"/api/v1/invoices/{created['id']}/publish")
    assert published.status_code == 200
    assert published.json()["invoice_number"] == "INV-2026-001"
    assert published.json()["share_url"].endswith(public_url)

    shared = client.get(public_url)
    assert shared.status_code == 200
    assert shared.json()["status"] == "sent"

    immutable = client.put(f"/api/v1/invoices/{created['id']}", json={"tax_rate": "0"})
    assert immutable.status_code == 409
    assert immutable.json()["detail"]["error"] == "invoice_immutable"

    rotated = client.post(f"/api/v1/invoices/{created['id']}/unpublish").json()["share_token"]
    assert rotated != created["share_token"]
    assert client.get(public_url).status_code == 404


def test_publish_without_items_is_rejected(client, customer_id) -> None:
    created = create_invoice(client, customer_id, items=[])

    response = client.post(f"/api/v1/invoices/{created['id']}/publish")

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "publish_validation_failed"


def test_next_number_and_duplicate(client, customer_id) -> None:
    assert client.get("/api/v1/invoices/next-number").json() == {"invoice_number": "INV-2026-001"}
    created = create_invoice(client, customer_id, invoice_number="INV-2026-001")

    conflict = client.post("/api/v1/invoices", json={**INVOICE_BODY, "customer_id": customer_id, "invoice_number": "INV-2026-001"})
    assert conflict.status_code == 409

    copy = client.post(f"/api/v1/invoices/{created['id']}/duplicate")
    assert copy.status_code == 201
    assert copy.json()["invoice_number"].startswith("DRAFT-")
    assert copy.json()["total"] == created["total"]


def test_exports(client, customer_id) -> None:
    created = create_invoice(client, customer_id)
    client.post(f"/api/v1/invoices/{created['id']}/publish")

    xml = client.get(f"/api/v1/invoices/{created['id']}/ubl.xml")
    pdf = client.get(f"/api/v1/invoices/{created['id']}/pdf")

    assert xml.status_code == 200
    assert xml.headers["content-type"].startswith("application/xml")
    assert b"<cbc:ID>INV-2026-001</cbc:ID>" in xml.content
    assert pdf.status_code == 200
    assert pdf.content.startswith(b"%PDF")


def test_rate_modifier_endpoints(client) -> None:
    modifiers = client.get("/api/v1/rate-modifiers").json()
    assert [(m["id"], m["is_default"]) for m in modifiers] == [("standard", True)]

    created = client.post("/api/v1/rate-modifiers", json={"name": "Weekend", "multiplier": "1.25"})
    assert created.status_code == 201

    blocked = client.delete("/api/v1/rate-modifiers/standard")
    assert blocked.status_code == 409
    assert blocked.json()["detail"]["error"] == "default_rate_modifier"

    promoted = client.put(f"/api/v1/rate-modifiers/{created.json()['id']}", json={"is_default": True})
    assert promoted.json()["is_default"] is True
    assert client.delete("/api/v1/rate-modifiers/standard").status_code == 204

    invalid = client.post("/api/v1/rate-modifiers", json={"name": "Free", "multiplier": "0"})
    assert invalid.status_code == 400


def test_customer_endpoints(client, customer_id) -> None:
    create_invoice(client, customer_id)

    in_use = client.delete(f"/api/v1/customers/{customer_id}")
    assert in_use.status_code == 409

    renamed = client.put(f"/api/v1/customers/{customer_id}", json={"name": "Kunde AG"})
    assert renamed.json()["name"] == "Kunde AG"
    assert client.get("/api/v1/customers/missing").status_code == 404


def test_settings_read_and_patch(client, customer_id) -> None:
    assert client.get("/api/v1/settings").json()["mileageRate"] == "0.70"

    patched = client.patch("/api/v1/settings", json={"mileageRate": "0.30", "defaultPricesIncludeTax": False})
    assert patched.json()["mileageRate"] == "0.30"
    assert patched.json()["defaultPricesIncludeTax"] == "false"

    created = create_invoice(
        client,
        customer_id,
        discount_amount=None,
        tax_rate=None,
        items=[{"description": "Drive", "hours": 1, "rate": 0, "distance": 100}],
    )
    assert float(created["total"]) == 30.0


def test_metrics_endpoint(client, customer_id) -> None:
    create_invoice(client, customer_id)

    snapshot = client.get("/api/v1/metrics").json()

    assert snapshot["invoices_created_total"]["count"] == 1
    assert snapshot["invoice_calculation_ms"]["count"] >= 1
