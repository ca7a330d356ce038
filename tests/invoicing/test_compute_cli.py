"""Tests for the offline totals CLI."""

import json

from tools.invoicing.compute import compute_from_payload, main

PAYLOAD = {
    "items": [
        {"description": "Holiday shift", "hours": 2.5, "rate": 50, "rate_modifier_id": "holiday", "distance": 30},
        {"description": "Parts", "quantity": 2, "unit_price": "10.00", "taxes": [{"percent": 7}]},
    ],
    "rate_modifiers": {"holiday": "1.5"},
    "mileage_rate": "0.70",
}


def test_compute_from_payload_infers_line_mode() -> None:
    totals = compute_from_payload(PAYLOAD)

    assert totals.tax_mode.value == "line"
    assert str(totals.subtotal) == "228.50"
    assert str(totals.tax_amount) == "1.40"
    assert str(totals.total) == "229.90"


def test_main_prints_totals_json(tmp_path, capsys) -> None:
    source = tmp_path / "invoice.json"
    source.write_text(json.dumps({**PAYLOAD, "tax_mode": "invoice", "tax_rate": 10}), encoding="utf-8")

    assert main([str(source)]) == 0

    output = json.loads(capsys.readouterr().out)
    assert output["tax_mode"] == "invoice"
    assert output["subtotal"] == "228.50"
    assert output["tax_amount"] == "22.85"
    assert output["total"] == "251.35"
