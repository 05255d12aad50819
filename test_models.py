from dataclasses import FrozenInstanceError
from decimal import Decimal

import pytest

from models import DecodeError, PurchaseItem, parse_receipt


def test_parse_receipt_full_document():
    receipt = parse_receipt({
        "retailer": "Walgreens",
        "purchaseDate": "2022-01-02",
        "purchaseTime": "08:13",
        "total": "2.65",
        "items": [
            {"shortDescription": "Pepsi - 12-oz", "price": "1.25"},
            {"shortDescription": "Dasani", "price": "1.40"}
        ]
    })
    assert receipt.retailer == "Walgreens"
    assert receipt.purchase_date == "2022-01-02"
    assert receipt.purchase_time == "08:13"
    assert receipt.total == Decimal("2.65")
    assert receipt.items == (PurchaseItem("Pepsi - 12-oz", Decimal("1.25")),
                             PurchaseItem("Dasani", Decimal("1.40")))


def test_parse_receipt_missing_fields_take_zero_values():
    receipt = parse_receipt({"items": [{}]})
    assert receipt.retailer == ""
    assert receipt.purchase_date is None
    assert receipt.purchase_time is None
    assert receipt.total == Decimal("0")
    assert receipt.items == (PurchaseItem("", Decimal("0")),)


def test_parse_receipt_null_document_is_empty_receipt():
    assert parse_receipt(None) == parse_receipt({})


def test_parse_receipt_amount_range():
    assert parse_receipt({"total": "1e308"}).total == Decimal("1e308")
    assert parse_receipt({"total": "0e999999999"}).total == Decimal("0")


def test_receipt_is_immutable():
    receipt = parse_receipt({"retailer": "Target"})
    with pytest.raises(FrozenInstanceError):
        receipt.retailer = "Walmart"


@pytest.mark.parametrize("payload, message", [
    ([], "Error: receipt must be a JSON object"),
    ("Target", "Error: receipt must be a JSON object"),
    ({"retailer": 5}, "Error: invalid retailer format"),
    ({"items": "Pepsi"}, "Error: invalid receipt items list format"),
    ({"items": ["Pepsi"]}, "Error: invalid receipt item format"),
    ({"items": [{"shortDescription": 12}]}, "Error: invalid shortDescription format"),
    ({"items": [{"price": 1.25}]}, "Error: invalid price format"),
    ({"total": 9}, "Error: invalid total format"),
    ({"total": "nine"}, "Error: invalid total (nine)"),
    ({"total": "-Infinity"}, "Error: invalid total (-Infinity)"),
    ({"total": "1e309"}, "Error: invalid total (1e309)"),
    ({"items": [{"price": "-1e999999999"}]}, "Error: invalid price (-1e999999999)"),
])
def test_parse_receipt_rejects(payload, message):
    with pytest.raises(DecodeError) as e:
        parse_receipt(payload)
    assert str(e.value) == message
