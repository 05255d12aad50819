from decimal import Decimal

import pytest

import scoring
from models import PurchaseItem, Receipt
from scoring import (calculate_points, score_items, score_purchase_date, score_purchase_time,
                     score_retailer, score_total, ScoringError)


def make_receipt(retailer="", date=None, time=None, items=(), total="0"):
    return Receipt(
        retailer=retailer,
        purchase_date=date,
        purchase_time=time,
        items=tuple(PurchaseItem(description, Decimal(price)) for description, price in items),
        total=Decimal(total),
    )


@pytest.mark.parametrize("retailer, expected", [
    ("Target", 6),
    ("M&M Corner Market", 14),
    ("  ", 0),
    ("", 0),
    ("Café 7-Eleven", 10),
    ("Señor Taco", 8),
])
def test_score_retailer_counts_ascii_alphanumerics(retailer, expected):
    assert score_retailer(retailer) == expected


def test_score_retailer_filter_failure(monkeypatch):
    monkeypatch.setattr(scoring, "RETAILER_NAME_FILTER", "(")
    with pytest.raises(ScoringError):
        score_retailer("Target")


@pytest.mark.parametrize("total, expected", [
    ("100.00", 75),
    ("9.00", 75),
    ("1.25", 25),
    ("0.75", 25),
    ("35.35", 0),
    ("2.65", 0),
    ("0.00", 0),
    ("-4.00", 0),
    ("1.2500001", 0),
    ("1e30", 75),
    ("1e308", 75),
    ("1000000000000000000000000000000.25", 25),
    ("1000000000000000000000000000000.10", 0),
    ("2.5e-1", 25),
])
def test_score_total(total, expected):
    assert score_total(Decimal(total)) == expected


@pytest.mark.parametrize("count, expected", [(0, 0), (1, 0), (2, 5), (3, 5), (4, 10), (7, 15)])
def test_score_items_pairs(count, expected):
    items = make_receipt(items=[("ab", "1.00")] * count).items
    assert score_items(items) == expected


@pytest.mark.parametrize("description, price, expected", [
    ("Emils Cheese Pizza", "12.25", 3),
    ("   Klarbrunn 12-PK 12 FL OZ  ", "12.00", 3),
    ("Dasani", "1.40", 1),
    ("Gatorade", "2.25", 0),
    ("", "5.00", 1),
    ("   ", "5.01", 2),
    ("abc", "0.00", 0),
    ("abc", "-10.00", -2),
    ("abc", "-1.25", 0),
    ("abc", "5.0000000000000000000000000000001", 2),
    ("abc", "1e30", 200000000000000000000000000000),
    ("Cré", "10.00", 0),
    ("Crème", "10.00", 2),
    ("  Été  ", "10.00", 0),
])
def test_score_items_description_bonus(description, price, expected):
    items = make_receipt(items=[(description, price)]).items
    assert score_items(items) == expected


@pytest.mark.parametrize("date, expected", [
    ("2022-01-01", 6),
    ("2022-01-02", 0),
    ("2022-03-31", 6),
    ("2023-02-29", 0),
    ("2022-13-01", 0),
    ("2022-1-1", 0),
    ("2022-01-1", 0),
    ("22-01-01", 0),
    (" 2022-01-01", 0),
    ("not a date", 0),
    ("", 0),
    (None, 0),
])
def test_score_purchase_date(date, expected):
    assert score_purchase_date(date) == expected


@pytest.mark.parametrize("time, expected", [
    ("14:33", 10),
    ("14:01", 10),
    ("15:00", 10),
    ("15:59", 10),
    ("14:00", 0),
    ("16:00", 0),
    ("13:59", 0),
    ("08:13", 0),
    ("25:00", 0),
    ("14-33", 0),
    ("14:5", 0),
    ("15:7", 0),
    ("014:30", 0),
    (None, 0),
])
def test_score_purchase_time(time, expected):
    assert score_purchase_time(time) == expected


def test_bad_date_does_not_suppress_time_bonus():
    receipt = make_receipt(date="2022-02-30", time="14:30")
    assert calculate_points(receipt) == 10


def test_calculate_points_sums_all_rules():
    receipt = make_receipt(
        retailer="Target",
        date="2022-01-01",
        time="14:33",
        items=[("Emils Cheese Pizza", "12.25"), ("Gatorade", "2.25"), ("Dasani", "1.40")],
        total="100.00",
    )
    # 6 retailer + 75 total + 5 pair + 3 + 1 descriptions + 6 odd day + 10 afternoon
    assert calculate_points(receipt) == 106


def test_calculate_points_is_deterministic():
    receipt = make_receipt(retailer="M&M Corner Market", date="2022-03-20", time="14:33",
                           items=[("Gatorade", "2.25")] * 4, total="9.00")
    results = [calculate_points(receipt) for _ in range(10)]
    assert results == [109] * 10
