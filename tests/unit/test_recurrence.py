"""Unit tests for recurring payment detection"""

import pytest
from datetime import datetime, timedelta
from types import SimpleNamespace
from fincognia_gateway.domain.recurrence import (
    classify_frequency,
    detect_recurring_patterns,
    monthly_subscription_cost,
    predict_next_payment,
)
from fincognia_gateway.utils.date_utils import to_epoch_millis


def test_six_monthly_payments_on_the_first(make_txn):
    """NETFLIX 499 on the 1st of Jan-Jun (February included)"""
    transactions = [make_txn(datetime(2024, month, 1, 10), -499.0, "NETFLIX") for month in range(1, 7)]

    patterns = detect_recurring_patterns(transactions)

    assert len(patterns) == 1
    pattern = patterns[0]
    assert pattern.merchant == "NETFLIX"
    assert pattern.frequency == "monthly"
    assert pattern.average_amount == 499
    assert pattern.occurrences == 6
    assert pattern.last_payment == to_epoch_millis(datetime(2024, 6, 1, 10))
    assert pattern.next_payment == to_epoch_millis(datetime(2024, 7, 1, 10))


def test_weekly_pattern(make_txn):
    start = datetime(2024, 3, 4, 8)
    transactions = [make_txn(start + timedelta(days=7 * i), -150.0, "Gym") for i in range(5)]

    patterns = detect_recurring_patterns(transactions)

    assert [(p.merchant, p.frequency) for p in patterns] == [("Gym", "weekly")]
    assert patterns[0].next_payment == to_epoch_millis(start + timedelta(days=35))


def test_yearly_pattern(make_txn):
    transactions = [make_txn(datetime(year, 2, 10, 12), -1499.0, "Prime") for year in (2022, 2023, 2024)]

    patterns = detect_recurring_patterns(transactions)

    assert patterns[0].frequency == "yearly"
    assert patterns[0].next_payment == to_epoch_millis(datetime(2025, 2, 10, 12))


def test_single_transaction_is_not_a_pattern(make_txn):
    assert detect_recurring_patterns([make_txn(datetime(2024, 1, 1), -499.0, "NETFLIX")]) == []


def test_other_and_missing_merchants_are_excluded(make_txn):
    transactions = []
    for month in range(1, 5):
        transactions.append(make_txn(datetime(2024, month, 1, 10), -100.0, "Other"))
        transactions.append(make_txn(datetime(2024, month, 2, 10), -100.0, None))
        transactions.append(make_txn(datetime(2024, month, 3, 10), -100.0, "   "))

    assert detect_recurring_patterns(transactions) == []


def test_merchant_names_are_trimmed(make_txn):
    transactions = [
        make_txn(datetime(2024, 1, 5, 10), -299.0, "Spotify "),
        make_txn(datetime(2024, 2, 5, 10), -299.0, " Spotify"),
        make_txn(datetime(2024, 3, 5, 10), -299.0, "Spotify"),
    ]
    patterns = detect_recurring_patterns(transactions)
    assert [p.merchant for p in patterns] == ["Spotify"]
    assert patterns[0].occurrences == 3


def test_outlier_amount_rejects_group(make_txn):
    transactions = [make_txn(datetime(2024, month, 1, 10), -100.0, "Store") for month in range(1, 10)]
    transactions.append(make_txn(datetime(2024, 10, 1, 10), -5000.0, "Store"))

    assert detect_recurring_patterns(transactions) == []


def test_irregular_intervals_reject_group(make_txn):
    start = datetime(2024, 1, 1, 10)
    offsets = [0, 32, 64, 96, 116]  # intervals 32, 32, 32, 20
    transactions = [make_txn(start + timedelta(days=d), -200.0, "Cafe") for d in offsets]

    assert detect_recurring_patterns(transactions) == []


def test_interval_outside_bands_is_discarded(make_txn):
    start = datetime(2024, 1, 1, 10)
    transactions = [make_txn(start + timedelta(days=14 * i), -80.0, "Barber") for i in range(4)]

    assert detect_recurring_patterns(transactions) == []


def test_detection_is_idempotent_and_order_independent(sample_transactions):
    first = detect_recurring_patterns(sample_transactions)
    second = detect_recurring_patterns(list(reversed(sample_transactions)))

    assert first == second
    assert [p.merchant for p in first] == sorted(p.merchant for p in first)
    assert {p.merchant: p.frequency for p in first} == {
        "Acme Corp": "monthly",
        "BigBasket": "weekly",
        "Landlord": "monthly",
    }


def test_classify_frequency_bands():
    assert classify_frequency(25) == "monthly"
    assert classify_frequency(35) == "monthly"
    assert classify_frequency(7.5) == "weekly"
    assert classify_frequency(365) == "yearly"
    assert classify_frequency(14) is None


def test_next_month_clamps_day():
    assert predict_next_payment(to_epoch_millis(datetime(2024, 1, 31, 9)), "monthly") == to_epoch_millis(
        datetime(2024, 2, 29, 9)
    )


@pytest.mark.parametrize(
    "last,expected",
    [
        (datetime(2023, 1, 31, 9), datetime(2023, 2, 28, 9)),
        (datetime(2024, 12, 15, 9), datetime(2025, 1, 15, 9)),
        (datetime(2024, 3, 31, 9), datetime(2024, 4, 30, 9)),
    ],
)
def test_next_month_across_short_months_and_year_end(last, expected):
    assert predict_next_payment(to_epoch_millis(last), "monthly") == to_epoch_millis(expected)


def test_next_year_from_leap_day():
    assert predict_next_payment(to_epoch_millis(datetime(2024, 2, 29, 9)), "yearly") == to_epoch_millis(
        datetime(2025, 2, 28, 9)
    )


def test_monthly_subscription_cost_counts_active_only():
    subscriptions = [
        SimpleNamespace(amount=499.0, frequency="monthly", status="active"),
        SimpleNamespace(amount=100.0, frequency="weekly", status="active"),
        SimpleNamespace(amount=1200.0, frequency="yearly", status="active"),
        SimpleNamespace(amount=999.0, frequency="monthly", status="cancelled"),
    ]

    assert monthly_subscription_cost(subscriptions) == pytest.approx(499.0 + 433.0 + 100.0)
