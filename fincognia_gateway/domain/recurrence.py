"""Recurring payment detection - subscriptions and regular bills"""

from collections import defaultdict
from statistics import mean, pstdev
from typing import Dict, Iterable, List, Optional

from dateutil.relativedelta import relativedelta

from fincognia_gateway.domain.models import FALLBACK_MERCHANT, RecurrencePattern, Transaction
from fincognia_gateway.utils.date_utils import MILLIS_PER_DAY, from_epoch_millis, to_epoch_millis

# Mean-interval bands in days (inclusive)
FREQUENCY_BANDS = (
    ("monthly", 25, 35),
    ("weekly", 6, 9),
    ("yearly", 350, 380),
)

WEEKS_PER_MONTH = 4.33
_EPSILON = 1e-9


def classify_frequency(mean_interval_days: float) -> Optional[str]:
    for frequency, low, high in FREQUENCY_BANDS:
        if low <= mean_interval_days <= high:
            return frequency
    return None


def predict_next_payment(last_payment: int, frequency: str) -> int:
    """One period after last payment; months and years follow the calendar, clamped to month end"""
    last = from_epoch_millis(last_payment)
    if frequency == "weekly":
        return last_payment + 7 * MILLIS_PER_DAY
    if frequency == "monthly":
        return to_epoch_millis(last + relativedelta(months=+1))
    if frequency == "yearly":
        return to_epoch_millis(last + relativedelta(years=+1))
    raise ValueError(f"Unsupported frequency: {frequency}")


def _group_by_merchant(transactions: Iterable[Transaction]) -> Dict[str, List[Transaction]]:
    groups: Dict[str, List[Transaction]] = defaultdict(list)
    for txn in transactions:
        merchant = (txn.merchant or "").strip()
        if not merchant or merchant == FALLBACK_MERCHANT:
            continue
        groups[merchant].append(txn)
    return groups


def _within(values: List[float], center: float, tolerance: float) -> bool:
    return all(abs(v - center) <= tolerance + _EPSILON for v in values)


def detect_recurring_patterns(
    transactions: Iterable[Transaction],
    amount_sigma: float = 1.5,
    interval_sigma: float = 1.5,
    interval_jitter_days: float = 3.0,
) -> List[RecurrencePattern]:
    """
    Find merchants paid at a regular cadence with similar amounts.

    Per merchant (trimmed, excluding "Other"):
    - at least 2 occurrences
    - every |amount| within amount_sigma standard deviations of the mean
    - mean interval classified as weekly (6-9d), monthly (25-35d) or yearly (350-380d)
    - every interval within interval_sigma standard deviations of the mean interval,
      never tighter than interval_jitter_days (calendar months differ by up to 3 days)

    Read-only; identical input always yields identical output, sorted by merchant.
    """
    patterns: List[RecurrencePattern] = []

    for merchant, group in sorted(_group_by_merchant(transactions).items()):
        if len(group) < 2:
            continue

        ordered = sorted(group, key=lambda t: (t.timestamp, t.amount))

        amounts = [abs(t.amount) for t in ordered]
        avg_amount = mean(amounts)
        if not _within(amounts, avg_amount, amount_sigma * pstdev(amounts)):
            continue

        intervals = [b.timestamp - a.timestamp for a, b in zip(ordered, ordered[1:])]
        avg_interval = mean(intervals)
        frequency = classify_frequency(avg_interval / MILLIS_PER_DAY)
        if frequency is None:
            continue

        tolerance = max(interval_sigma * pstdev(intervals), interval_jitter_days * MILLIS_PER_DAY)
        if not _within(intervals, avg_interval, tolerance):
            continue

        last_payment = ordered[-1].timestamp
        patterns.append(
            RecurrencePattern(
                merchant=merchant,
                average_amount=float(avg_amount),
                frequency=frequency,
                occurrences=len(ordered),
                last_payment=last_payment,
                next_payment=predict_next_payment(last_payment, frequency),
            )
        )

    return patterns


def monthly_subscription_cost(subscriptions: Iterable) -> float:
    """Monthly-equivalent cost of active subscriptions (weekly x 4.33, yearly / 12)"""
    total = 0.0
    for sub in subscriptions:
        if sub.status != "active":
            continue
        if sub.frequency == "monthly":
            total += sub.amount
        elif sub.frequency == "weekly":
            total += sub.amount * WEEKS_PER_MONTH
        elif sub.frequency == "yearly":
            total += sub.amount / 12
    return total
