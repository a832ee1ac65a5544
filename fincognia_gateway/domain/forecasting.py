"""Cashflow forecasting - linear balance projection and risk classification"""

import math
from collections import defaultdict
from datetime import date, datetime
from statistics import mean, pstdev
from typing import Dict, Iterable, List, Optional, Tuple

from fincognia_gateway.domain.models import (
    FORECAST_PERIODS,
    CashBurnSimulation,
    CashflowForecast,
    ForecastPoint,
    Transaction,
)
from fincognia_gateway.utils.date_utils import (
    MILLIS_PER_DAY,
    generate_day_starts,
    local_day,
    start_of_day,
    to_epoch_millis,
)

BASELINE_CONFIDENCE = 0.1
DEFAULT_LOOKBACK_DAYS = 30
DEFAULT_SIMULATED_DAILY_SPEND = 500.0

HIGH_RISK_HORIZON_SHARE = 0.2
LOW_BUFFER_SHARE = 0.1
VOLATILITY_SHARE = 0.3


def net_position(transactions: Iterable[Transaction]) -> float:
    """Sum of signed amounts - the net cash position implied by history"""
    return float(sum(t.amount for t in transactions))


def daily_averages(
    transactions: Iterable[Transaction],
    now: Optional[datetime] = None,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
) -> Tuple[float, float, int]:
    """
    Average daily income and expense over the trailing window.

    Each average only counts days that had activity of its kind: a day with no
    credits is left out of the income average rather than counted as zero.

    Returns: (avg_daily_income, avg_daily_expense, active_days)
    """
    now = now or datetime.now()
    end = to_epoch_millis(now)
    cutoff = end - lookback_days * MILLIS_PER_DAY

    daily: Dict[date, List[float]] = defaultdict(lambda: [0.0, 0.0])
    for txn in transactions:
        if not cutoff <= txn.timestamp <= end:
            continue
        bucket = daily[local_day(txn.timestamp)]
        if txn.type == "credit":
            bucket[0] += abs(txn.amount)
        else:
            bucket[1] += abs(txn.amount)

    incomes = [income for income, _ in daily.values() if income > 0]
    expenses = [expense for _, expense in daily.values() if expense > 0]

    avg_income = sum(incomes) / len(incomes) if incomes else 0.0
    avg_expense = sum(expenses) / len(expenses) if expenses else 0.0
    return avg_income, avg_expense, len(daily)


def project_balance(
    current_balance: float,
    transactions: List[Transaction],
    horizon_days: int,
    now: Optional[datetime] = None,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
) -> List[ForecastPoint]:
    """
    Project the balance day by day from today's local midnight.

    Point i carries current_balance + drift * i, where drift is the average
    daily income minus average daily expense. No history gives a flat line at
    confidence 0.1.
    """
    now = now or datetime.now()
    days = generate_day_starts(start_of_day(now), max(horizon_days, 0))

    if not transactions:
        return [
            ForecastPoint(date=to_epoch_millis(day), predicted_balance=current_balance, confidence=BASELINE_CONFIDENCE)
            for day in days
        ]

    avg_income, avg_expense, active_days = daily_averages(transactions, now, lookback_days)
    drift = avg_income - avg_expense
    confidence = min(1.0, active_days / 30)

    return [
        ForecastPoint(date=to_epoch_millis(day), predicted_balance=current_balance + drift * i, confidence=confidence)
        for i, day in enumerate(days)
    ]


def classify_risk(points: List[ForecastPoint]) -> str:
    """
    Risk level of a projected trajectory.

    Checked in order:
    - empty forecast: medium
    - goes negative within the first 20% of the horizon: high; later: medium
    - minimum below 10% of a positive starting balance: medium
    - stddev of balances above 30% of their mean: medium
    - otherwise: low
    """
    if not points:
        return "medium"

    balances = [p.predicted_balance for p in points]

    first_negative = next((i for i, b in enumerate(balances) if b < 0), None)
    if first_negative is not None:
        return "high" if first_negative < len(balances) * HIGH_RISK_HORIZON_SHARE else "medium"

    starting = balances[0]
    if starting > 0 and min(balances) < starting * LOW_BUFFER_SHARE:
        return "medium"

    if pstdev(balances) > mean(balances) * VOLATILITY_SHARE:
        return "medium"

    return "low"


def build_cashflow_forecast(
    current_balance: float,
    transactions: List[Transaction],
    period: str,
    now: Optional[datetime] = None,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
) -> CashflowForecast:
    """Forecast for one of the fixed horizons (7d, 30d, 90d)"""
    if period not in FORECAST_PERIODS:
        raise ValueError(f"Unsupported forecast period: {period}")

    points = project_balance(current_balance, transactions, FORECAST_PERIODS[period], now, lookback_days)
    return CashflowForecast(period=period, points=points, risk_level=classify_risk(points))


def find_zero_date(points: List[ForecastPoint]) -> Optional[int]:
    """Date of the first point at or below zero"""
    for point in points:
        if point.predicted_balance <= 0:
            return point.date
    return None


def days_until_zero(current_balance: float, daily_net: float) -> Optional[int]:
    """Whole days until the balance runs out; None when it never does"""
    if daily_net >= 0:
        return None
    return max(0, math.floor(current_balance / abs(daily_net)))


def simulate_cash_burn(
    current_balance: float,
    transactions: List[Transaction],
    daily_spend: Optional[float] = None,
    days: int = 30,
    now: Optional[datetime] = None,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
) -> CashBurnSimulation:
    """
    What-if projection using historic daily income and a chosen daily spend.

    daily_spend defaults to the historic average (500 when there is none);
    projected_balance[i] is the balance at the end of day i + 1.
    """
    avg_income, avg_expense, _ = daily_averages(transactions, now, lookback_days)
    if daily_spend is None:
        daily_spend = avg_expense if avg_expense > 0 else DEFAULT_SIMULATED_DAILY_SPEND

    daily_net = avg_income - daily_spend
    return CashBurnSimulation(
        current_balance=current_balance,
        daily_income=avg_income,
        daily_spend=daily_spend,
        days_until_zero=days_until_zero(current_balance, daily_net),
        projected_balance=[current_balance + daily_net * (day + 1) for day in range(max(days, 0))],
    )
