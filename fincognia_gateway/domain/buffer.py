"""Emergency buffer adequacy from expenses, income volatility and risk tolerance"""

import math
from collections import defaultdict
from datetime import datetime
from statistics import mean, pstdev
from typing import Dict, List, Optional, Tuple

from fincognia_gateway.domain.forecasting import net_position
from fincognia_gateway.domain.models import BufferInfo, Transaction, UserProfile
from fincognia_gateway.utils.date_utils import MILLIS_PER_DAY, from_epoch_millis, to_epoch_millis

BASE_MONTHS = 3
VOLATILITY_WEIGHT = 0.5

RISK_MULTIPLIERS = {
    "low": 1.5,  # conservative: wants a bigger buffer
    "medium": 1.0,
    "high": 0.75,
}


def monthly_totals(
    transactions: List[Transaction],
    now: Optional[datetime] = None,
    lookback_days: int = 90,
) -> Tuple[List[float], List[float]]:
    """Per-calendar-month (income, expense) totals over the trailing window"""
    now = now or datetime.now()
    end = to_epoch_millis(now)
    cutoff = end - lookback_days * MILLIS_PER_DAY

    months: Dict[Tuple[int, int], List[float]] = defaultdict(lambda: [0.0, 0.0])
    for txn in transactions:
        if not cutoff <= txn.timestamp <= end:
            continue
        moment = from_epoch_millis(txn.timestamp)
        bucket = months[(moment.year, moment.month)]
        if txn.type == "credit":
            bucket[0] += abs(txn.amount)
        else:
            bucket[1] += abs(txn.amount)

    incomes = [income for income, _ in months.values()]
    expenses = [expense for _, expense in months.values()]
    return incomes, expenses


def volatility_factor(monthly_incomes: List[float]) -> float:
    """1 + 0.5 x coefficient of variation of monthly income; 1.0 when undefined"""
    if len(monthly_incomes) < 2:
        return 1.0
    avg_income = mean(monthly_incomes)
    if avg_income <= 0:
        return 1.0
    return 1.0 + VOLATILITY_WEIGHT * (pstdev(monthly_incomes) / avg_income)


def calculate_emergency_buffer(
    transactions: List[Transaction],
    profile: Optional[UserProfile] = None,
    now: Optional[datetime] = None,
    lookback_days: int = 90,
) -> BufferInfo:
    """
    Compare the current buffer against a recommended one.

    - current buffer: manual override when set and non-negative, else net cash position
    - recommended: manual target when positive, else
      avg monthly expenses x 3 x volatility factor x risk multiplier
    """
    if profile is not None and profile.custom_current_buffer is not None and profile.custom_current_buffer >= 0:
        current_buffer = float(profile.custom_current_buffer)
    else:
        current_buffer = net_position(transactions)

    incomes, expenses = monthly_totals(transactions, now, lookback_days)
    avg_monthly_expenses = mean(expenses) if expenses else 0.0
    volatility = volatility_factor(incomes)

    risk_tolerance = profile.risk_tolerance if profile is not None else "medium"
    risk_multiplier = RISK_MULTIPLIERS.get(risk_tolerance or "medium", 1.0)

    if profile is not None and profile.custom_buffer_target and profile.custom_buffer_target > 0:
        recommended_buffer = float(profile.custom_buffer_target)
    else:
        recommended_buffer = avg_monthly_expenses * BASE_MONTHS * volatility * risk_multiplier

    progress = min(1.0, max(0.0, current_buffer / recommended_buffer)) if recommended_buffer > 0 else 0.0

    avg_daily_expenses = avg_monthly_expenses / 30
    days_of_expenses = max(0, math.floor(current_buffer / avg_daily_expenses)) if avg_daily_expenses > 0 else 0

    return BufferInfo(
        current_buffer=current_buffer,
        recommended_buffer=float(recommended_buffer),
        progress=progress,
        days_of_expenses=days_of_expenses,
        volatility_factor=volatility,
    )
