"""Per-user analytics over persisted history: forecast, subscriptions, buffer, upcoming events"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from fincognia_gateway.config import settings
from fincognia_gateway.domain.buffer import calculate_emergency_buffer
from fincognia_gateway.domain.forecasting import build_cashflow_forecast, net_position, simulate_cash_burn
from fincognia_gateway.domain.models import (
    BufferInfo,
    CashBurnSimulation,
    CashflowForecast,
    RecurrencePattern,
    Transaction,
)
from fincognia_gateway.domain.recurrence import detect_recurring_patterns
from fincognia_gateway.infrastructure.database.models import SubscriptionRecord
from fincognia_gateway.infrastructure.database.repositories import (
    EventRepository,
    ProfileRepository,
    SubscriptionRepository,
    TransactionRepository,
)
from fincognia_gateway.infrastructure.observability.metrics import forecast_risk_counter, recurring_pattern_counter
from fincognia_gateway.utils.date_utils import to_epoch_millis

logger = logging.getLogger(__name__)


@dataclass
class UpcomingEvent:
    """Stored calendar event or a bill inferred from a monthly pattern"""

    id: str
    type: str
    date: int  # epoch millis
    amount: float
    description: str
    merchant: Optional[str] = None
    category: Optional[str] = None
    is_recurring: bool = False


def load_history(db: Session, user_id: str) -> List[Transaction]:
    return TransactionRepository(db).list_transactions(user_id, limit=settings.history_limit)


def detect_patterns(transactions: List[Transaction]) -> List[RecurrencePattern]:
    return detect_recurring_patterns(
        transactions,
        amount_sigma=settings.recurrence_amount_sigma,
        interval_sigma=settings.recurrence_interval_sigma,
        interval_jitter_days=settings.recurrence_interval_jitter_days,
    )


def forecast_for_user(db: Session, user_id: str, period: str, now: Optional[datetime] = None) -> CashflowForecast:
    """Current balance is the net position of the whole loaded history"""
    transactions = load_history(db, user_id)
    forecast = build_cashflow_forecast(
        net_position(transactions),
        transactions,
        period,
        now=now,
        lookback_days=settings.forecast_lookback_days,
    )
    forecast_risk_counter.labels(period=period, risk_level=forecast.risk_level).inc()
    return forecast


def simulate_for_user(
    db: Session,
    user_id: str,
    daily_spend: Optional[float] = None,
    days: int = 30,
    now: Optional[datetime] = None,
) -> CashBurnSimulation:
    transactions = load_history(db, user_id)
    return simulate_cash_burn(
        net_position(transactions),
        transactions,
        daily_spend=daily_spend,
        days=days,
        now=now,
        lookback_days=settings.forecast_lookback_days,
    )


def detect_subscriptions(db: Session, user_id: str) -> List[SubscriptionRecord]:
    """
    Run the detector and store its findings.

    - each pattern is upserted by merchant (existing status is kept)
    - every transaction of a detected merchant is flagged recurring
    """
    patterns = detect_patterns(load_history(db, user_id))
    subscriptions = SubscriptionRepository(db)
    records = [subscriptions.upsert_detected(user_id, pattern) for pattern in patterns]
    flagged = TransactionRepository(db).mark_recurring(user_id, [p.merchant for p in patterns])

    for pattern in patterns:
        recurring_pattern_counter.labels(frequency=pattern.frequency).inc()
    logger.info(
        "Subscriptions detected",
        extra={"user_id": user_id, "patterns": len(patterns), "flagged_transactions": flagged},
    )
    return records


def buffer_for_user(db: Session, user_id: str, now: Optional[datetime] = None) -> BufferInfo:
    return calculate_emergency_buffer(
        load_history(db, user_id),
        ProfileRepository(db).get_profile(user_id),
        now=now,
        lookback_days=settings.buffer_lookback_days,
    )


def upcoming_events(db: Session, user_id: str, limit: int = 10, now: Optional[datetime] = None) -> List[UpcomingEvent]:
    """Stored events from now on plus the next due date of each detected monthly bill"""
    now_ms = to_epoch_millis(now or datetime.now())

    events = [
        UpcomingEvent(
            id=str(record.id),
            type=record.type,
            date=record.date,
            amount=record.amount,
            description=record.description,
            merchant=record.merchant,
            category=record.category,
            is_recurring=record.is_recurring,
        )
        for record in EventRepository(db).list_upcoming(user_id, now_ms, limit)
    ]

    for pattern in detect_patterns(load_history(db, user_id)):
        if pattern.frequency != "monthly" or pattern.next_payment < now_ms:
            continue
        events.append(
            UpcomingEvent(
                id=f"bill-{pattern.merchant}-{pattern.next_payment}",
                type="bill",
                date=pattern.next_payment,
                amount=-abs(pattern.average_amount),
                description=f"{pattern.merchant} payment",
                merchant=pattern.merchant,
                category="bills",
                is_recurring=True,
            )
        )

    events.sort(key=lambda e: (e.date, e.description))
    return events[:limit]


def money_weather(db: Session, user_id: str, period: str = "30d", now: Optional[datetime] = None) -> Dict[str, Any]:
    """Forecast, subscriptions, buffer and upcoming events, read in turn on one session"""
    return {
        "forecast": forecast_for_user(db, user_id, period, now),
        "subscriptions": SubscriptionRepository(db).list_subscriptions(user_id),
        "buffer": buffer_for_user(db, user_id, now),
        "events": upcoming_events(db, user_id, now=now),
    }
