"""GET /v1/money-weather - One-screen financial snapshot"""

from typing import Literal
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from fincognia_gateway.api.v1.schemas import MoneyWeatherResponse
from fincognia_gateway.api.v1.buffer import buffer_response
from fincognia_gateway.api.v1.events import event_response
from fincognia_gateway.api.v1.forecast import forecast_response
from fincognia_gateway.api.v1.subscriptions import subscription_response
from fincognia_gateway.api.dependencies import get_current_user_id
from fincognia_gateway.domain.recurrence import monthly_subscription_cost
from fincognia_gateway.infrastructure.database.session import get_db
from fincognia_gateway.services.insights import money_weather

router = APIRouter()


@router.get("/money-weather", response_model=MoneyWeatherResponse)
async def get_money_weather(
    period: Literal["7d", "30d", "90d"] = Query("30d"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Forecast, subscriptions, buffer and upcoming events in one response"""
    snapshot = money_weather(db, user_id, period)
    return MoneyWeatherResponse(
        forecast=forecast_response(snapshot["forecast"]),
        subscriptions=[subscription_response(s) for s in snapshot["subscriptions"]],
        monthly_subscription_cost=monthly_subscription_cost(snapshot["subscriptions"]),
        buffer=buffer_response(snapshot["buffer"]),
        events=[event_response(e) for e in snapshot["events"]],
    )
