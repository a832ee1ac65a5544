"""/v1/forecast - Cashflow projection and cash-burn what-if"""

from typing import Literal
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from fincognia_gateway.api.v1.schemas import ForecastPointSchema, ForecastResponse, SimulateRequest, SimulateResponse
from fincognia_gateway.api.dependencies import get_current_user_id
from fincognia_gateway.domain.forecasting import find_zero_date
from fincognia_gateway.domain.models import CashflowForecast
from fincognia_gateway.infrastructure.database.session import get_db
from fincognia_gateway.services.insights import forecast_for_user, simulate_for_user

router = APIRouter()


def forecast_response(forecast: CashflowForecast) -> ForecastResponse:
    return ForecastResponse(
        period=forecast.period,
        risk_level=forecast.risk_level,
        points=[
            ForecastPointSchema(date=p.date, predicted_balance=p.predicted_balance, confidence=p.confidence)
            for p in forecast.points
        ],
        zero_date=find_zero_date(forecast.points),
    )


@router.get("/forecast", response_model=ForecastResponse)
def get_forecast(
    period: Literal["7d", "30d", "90d"] = Query("30d"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Project the balance from today's midnight over the chosen horizon.

    Returns:
        One point per day and the risk level of the trajectory
    """
    return forecast_response(forecast_for_user(db, user_id, period))


@router.post("/forecast/simulate", response_model=SimulateResponse)
def simulate(
    request_body: SimulateRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    simulation = simulate_for_user(db, user_id, daily_spend=request_body.daily_spend, days=request_body.days)
    return SimulateResponse(
        current_balance=simulation.current_balance,
        daily_income=simulation.daily_income,
        daily_spend=simulation.daily_spend,
        days_until_zero=simulation.days_until_zero,
        projected_balance=simulation.projected_balance,
    )
