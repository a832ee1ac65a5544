"""/v1/subscriptions - Detected and manual recurring payments"""

from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fincognia_gateway.api.v1.schemas import (
    SubscriptionCreate,
    SubscriptionListResponse,
    SubscriptionResponse,
    SubscriptionStatusUpdate,
)
from fincognia_gateway.api.dependencies import get_current_user_id
from fincognia_gateway.domain.exceptions import NotFoundError
from fincognia_gateway.domain.recurrence import monthly_subscription_cost, predict_next_payment
from fincognia_gateway.infrastructure.database.models import SubscriptionRecord
from fincognia_gateway.infrastructure.database.repositories import SubscriptionRepository
from fincognia_gateway.infrastructure.database.session import get_db
from fincognia_gateway.services.insights import detect_subscriptions

router = APIRouter()


def subscription_response(record: SubscriptionRecord) -> SubscriptionResponse:
    return SubscriptionResponse(
        id=str(record.id),
        merchant=record.merchant,
        amount=record.amount,
        frequency=record.frequency,
        last_payment=record.last_payment,
        next_payment=record.next_payment,
        status=record.status,
        category=record.category,
    )


def subscription_list_response(records: List[SubscriptionRecord]) -> SubscriptionListResponse:
    return SubscriptionListResponse(
        subscriptions=[subscription_response(r) for r in records],
        monthly_cost=monthly_subscription_cost(records),
    )


@router.post("/subscriptions/detect", response_model=SubscriptionListResponse)
def detect(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """
    Run recurrence detection over the stored history.

    Detected merchants are upserted and their transactions flagged recurring;
    re-running on unchanged history changes nothing.
    """
    try:
        detect_subscriptions(db, user_id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    return subscription_list_response(SubscriptionRepository(db).list_subscriptions(user_id))


@router.get("/subscriptions", response_model=SubscriptionListResponse)
def list_subscriptions(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return subscription_list_response(SubscriptionRepository(db).list_subscriptions(user_id))


@router.post("/subscriptions", response_model=SubscriptionResponse, status_code=201)
def create_subscription(
    request_body: SubscriptionCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    merchant = request_body.merchant.strip()
    try:
        record = SubscriptionRepository(db).create_subscription(
            user_id=user_id,
            merchant=merchant,
            amount=request_body.amount,
            frequency=request_body.frequency,
            last_payment=request_body.last_payment,
            next_payment=request_body.next_payment
            or predict_next_payment(request_body.last_payment, request_body.frequency),
            category=request_body.category,
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail=f"Subscription for {merchant} already exists")

    return subscription_response(record)


@router.patch("/subscriptions/{subscription_id}", response_model=SubscriptionResponse)
def update_subscription_status(
    subscription_id: str,
    request_body: SubscriptionStatusUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    try:
        record = SubscriptionRepository(db).update_status(user_id, subscription_id, request_body.status)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    db.commit()
    return subscription_response(record)
