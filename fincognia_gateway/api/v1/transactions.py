"""/v1/transactions - List, manual entry and edits"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from fincognia_gateway.api.v1.schemas import (
    TransactionCreate,
    TransactionListResponse,
    TransactionResponse,
    TransactionUpdate,
)
from fincognia_gateway.api.dependencies import get_current_user_id, get_request_id
from fincognia_gateway.domain.exceptions import NotFoundError
from fincognia_gateway.domain.extraction import categorize
from fincognia_gateway.domain.models import Transaction
from fincognia_gateway.infrastructure.database.repositories import TransactionRepository, transaction_to_domain
from fincognia_gateway.infrastructure.database.session import get_db
from fincognia_gateway.utils.date_utils import now_millis

router = APIRouter()


def transaction_response(transaction: Transaction) -> TransactionResponse:
    return TransactionResponse(
        id=transaction.id,
        timestamp=transaction.timestamp,
        amount=transaction.amount,
        type=transaction.type,
        merchant=transaction.merchant,
        category=transaction.category,
        source=transaction.source,
        raw_message_id=transaction.raw_message_id,
        is_recurring=transaction.is_recurring,
        account=transaction.account,
    )


@router.get("/transactions", response_model=TransactionListResponse)
def list_transactions(
    since: Optional[int] = Query(None, ge=0, description="Epoch millis, inclusive"),
    until: Optional[int] = Query(None, ge=0, description="Epoch millis, inclusive"),
    limit: int = Query(100, gt=0, le=1000),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Newest first"""
    transactions = TransactionRepository(db).list_transactions(user_id, since=since, until=until, limit=limit)
    return TransactionListResponse(
        user_id=user_id,
        transactions=[transaction_response(t) for t in transactions],
    )


@router.post("/transactions", response_model=TransactionResponse, status_code=201)
def create_transaction(
    request_body: TransactionCreate,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Record a transaction entered by hand.

    The amount is signed by type; category defaults to the keyword heuristic on the merchant.
    """
    request_id = get_request_id(request)
    merchant = (request_body.merchant or "").strip() or None
    amount = request_body.amount if request_body.type == "credit" else -request_body.amount

    try:
        transaction = Transaction(
            user_id=user_id,
            timestamp=request_body.timestamp if request_body.timestamp is not None else now_millis(),
            amount=amount,
            type=request_body.type,
            merchant=merchant,
            category=request_body.category or categorize("", merchant),
            source="manual",
            account=request_body.account,
        )
        record = TransactionRepository(db).create_transaction(transaction)
        db.commit()
        return transaction_response(transaction_to_domain(record))

    except Exception as e:
        db.rollback()
        logging.error(f"Failed to save manual transaction: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Could not save the transaction, please try again")


@router.patch("/transactions/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: str,
    request_body: TransactionUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    try:
        record = TransactionRepository(db).update_transaction(
            user_id,
            transaction_id,
            category=request_body.category,
            is_recurring=request_body.is_recurring,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    db.commit()
    return transaction_response(transaction_to_domain(record))
