"""/v1/events - Upcoming bills and calendar events"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from fincognia_gateway.api.v1.schemas import EventCreate, EventListResponse, EventResponse
from fincognia_gateway.api.dependencies import get_current_user_id
from fincognia_gateway.domain.exceptions import NotFoundError
from fincognia_gateway.infrastructure.database.repositories import EventRepository
from fincognia_gateway.infrastructure.database.session import get_db
from fincognia_gateway.services.insights import UpcomingEvent, upcoming_events

router = APIRouter()


def event_response(event: UpcomingEvent) -> EventResponse:
    return EventResponse(
        id=event.id,
        type=event.type,
        date=event.date,
        amount=event.amount,
        description=event.description,
        merchant=event.merchant,
        category=event.category,
        is_recurring=event.is_recurring,
    )


@router.get("/events", response_model=EventListResponse)
def list_events(
    limit: int = Query(10, gt=0, le=100),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Stored future events merged with bills inferred from monthly patterns, soonest first"""
    return EventListResponse(events=[event_response(e) for e in upcoming_events(db, user_id, limit)])


@router.post("/events", response_model=EventResponse, status_code=201)
def create_event(
    request_body: EventCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    record = EventRepository(db).create_event(
        user_id=user_id,
        type=request_body.type,
        date=request_body.date,
        amount=request_body.amount,
        description=request_body.description.strip(),
        merchant=request_body.merchant,
        category=request_body.category,
        is_recurring=request_body.is_recurring,
    )
    db.commit()
    return EventResponse(
        id=str(record.id),
        type=record.type,
        date=record.date,
        amount=record.amount,
        description=record.description,
        merchant=record.merchant,
        category=record.category,
        is_recurring=record.is_recurring,
    )


@router.delete("/events/{event_id}", status_code=204)
def delete_event(event_id: str, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    try:
        EventRepository(db).delete_event(user_id, event_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    db.commit()
