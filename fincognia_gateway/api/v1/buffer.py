"""/v1/buffer - Emergency buffer adequacy and manual overrides"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fincognia_gateway.api.v1.schemas import BufferResponse, BufferUpdate
from fincognia_gateway.api.dependencies import get_current_user_id
from fincognia_gateway.domain.models import BufferInfo
from fincognia_gateway.infrastructure.database.repositories import ProfileRepository
from fincognia_gateway.infrastructure.database.session import get_db
from fincognia_gateway.services.insights import buffer_for_user

router = APIRouter()


def buffer_response(info: BufferInfo) -> BufferResponse:
    return BufferResponse(
        current_buffer=info.current_buffer,
        recommended_buffer=info.recommended_buffer,
        progress=info.progress,
        days_of_expenses=info.days_of_expenses,
        volatility_factor=info.volatility_factor,
    )


@router.get("/buffer", response_model=BufferResponse)
def get_buffer(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """
    Compare the current buffer with the recommended one.

    Returns:
        Buffer amounts, progress (0-1) and how many days of expenses it covers
    """
    return buffer_response(buffer_for_user(db, user_id))


@router.put("/buffer", response_model=BufferResponse)
def update_buffer(
    request_body: BufferUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    ProfileRepository(db).update_profile(
        user_id,
        custom_buffer_target=request_body.custom_buffer_target,
        custom_current_buffer=request_body.custom_current_buffer,
        risk_tolerance=request_body.risk_tolerance,
    )
    db.commit()
    return buffer_response(buffer_for_user(db, user_id))
