"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from typing import List, Literal, Optional

TransactionType = Literal["credit", "debit"]
Frequency = Literal["weekly", "monthly", "yearly"]
SubscriptionStatus = Literal["active", "paused", "cancelled"]
EventType = Literal["bill", "recurring", "festival", "one-time"]
RiskTolerance = Literal["low", "medium", "high"]


class IncomingMessage(BaseModel):
    """Raw SMS/email as read on the device"""

    id: Optional[str] = None
    sender: str = Field(..., description="Sender address or short code")
    body: str
    received_at: int = Field(..., ge=0, description="Epoch millis")
    source_channel: Literal["sms", "email"] = "sms"


class IngestRequest(BaseModel):
    """Request body for POST /v1/ingest"""

    messages: List[IncomingMessage]
    limit: Optional[int] = Field(None, gt=0, le=5000, description="Newest messages to consider")
    sender: Optional[str] = Field(None, description="Case-insensitive sender substring filter")


class IngestResponse(BaseModel):
    """Response for POST /v1/ingest"""

    total: int
    candidates: int
    hints_received: int
    processed: int
    saved: int
    errors: int
    no_amount: int
    skipped_by_llm: int
    merchant_from_llm: int
    merchant_from_fallback: int


class TransactionResponse(BaseModel):
    """Single stored transaction"""

    id: str
    timestamp: int
    amount: float
    type: TransactionType
    merchant: Optional[str] = None
    category: Optional[str] = None
    source: str
    raw_message_id: Optional[str] = None
    is_recurring: bool
    account: Optional[str] = None


class TransactionListResponse(BaseModel):
    """Response for GET /v1/transactions"""

    user_id: str
    transactions: List[TransactionResponse]


class TransactionCreate(BaseModel):
    """Manual entry; amount is a magnitude and is signed by type"""

    amount: float = Field(..., gt=0)
    type: TransactionType
    timestamp: Optional[int] = Field(None, ge=0, description="Epoch millis, defaults to now")
    merchant: Optional[str] = None
    category: Optional[str] = None
    account: Optional[str] = None


class TransactionUpdate(BaseModel):
    """Only category and the recurring flag are editable"""

    category: Optional[str] = Field(None, min_length=1)
    is_recurring: Optional[bool] = None


class ForecastPointSchema(BaseModel):
    date: int
    predicted_balance: float
    confidence: float


class ForecastResponse(BaseModel):
    """Response for GET /v1/forecast"""

    period: str
    risk_level: str
    points: List[ForecastPointSchema]
    zero_date: Optional[int] = None


class SimulateRequest(BaseModel):
    """Request body for POST /v1/forecast/simulate"""

    daily_spend: Optional[float] = Field(None, ge=0, description="Defaults to the historic average")
    days: int = Field(30, ge=1, le=365)


class SimulateResponse(BaseModel):
    current_balance: float
    daily_income: float
    daily_spend: float
    days_until_zero: Optional[int] = None
    projected_balance: List[float]


class SubscriptionResponse(BaseModel):
    id: str
    merchant: str
    amount: float
    frequency: Frequency
    last_payment: int
    next_payment: Optional[int] = None
    status: SubscriptionStatus
    category: Optional[str] = None


class SubscriptionListResponse(BaseModel):
    """Subscriptions with their monthly-equivalent cost"""

    subscriptions: List[SubscriptionResponse]
    monthly_cost: float


class SubscriptionCreate(BaseModel):
    merchant: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    frequency: Frequency
    last_payment: int = Field(..., ge=0)
    next_payment: Optional[int] = Field(None, ge=0, description="Predicted from last_payment when omitted")
    category: Optional[str] = None


class SubscriptionStatusUpdate(BaseModel):
    status: SubscriptionStatus


class BufferResponse(BaseModel):
    """Response for GET/PUT /v1/buffer"""

    current_buffer: float
    recommended_buffer: float
    progress: float
    days_of_expenses: int
    volatility_factor: float


class BufferUpdate(BaseModel):
    """Manual overrides; omitted fields stay unchanged"""

    custom_buffer_target: Optional[float] = Field(None, ge=0)
    custom_current_buffer: Optional[float] = Field(None, ge=0)
    risk_tolerance: Optional[RiskTolerance] = None


class EventResponse(BaseModel):
    id: str
    type: str
    date: int
    amount: float
    description: str
    merchant: Optional[str] = None
    category: Optional[str] = None
    is_recurring: bool = False


class EventListResponse(BaseModel):
    events: List[EventResponse]


class EventCreate(BaseModel):
    type: EventType
    date: int = Field(..., ge=0)
    amount: float
    description: str = Field(..., min_length=1)
    merchant: Optional[str] = None
    category: Optional[str] = None
    is_recurring: bool = False


class MoneyWeatherResponse(BaseModel):
    """Response for GET /v1/money-weather"""

    forecast: ForecastResponse
    subscriptions: List[SubscriptionResponse]
    monthly_subscription_cost: float
    buffer: BufferResponse
    events: List[EventResponse]
