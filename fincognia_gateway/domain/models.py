"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from typing import List, Optional

from fincognia_gateway.domain.exceptions import InvalidTransactionDataError

TRANSACTION_TYPES = ("credit", "debit")
TRANSACTION_SOURCES = ("sms", "email", "manual")
HINT_DIRECTIONS = ("debit", "credit", "unknown")
FORECAST_PERIODS = {"7d": 7, "30d": 30, "90d": 90}

DEFAULT_CATEGORY = "other"
FALLBACK_MERCHANT = "Other"


@dataclass
class RawMessage:
    """Unstructured SMS/email as read from the device"""

    sender: str
    body: str
    received_at: int  # epoch millis
    source_channel: str = "sms"  # "sms" or "email"
    id: Optional[str] = None

    @property
    def message_id(self) -> str:
        """Stable id used to key semantic hints; devices without ids get sender-timestamp"""
        return self.id or f"{self.sender}-{self.received_at}"


@dataclass
class Transaction:
    """Structured money movement; positive amount is a credit, negative a debit"""

    user_id: str
    timestamp: int  # epoch millis
    amount: float
    type: str  # "credit" or "debit"
    merchant: Optional[str] = None
    category: Optional[str] = DEFAULT_CATEGORY
    source: str = "sms"  # "sms", "email" or "manual"
    raw_message_id: Optional[str] = None
    is_recurring: bool = False
    account: Optional[str] = None
    id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.type not in TRANSACTION_TYPES:
            raise InvalidTransactionDataError(f"Unknown transaction type: {self.type!r}")
        if self.amount == 0 or (self.type == "credit") != (self.amount > 0):
            raise InvalidTransactionDataError(
                f"Sign of amount {self.amount} disagrees with type {self.type!r}"
            )
        if self.source not in TRANSACTION_SOURCES:
            raise InvalidTransactionDataError(f"Unknown transaction source: {self.source!r}")


@dataclass
class SemanticHint:
    """Per-message result from the external semantic parsing service"""

    id: str
    is_financial: bool = False
    direction: str = "unknown"  # "debit", "credit" or "unknown"
    amount: Optional[float] = None
    counterparty_name: Optional[str] = None
    counterparty_handle: Optional[str] = None
    bank: Optional[str] = None
    category: Optional[str] = "unknown"
    confidence: float = 0.0
    should_skip: bool = False
    channel: str = "unknown"
    currency: Optional[str] = None
    account_type: Optional[str] = None
    narration: Optional[str] = None


@dataclass
class ExtractedTransaction:
    """Amount, direction, merchant and category resolved for one message"""

    amount: float  # signed
    type: str
    merchant: str
    category: str
    merchant_from_hint: bool = False


@dataclass
class ExtractionResult:
    """Outcome of extraction for one message; transaction is None when dropped"""

    message: RawMessage
    hint: Optional[SemanticHint]
    transaction: Optional[ExtractedTransaction]
    skipped_by_hint: bool = False


@dataclass
class IngestionSummary:
    """Fold result of one ingestion run"""

    total: int = 0
    candidates: int = 0
    hints_received: int = 0
    processed: int = 0
    saved: int = 0
    errors: int = 0
    no_amount: int = 0
    skipped_by_llm: int = 0
    merchant_from_llm: int = 0
    merchant_from_fallback: int = 0


@dataclass
class RecurrencePattern:
    """Merchant paid at a regular cadence with similar amounts"""

    merchant: str
    average_amount: float
    frequency: str  # "weekly", "monthly" or "yearly"
    occurrences: int
    last_payment: int  # epoch millis
    next_payment: int  # epoch millis


@dataclass
class ForecastPoint:
    """Projected balance for one day"""

    date: int  # epoch millis, local midnight
    predicted_balance: float
    confidence: float


@dataclass
class CashflowForecast:
    """Balance trajectory over a fixed horizon with its risk classification"""

    period: str  # "7d", "30d" or "90d"
    points: List[ForecastPoint]
    risk_level: str


@dataclass
class CashBurnSimulation:
    """What-if projection for a chosen daily spend"""

    current_balance: float
    daily_income: float
    daily_spend: float
    days_until_zero: Optional[int]
    projected_balance: List[float] = field(default_factory=list)


@dataclass
class UserProfile:
    """Profile fields consumed by the buffer calculation"""

    user_id: str
    risk_tolerance: str = "medium"
    custom_buffer_target: Optional[float] = None
    custom_current_buffer: Optional[float] = None


@dataclass
class BufferInfo:
    """Emergency buffer adequacy"""

    current_buffer: float
    recommended_buffer: float
    progress: float
    days_of_expenses: int
    volatility_factor: float
