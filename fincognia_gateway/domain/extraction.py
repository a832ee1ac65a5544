"""Transaction extraction from bank/UPI message text

Amounts come from an ordered list of regex strategies (first match wins); a
semantic hint from the external parser fills in what the text cannot provide.
"""

import re
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from fincognia_gateway.domain.models import (
    DEFAULT_CATEGORY,
    FALLBACK_MERCHANT,
    ExtractedTransaction,
    ExtractionResult,
    RawMessage,
    SemanticHint,
)

AmountStrategy = Callable[[str], Optional[float]]

_NUMBER = r"([\d,]+(?:\.\d+)?)"
_CURRENCY = r"(?:RS\.?|INR|₹|RUPEES?)"

DEBITED_BY = re.compile(r"\bdebited\s+by\s+" + _NUMBER, re.IGNORECASE)
CREDITED_BY = re.compile(r"\bcredited\s+by\s+" + _NUMBER, re.IGNORECASE)
CURRENCY_PREFIX = re.compile(_CURRENCY + r"\s*" + _NUMBER, re.IGNORECASE)
CURRENCY_SUFFIX = re.compile(_NUMBER + r"\s*" + _CURRENCY, re.IGNORECASE)
ANY_NUMBER = re.compile(r"[\d,]+(?:\.\d+)?")

FALLBACK_KEYWORDS = ("DEBITED", "CREDITED", "PAID", "RECEIVED")
CREDIT_KEYWORDS = ("CREDITED", "RECEIVED", "DEPOSIT", "CREDIT")
FALLBACK_MIN_AMOUNT = 1.0
FALLBACK_MAX_AMOUNT = 10_000_000.0  # 1 crore

# Word run after "to"/"at" or "from"; tokens keep "/" so account masks can be rejected whole
_NAME_RUN = r"([A-Za-z][\w&'/\-]*(?:[ \t]+[A-Za-z][\w&'/\-]*)*)"
TO_AT_MERCHANT = re.compile(r"\b(?:to|at)\s+" + _NAME_RUN, re.IGNORECASE)
FROM_MERCHANT = re.compile(r"\bfrom\s+" + _NAME_RUN, re.IGNORECASE)
MERCHANT_STOP_WORDS = {
    "UPI", "REF", "ON", "VIA", "AVL", "BAL", "INFO", "TXN", "IMPS", "NEFT", "RTGS", "DATED",
    "A/C", "AC", "ACCT", "ACCOUNT", "YOUR", "TO", "AT", "FROM", "FOR", "BY", "AND", "OF", "WITH", "IS",
}

CATEGORY_RULES: Sequence[Tuple[str, Tuple[str, ...]]] = (
    ("food", ("GROCERY", "FOOD")),
    ("transport", ("FUEL", "PETROL", "TAXI", "UBER", "OLA")),
    ("bills", ("BILL", "ELECTRICITY", "WATER", "RENT")),
    ("income", ("SALARY", "CREDITED", "DEPOSIT")),
)


def _parse_positive(raw: str) -> Optional[float]:
    try:
        value = float(raw.replace(",", ""))
    except ValueError:
        return None
    return value if value > 0 else None


def _first_group(pattern: "re.Pattern[str]") -> AmountStrategy:
    def strategy(body: str) -> Optional[float]:
        match = pattern.search(body)
        if not match:
            return None
        return _parse_positive(match.group(1))

    return strategy


def largest_number_fallback(body: str) -> Optional[float]:
    """
    Largest numeric substring within [1, 1 crore], only for bodies with a strong
    transactional keyword. Out-of-range numbers (account/reference ids) are ignored.
    """
    upper_body = body.upper()
    if not any(keyword in upper_body for keyword in FALLBACK_KEYWORDS):
        return None

    values = [_parse_positive(token) for token in ANY_NUMBER.findall(body)]
    in_range = [v for v in values if v is not None and FALLBACK_MIN_AMOUNT <= v <= FALLBACK_MAX_AMOUNT]
    return max(in_range) if in_range else None


# Precedence: debited-by > credited-by > currency-prefix > currency-suffix > largest number
AMOUNT_STRATEGIES: List[Tuple[str, AmountStrategy]] = [
    ("debited-by", _first_group(DEBITED_BY)),
    ("credited-by", _first_group(CREDITED_BY)),
    ("currency-prefix", _first_group(CURRENCY_PREFIX)),
    ("currency-suffix", _first_group(CURRENCY_SUFFIX)),
    ("fallback-largest", largest_number_fallback),
]


def match_amount(body: str) -> Optional[Tuple[str, float]]:
    """Return (strategy name, unsigned amount) for the first strategy that matches"""
    if not body or not body.strip():
        return None
    for name, strategy in AMOUNT_STRATEGIES:
        amount = strategy(body)
        if amount is not None:
            return name, amount
    return None


def direction_from_text(body: str) -> str:
    upper_body = body.upper()
    return "credit" if any(keyword in upper_body for keyword in CREDIT_KEYWORDS) else "debit"


def signed_amount(amount: float, direction: str) -> float:
    magnitude = abs(amount)
    return magnitude if direction == "credit" else -magnitude


def extract_merchant(body: str) -> Optional[str]:
    """Name following "to"/"at", else following "from"; a run ends at noise words and a/c masks"""
    for pattern in (TO_AT_MERCHANT, FROM_MERCHANT):
        for match in pattern.finditer(body):
            words = []
            for word in match.group(1).split():
                if "/" in word or word.upper() in MERCHANT_STOP_WORDS:
                    break
                words.append(word)
            if words:
                return " ".join(words)
    return None


def resolve_merchant(body: str, hint: Optional[SemanticHint]) -> Tuple[str, bool]:
    """Return (merchant, came_from_hint)"""
    if hint is not None:
        for candidate in (hint.counterparty_name, hint.counterparty_handle, hint.bank):
            if candidate and candidate.strip():
                return candidate.strip(), True
    return extract_merchant(body) or FALLBACK_MERCHANT, False


def categorize(body: str, merchant: Optional[str]) -> str:
    """Keyword heuristic over body and merchant text"""
    text = f"{body} {merchant or ''}".upper()
    for category, keywords in CATEGORY_RULES:
        if any(keyword in text for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def resolve_category(body: str, merchant: Optional[str], hint: Optional[SemanticHint]) -> str:
    if hint is not None and hint.category and hint.category.strip().lower() != "unknown":
        return hint.category.strip()
    return categorize(body, merchant)


def extract_transaction(body: str, hint: Optional[SemanticHint] = None) -> Optional[ExtractedTransaction]:
    """
    Resolve one message into a transaction candidate, or None when it must be dropped.

    - hint.should_skip vetoes the message before any parsing
    - regex amount wins and sets the direction from the text
    - otherwise the hint amount is used when its direction is credit or debit
    """
    if hint is not None and hint.should_skip:
        return None

    regex_match = match_amount(body)
    if regex_match is not None:
        _, amount = regex_match
        direction = direction_from_text(body)
    elif hint is not None and hint.amount and hint.direction in ("credit", "debit"):
        amount = hint.amount
        direction = hint.direction
    else:
        return None

    merchant, merchant_from_hint = resolve_merchant(body, hint)
    return ExtractedTransaction(
        amount=signed_amount(amount, direction),
        type=direction,
        merchant=merchant,
        category=resolve_category(body, merchant, hint),
        merchant_from_hint=merchant_from_hint,
    )


def extract_batch(
    messages: Sequence[RawMessage],
    hints: Optional[Dict[str, SemanticHint]] = None,
) -> List[ExtractionResult]:
    """Zero-or-one transaction candidate per message, in input order"""
    hints = hints or {}
    results = []
    for message in messages:
        hint = hints.get(message.message_id)
        results.append(
            ExtractionResult(
                message=message,
                hint=hint,
                transaction=extract_transaction(message.body, hint),
                skipped_by_hint=bool(hint is not None and hint.should_skip),
            )
        )
    return results
