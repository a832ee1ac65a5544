"""Bank/UPI message classifier - cheap pre-filter ahead of extraction"""

import re

# Bank short-codes, UPI rails and wallet/payment-app senders (Indian context)
BANK_SENDER_TOKENS = (
    "VK-",
    "AX-",
    "HDFC",
    "ICICI",
    "SBI",
    "PNB",
    "UPI",
    "PAYTM",
    "GPAY",
    "PHONEPE",
    "BHIM",
    "RZPAY",
    "AMAZON",
    "FLIPKART",
)

TRANSACTION_KEYWORDS = (
    "DEBITED",
    "CREDITED",
    "PAID",
    "RECEIVED",
    "BALANCE",
    "TRANSACTION",
    "RS.",
    "INR",
    "₹",
    "ACCOUNT",
    "AMOUNT",
    "TRANSFER",
    "WITHDRAWAL",
    "DEPOSIT",
    "PURCHASE",
    "PAYMENT",
)

MIN_BODY_LENGTH = 5
MIN_AMOUNT_ONLY_LENGTH = 20

CURRENCY_PREFIXED_AMOUNT = re.compile(r"(?:RS\.?|INR|₹|RUPEES?)\s*[\d,]+\.?\d*", re.IGNORECASE)
CURRENCY_SUFFIXED_AMOUNT = re.compile(r"\d[\d,]*\.?\d*\s*(?:RS\.?|INR|₹)", re.IGNORECASE)


def has_amount_pattern(body: str) -> bool:
    """True when the body carries a currency-tagged number"""
    return bool(CURRENCY_PREFIXED_AMOUNT.search(body) or CURRENCY_SUFFIXED_AMOUNT.search(body))


def is_candidate(sender: str, body: str) -> bool:
    """
    Decide whether a raw message is worth parsing as a transaction.

    Order:
    1. Bodies shorter than 5 characters are rejected
    2. Known bank/UPI/wallet token in sender or body accepts
    3. A transaction keyword, or a currency-tagged amount in a body longer
       than 20 characters, accepts
    """
    if not body or len(body.strip()) < MIN_BODY_LENGTH:
        return False

    upper_sender = (sender or "").upper()
    upper_body = body.upper()

    if any(token in upper_sender or token in upper_body for token in BANK_SENDER_TOKENS):
        return True

    if any(keyword in upper_body for keyword in TRANSACTION_KEYWORDS):
        return True

    return has_amount_pattern(body) and len(body) > MIN_AMOUNT_ONLY_LENGTH
