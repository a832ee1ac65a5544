"""Semantic parsing service HTTP client (LLM-backed SMS classification)"""

import math
import httpx
from typing import Any, Dict, List, Optional
from fincognia_gateway.domain.models import HINT_DIRECTIONS, RawMessage, SemanticHint
from fincognia_gateway.domain.exceptions import SemanticParserError
from fincognia_gateway.config import settings
from fincognia_gateway.infrastructure.observability.metrics import semantic_parser_latency_histogram


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _optional_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _flag(value: Any) -> bool:
    """JSON true or the string "true"; anything else is false"""
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def hint_from_payload(item: Dict[str, Any]) -> SemanticHint:
    """Map one result to a SemanticHint, defaulting every field the service omitted"""
    direction = str(item.get("direction") or "unknown").lower()
    confidence = _optional_float(item.get("confidence")) or 0.0
    return SemanticHint(
        id=str(item["id"]),
        is_financial=_flag(item.get("isFinancial")),
        direction=direction if direction in HINT_DIRECTIONS else "unknown",
        amount=_optional_float(item.get("amount")),
        counterparty_name=_optional_str(item.get("counterpartyName")),
        counterparty_handle=_optional_str(item.get("counterpartyHandle")),
        bank=_optional_str(item.get("bank")),
        category=_optional_str(item.get("category")) or "unknown",
        confidence=min(1.0, max(0.0, confidence)),
        should_skip=_flag(item.get("shouldSkip")),
        channel=_optional_str(item.get("channel")) or "unknown",
        currency=_optional_str(item.get("currency")),
        account_type=_optional_str(item.get("accountType")),
        narration=_optional_str(item.get("narration")),
    )


class SemanticParserClient:
    """Client for the external semantic SMS parsing service"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.semantic_parser_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def parse_batch(self, user_id: str, messages: List[RawMessage]) -> Dict[str, SemanticHint]:
        """
        Parse a batch of messages in one request.

        Returns hints keyed by message id; ids missing from the response have no hint.

        Raises:
            SemanticParserError: On timeout, HTTP errors, or a malformed response
        """
        if not messages:
            return {}

        payload = {
            "userId": user_id,
            "messages": [
                {
                    "id": message.message_id,
                    "sender": message.sender,
                    "body": message.body,
                    "receivedAt": message.received_at,
                }
                for message in messages
            ],
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                with semantic_parser_latency_histogram.time():
                    response = await client.post(f"{self.base_url}/api/parse-sms-batch", json=payload)
                response.raise_for_status()
                data = response.json()

            except httpx.TimeoutException as e:
                raise SemanticParserError(f"Semantic parser timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise SemanticParserError(f"Semantic parser error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise SemanticParserError(f"Semantic parser unreachable: {e}") from e
            except ValueError as e:
                raise SemanticParserError(f"Semantic parser returned invalid JSON: {e}") from e

        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            raise SemanticParserError("Semantic parser response has no results list")

        return {
            str(item["id"]): hint_from_payload(item)
            for item in results
            if isinstance(item, dict) and item.get("id")
        }
