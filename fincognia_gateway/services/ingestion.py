"""Batch ingestion: raw messages in, persisted transactions and an IngestionSummary out"""

import time
import logging
from typing import Dict, List, Optional

from fincognia_gateway.domain.classifier import is_candidate
from fincognia_gateway.domain.exceptions import NotAuthenticatedError, SemanticParserError
from fincognia_gateway.domain.extraction import extract_batch
from fincognia_gateway.domain.models import (
    FALLBACK_MERCHANT,
    ExtractionResult,
    IngestionSummary,
    RawMessage,
    SemanticHint,
    Transaction,
)
from fincognia_gateway.domain.ports import IngestionStore, MessageSource, SemanticParser
from fincognia_gateway.infrastructure.observability.logging import log_ingestion_summary
from fincognia_gateway.infrastructure.observability.metrics import record_ingestion, semantic_parser_failure_counter

logger = logging.getLogger(__name__)


async def fetch_hints(
    parser: Optional[SemanticParser],
    user_id: str,
    candidates: List[RawMessage],
) -> Dict[str, SemanticHint]:
    """One batch call for all candidates; any parser failure means regex-only for the run"""
    if parser is None or not candidates:
        return {}
    try:
        return await parser.parse_batch(user_id, candidates)
    except SemanticParserError as e:
        semantic_parser_failure_counter.inc()
        logger.warning(
            f"Semantic parser unavailable, continuing regex-only: {e}",
            extra={"user_id": user_id, "candidates": len(candidates)},
        )
        return {}


def persist_result(store: IngestionStore, user_id: str, result: ExtractionResult) -> str:
    """
    Save raw message, then transaction, then link them.

    Returns the transaction id.
    """
    extracted = result.transaction
    message = result.message

    raw_message_id = store.save_raw_message(user_id, message)
    transaction = Transaction(
        user_id=user_id,
        timestamp=message.received_at,
        amount=extracted.amount,
        type=extracted.type,
        merchant=extracted.merchant,
        category=extracted.category,
        source=message.source_channel,
        raw_message_id=raw_message_id,
    )
    transaction_id = store.save_transaction(transaction)
    store.link_raw_message(raw_message_id, transaction_id)
    return transaction_id


async def ingest_messages(
    user_id: Optional[str],
    source: MessageSource,
    parser: Optional[SemanticParser],
    store: IngestionStore,
    limit: int = 100,
    sender: Optional[str] = None,
) -> IngestionSummary:
    """
    Import one batch of messages for a user.

    Flow:
    1. Fetch raw messages (MessageSourceError propagates)
    2. Keep classifier candidates only
    3. One semantic parser batch call (failure falls back to regex-only)
    4. Extract, then persist one message at a time; a failing message is
       counted and the batch continues
    """
    if not user_id:
        raise NotAuthenticatedError()

    start_time = time.time()
    messages = await source.fetch(limit, sender)
    summary = IngestionSummary(total=len(messages))

    candidates = [m for m in messages if is_candidate(m.sender, m.body)]
    summary.candidates = len(candidates)

    hints = await fetch_hints(parser, user_id, candidates)
    summary.hints_received = len(hints)

    for result in extract_batch(candidates, hints):
        if result.skipped_by_hint:
            summary.skipped_by_llm += 1
            continue
        if result.transaction is None:
            summary.no_amount += 1
            continue

        summary.processed += 1
        if result.transaction.merchant_from_hint:
            summary.merchant_from_llm += 1
        elif result.transaction.merchant == FALLBACK_MERCHANT:
            summary.merchant_from_fallback += 1

        try:
            persist_result(store, user_id, result)
            summary.saved += 1
        except Exception as e:
            summary.errors += 1
            logger.error(
                f"Failed to save message {result.message.message_id}: {e}",
                extra={"user_id": user_id, "sender": result.message.sender},
            )

    record_ingestion(summary)
    log_ingestion_summary(user_id, summary, (time.time() - start_time) * 1000)
    return summary
