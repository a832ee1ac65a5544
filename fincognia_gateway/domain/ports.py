"""Ports (interfaces) used by the ingestion pipeline.

Ports define the minimal contracts for the message source, semantic parser and
persistence collaborators so the pipeline can run against any backend.
"""

from typing import Dict, List, Optional, Protocol

from fincognia_gateway.domain.models import RawMessage, SemanticHint, Transaction


class MessageSource(Protocol):
    """Yields raw messages; an empty list means no data, not an error."""

    async def fetch(self, limit: int, sender: Optional[str] = None) -> List[RawMessage]:
        ...


class SemanticParser(Protocol):
    """Batch semantic parsing; absent ids mean no hint for that message."""

    async def parse_batch(self, user_id: str, messages: List[RawMessage]) -> Dict[str, SemanticHint]:
        ...


class IngestionStore(Protocol):
    """Append-only writes for one ingestion run; each call is durable on return."""

    def save_raw_message(self, user_id: str, message: RawMessage) -> str:
        ...

    def save_transaction(self, transaction: Transaction) -> str:
        ...

    def link_raw_message(self, raw_message_id: str, transaction_id: str) -> None:
        ...
