"""POST /v1/ingest - Batch import of device messages"""

import logging
from dataclasses import asdict
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from fincognia_gateway.api.v1.schemas import IngestRequest, IngestResponse
from fincognia_gateway.api.dependencies import get_current_user_id, get_request_id, get_semantic_parser_client
from fincognia_gateway.config import settings
from fincognia_gateway.domain.exceptions import MessageSourceError
from fincognia_gateway.domain.models import RawMessage
from fincognia_gateway.infrastructure.clients.message_source import InlineMessageSource
from fincognia_gateway.infrastructure.clients.semantic_parser import SemanticParserClient
from fincognia_gateway.infrastructure.database.repositories import SqlIngestionStore
from fincognia_gateway.infrastructure.database.session import get_db
from fincognia_gateway.services.ingestion import ingest_messages

router = APIRouter()


@router.post("/ingest", response_model=IngestResponse)
async def ingest(
    request_body: IngestRequest,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    parser: Optional[SemanticParserClient] = Depends(get_semantic_parser_client),
):
    """
    Classify, parse and store a batch of messages.

    Flow:
    1. Keep the newest `limit` messages matching the sender filter
    2. Classifier gate, then one semantic parser batch call
    3. Extract and persist each message independently
    4. Return the run summary
    """
    request_id = get_request_id(request)
    source = InlineMessageSource(
        RawMessage(
            id=m.id,
            sender=m.sender,
            body=m.body,
            received_at=m.received_at,
            source_channel=m.source_channel,
        )
        for m in request_body.messages
    )

    try:
        summary = await ingest_messages(
            user_id,
            source,
            parser,
            SqlIngestionStore(db),
            limit=request_body.limit or settings.ingest_default_limit,
            sender=request_body.sender,
        )
    except MessageSourceError as e:
        logging.error(f"Message source error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Messages could not be read, check permissions")

    return IngestResponse(**asdict(summary))
