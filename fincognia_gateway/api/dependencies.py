"""Dependency injection for FastAPI endpoints"""

from typing import Optional
from fastapi import Header, HTTPException, Request
from fincognia_gateway.config import settings
from fincognia_gateway.domain.exceptions import NotAuthenticatedError
from fincognia_gateway.infrastructure.clients.semantic_parser import SemanticParserClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Resolve the already-authenticated user from the X-User-ID header"""
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail=str(NotAuthenticatedError()))
    return user_id


def get_semantic_parser_client() -> Optional[SemanticParserClient]:
    """Provide semantic parser client instance; None runs ingestion regex-only"""
    if not settings.semantic_parser_enabled:
        return None
    return SemanticParserClient()
