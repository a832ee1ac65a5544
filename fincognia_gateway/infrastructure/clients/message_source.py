"""Message source adapters"""

from typing import Iterable, List, Optional
from fincognia_gateway.domain.models import RawMessage


class InlineMessageSource:
    """Messages uploaded by the device in the import request"""

    def __init__(self, messages: Iterable[RawMessage]):
        self._messages = list(messages)

    async def fetch(self, limit: int, sender: Optional[str] = None) -> List[RawMessage]:
        """Newest first, optionally filtered by a case-insensitive sender substring"""
        messages = self._messages
        if sender:
            needle = sender.lower()
            messages = [m for m in messages if needle in (m.sender or "").lower()]
        messages = sorted(messages, key=lambda m: m.received_at, reverse=True)
        return messages[: max(limit, 0)]
