from fastapi import FastAPI
from pydantic import BaseModel
from pathlib import Path
from typing import List, Optional
import json
import os

app = FastAPI(title="Mock Semantic Parser", version="1.0.0")
# Support both local development and Docker
DATA_DIR = Path("/semantic_stub") if os.path.exists("/semantic_stub") else Path(__file__).resolve().parents[1] / "semantic_stub"


class StubMessage(BaseModel):
    id: str
    sender: str
    body: str
    receivedAt: Optional[int] = None


class ParseBatchRequest(BaseModel):
    userId: str
    messages: List[StubMessage]


def load_hints() -> dict:
    return json.loads((DATA_DIR / "hints.json").read_text())


@app.get("/health")
def health(): return {"status": "ok"}

@app.post("/api/parse-sms-batch")
def parse_sms_batch(request: ParseBatchRequest):
    """Canned hints for known message ids; unknown ids get no result"""
    hints = load_hints()
    results = [{"id": m.id, **hints[m.id]} for m in request.messages if m.id in hints]
    return {"results": results}
