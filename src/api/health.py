"""Health check endpoint."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.orm import Session

from src.db.database import get_db

router = APIRouter()


@router.get("/health")
def health_check(request: Request, db: Session = Depends(get_db)) -> dict[str, str]:
    """Return application, database and narrator status."""
    narrative = getattr(request.app.state, "narrative_service", None)
    provider = narrative.ai.name if narrative is not None else "none"
    try:
        db.execute(text("SELECT 1"))
        return {"status": "ok", "database": "connected", "ai_provider": provider}
    except Exception:
        return {"status": "error", "database": "disconnected", "ai_provider": provider}
