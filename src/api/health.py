"""Health check endpoint."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.db.database import get_db

router = APIRouter()


@router.get("/health")
def health_check(request: Request, db: Session = Depends(get_db)) -> dict[str, str]:
    """Return application, database and synthesis provider status."""
    provider = request.app.state.synthesis_provider
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        return {"status": "error", "database": "disconnected", "synthesis": provider.name}
    return {"status": "ok", "database": "connected", "synthesis": provider.name}
