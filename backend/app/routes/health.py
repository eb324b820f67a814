from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.serialization_helpers import serialize_datetime
from app.services.rate_provider import get_last_update_time

router = APIRouter()


@router.get("/health")
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        last_update = get_last_update_time(db)
        database = "connected"
    except SQLAlchemyError:
        last_update = None
        database = "disconnected"

    body = {
        "service": "pricing-service",
        "status": "healthy" if database == "connected" else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": database,
        "last_rate_update": serialize_datetime(last_update),
    }
    return JSONResponse(body, status_code=200 if database == "connected" else 503)
