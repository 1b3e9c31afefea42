# taxtron/routers/health.py
"""
Liveness probe for the transfer backend.
Pings the database and reports how many transfers are waiting on an admin.
"""

from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from taxtron.database import get_db
from taxtron.models.ownership_transfer import OwnershipTransfer, PENDING_ADMIN_APPROVAL
from taxtron.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.get("/health", summary="Service and database health")
def health_check(db: Session = Depends(get_db)):
    body = {
        "status": "ok",
        "service": "taxtron-ownership-transfer",
        "timestamp": datetime.utcnow().isoformat(),
        "database": "unknown",
        "pendingTransfers": None,
    }

    try:
        db.execute(text("SELECT 1"))
        body["pendingTransfers"] = (
            db.query(func.count(OwnershipTransfer.id))
            .filter(OwnershipTransfer.status == PENDING_ADMIN_APPROVAL)
            .scalar()
        )
        body["database"] = "ok"
    except SQLAlchemyError as e:
        logger.warning(f"[HEALTH] Database check failed: {e}", exc_info=True)
        body["database"] = "error"
        body["status"] = "degraded"

    return body
