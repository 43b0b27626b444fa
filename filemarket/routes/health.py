import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, text

from filemarket.database import get_session
from filemarket.utils.responses import success

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def health_check(session: Session = Depends(get_session)):
    db_status = "ok"

    try:
        # simple DB ping
        session.exec(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check: database ping failed")
        db_status = "failed"

    return success({
        "status": "ok",
        "database": db_status,
        "timestamp": datetime.utcnow().isoformat(),
    })
