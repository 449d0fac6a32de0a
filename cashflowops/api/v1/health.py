"""Health check endpoint with database connectivity and realtime client count."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cashflowops.api.deps import get_notifier
from cashflowops.core.config import settings
from cashflowops.core.database import check_db_connected, get_db
from cashflowops.schemas.health import HealthResponse
from cashflowops.services.notifier import AlertNotifier

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(
    db: Annotated[Session, Depends(get_db)],
    notifier: Annotated[AlertNotifier, Depends(get_notifier)],
) -> HealthResponse:
    """
    Return service health status, database connectivity and connected realtime clients.
    Used by load balancers and monitoring.
    """
    db_status = "connected" if check_db_connected(db) else "disconnected"

    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        database=db_status,
        realtime_clients=notifier.connection_count,
    )
