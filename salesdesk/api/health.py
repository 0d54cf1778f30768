"""Health check endpoint with a database connectivity check."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from salesdesk.core.config import Settings, get_settings
from salesdesk.core.database import check_db_connected, get_db
from salesdesk.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def get_health(
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> HealthResponse:
    """Service status for load balancers; never requires a session."""
    connected = check_db_connected(db)
    return HealthResponse(
        status="ok" if connected else "degraded",
        environment=settings.APP_ENV,
        database="connected" if connected else "disconnected",
        admin_identity_configured=settings.SUPABASE_SERVICE_ROLE_KEY is not None,
    )
