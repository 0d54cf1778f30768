"""Body of GET /api/health."""

from typing import Literal

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """``status`` drops to "degraded" while the database is unreachable."""

    status: Literal["ok", "degraded"]
    environment: str
    database: Literal["connected", "disconnected"]
    # False when SUPABASE_SERVICE_ROLE_KEY is unset; admin user create/delete then fail.
    admin_identity_configured: bool
