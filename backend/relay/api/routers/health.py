from fastapi import APIRouter

from relay.core.config import get_settings
from relay.schemas import HealthResponse

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    settings = get_settings()
    return HealthResponse(
        service="agent-relay",
        env=settings.env,
        agent_configured=settings.agent_configured,
        bucket_configured=settings.bucket_configured,
    )
