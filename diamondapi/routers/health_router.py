from fastapi import APIRouter, Request

from diamondapi.schemas.health import HealthCheckResponse

router = APIRouter()


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(request: Request) -> HealthCheckResponse:
    """Health check endpoint."""
    scheduler = getattr(request.app.state, "scheduler", None)
    return HealthCheckResponse(sweeper_running=bool(scheduler and scheduler.running))
