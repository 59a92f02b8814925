"""Health check endpoint."""

from fastapi import APIRouter

from index_discovery.dependencies import CollectionConfigsDep, SettingsDep
from index_discovery.schemas.health import HealthResponse

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Returns the API status and the collections it can probe",
)
async def health_check(settings: SettingsDep, collections: CollectionConfigsDep) -> HealthResponse:
    """Report API status together with the configured collections."""
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
        collections=[config.collection_name for config in collections],
        catalog_path=settings.catalog_path,
    )
