"""Location endpoints. Reads are public; mutations require an administrator."""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from parkease.application.services.location_service import LocationService
from parkease.domain.value_objects.actor import Actor
from parkease.infrastructure.services import get_service_factory
from parkease.presentation.api.middleware.identity import require_admin
from parkease.presentation.api.schemas.location_schemas import (
    AvailabilityResponse,
    LocationCreateRequest,
    LocationListResponse,
    LocationResponse,
    LocationUpdateRequest,
    PricingUpdateRequest,
)

router = APIRouter()


def get_location_service() -> LocationService:
    return get_service_factory().location_service


def _rates(pricing):
    return {key: str(value) for key, value in pricing.items()} if pricing else None


@router.get("/")
async def list_locations(service: LocationService = Depends(get_location_service)) -> LocationListResponse:
    """List active locations, newest first."""
    locations = await service.list_locations()
    return LocationListResponse(
        locations=[LocationResponse.from_entity(location) for location in locations],
        total_count=len(locations)
    )


@router.get("/{location_id}")
async def get_location(
    location_id: UUID,
    service: LocationService = Depends(get_location_service)
) -> LocationResponse:
    return LocationResponse.from_entity(await service.get_location(location_id))


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_location(
    request: LocationCreateRequest,
    actor: Actor = Depends(require_admin),
    service: LocationService = Depends(get_location_service)
) -> LocationResponse:
    location = await service.create_location(
        actor=actor,
        code=request.location_id,
        name=request.name,
        address=request.address,
        latitude=request.latitude,
        longitude=request.longitude,
        pricing=_rates(request.pricing)
    )
    return LocationResponse.from_entity(location)


@router.put("/{location_id}")
async def update_location(
    location_id: UUID,
    request: LocationUpdateRequest,
    actor: Actor = Depends(require_admin),
    service: LocationService = Depends(get_location_service)
) -> LocationResponse:
    location = await service.update_location(
        location_id,
        actor,
        name=request.name,
        address=request.address,
        latitude=request.latitude,
        longitude=request.longitude,
        is_active=request.is_active,
        pricing=_rates(request.pricing)
    )
    return LocationResponse.from_entity(location)


@router.patch("/{location_id}/pricing")
async def update_pricing(
    location_id: UUID,
    request: PricingUpdateRequest,
    actor: Actor = Depends(require_admin),
    service: LocationService = Depends(get_location_service)
) -> LocationResponse:
    location = await service.update_pricing(location_id, actor, _rates(request.pricing))
    return LocationResponse.from_entity(location)


@router.delete("/{location_id}")
async def delete_location(
    location_id: UUID,
    actor: Actor = Depends(require_admin),
    service: LocationService = Depends(get_location_service)
) -> dict[str, str]:
    """Soft delete a location."""
    await service.deactivate_location(location_id, actor)
    return {"message": "Location deleted successfully"}


@router.get("/{location_id}/availability")
async def get_availability(
    location_id: UUID,
    service: LocationService = Depends(get_location_service)
) -> AvailabilityResponse:
    snapshot = await service.get_availability(location_id)
    return AvailabilityResponse.from_snapshot(location_id, snapshot)


@router.post("/{location_id}/availability/reconcile")
async def reconcile_availability(
    location_id: UUID,
    actor: Actor = Depends(require_admin),
    service: LocationService = Depends(get_location_service)
) -> AvailabilityResponse:
    """Rewrite the availability counters from the slot records."""
    snapshot = await service.reconcile_availability(location_id, actor)
    return AvailabilityResponse.from_snapshot(location_id, snapshot)
