"""Health check endpoints."""

from fastapi import APIRouter

from parkease import __version__

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "parkease"}


@router.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "ParkEase API", "version": __version__}
