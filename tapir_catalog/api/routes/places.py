"""Place routes."""

from fastapi import APIRouter, Depends

from ..db.store import CatalogStore
from ..models.schemas import PlacesResponse
from ..services.feed import PlacesService
from .deps import get_catalog_store

router = APIRouter(prefix="/places", tags=["places"])


@router.get("", response_model=PlacesResponse)
async def list_places(store: CatalogStore = Depends(get_catalog_store)) -> PlacesResponse:
    """List countries and cities with post counts, plus the unknown-place count."""
    return await PlacesService(store).list_places()
