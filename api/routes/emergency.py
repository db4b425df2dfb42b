import httpx
from fastapi import APIRouter, Depends, Query

from api.core.geo import Coordinate
from api.deps import get_http_client
from sources.emergency_client import get_emergency_contacts

emergency_router = APIRouter(prefix="/emergency", tags=["emergency"])


@emergency_router.get("")
async def get_emergency(
    lat: float = Query(..., ge=-90.0, le=90.0),
    lon: float = Query(..., ge=-180.0, le=180.0),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> dict:
    """Emergency numbers for the country containing (lat, lon)."""
    contacts = await get_emergency_contacts(client, Coordinate.validated(lat, lon))
    return contacts.to_dict()
