"""Location router: travel distance to the villa."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from ..schemas.marketing import DistanceResponse
from ..services.distance_service import DistanceService

router = APIRouter(prefix="/api", tags=["location"])


def get_distance_service() -> DistanceService:
    return DistanceService()


DISTANCE_DEPENDENCY = Depends(get_distance_service)


@router.get("/distance", response_model=DistanceResponse)
async def get_distance(
    origin: str = Query(..., min_length=1, description="Address or lat,lng"),
    destination: Optional[str] = Query(None, description="Defaults to the villa"),
    distance_service: DistanceService = DISTANCE_DEPENDENCY,
) -> JSONResponse:
    """Driving distance and time between two places, by default to the villa."""
    result = await distance_service.get_distance(origin, destination)
    return JSONResponse(status_code=200, content=result.to_json())
