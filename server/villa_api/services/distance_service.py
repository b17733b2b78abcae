"""Travel distance to the villa via the Google Maps Distance Matrix API."""

import logging
from typing import Optional

import httpx

from ..core.config import settings
from ..core.exceptions import ExternalServiceError, ServiceUnavailableError
from ..schemas.marketing import DistanceResponse

logger = logging.getLogger(__name__)

DISTANCE_MATRIX_URL = "https://maps.googleapis.com/maps/api/distancematrix/json"


class DistanceService:
    """Looks up driving distance and time between two places."""

    def __init__(self, api_key: Optional[str] = None, http_client: Optional[httpx.AsyncClient] = None):
        self.api_key = api_key if api_key is not None else settings.google_maps_api_key
        self.http_client = http_client

    async def get_distance(self, origin: str, destination: Optional[str] = None) -> DistanceResponse:
        """
        Look up the distance from ``origin`` to ``destination``.

        Args:
            origin: Address or "lat,lng"
            destination: Address or "lat,lng"; defaults to the villa

        Raises:
            ServiceUnavailableError: If no Google Maps key is configured
            ExternalServiceError: If the API call fails or finds no route
        """
        if not self.api_key:
            raise ServiceUnavailableError("google_maps")

        destination = destination or settings.villa_address
        params = {
            "origins": origin,
            "destinations": destination,
            "mode": "driving",
            "units": "metric",
            "language": "it",
            "key": self.api_key,
        }

        try:
            if self.http_client is not None:
                response = await self.http_client.get(DISTANCE_MATRIX_URL, params=params)
            else:
                async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
                    response = await client.get(DISTANCE_MATRIX_URL, params=params)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Distance Matrix request failed", extra={"origin": origin, "error": str(e)})
            raise ExternalServiceError("google_maps")

        if data.get("status") != "OK":
            logger.error("Distance Matrix returned an error", extra={"origin": origin, "status": data.get("status")})
            raise ExternalServiceError("google_maps", detail=data.get("error_message") or "Distance lookup failed")

        try:
            element = data["rows"][0]["elements"][0]
        except (KeyError, IndexError):
            raise ExternalServiceError("google_maps", detail="Distance lookup returned no results")

        if element.get("status") != "OK":
            logger.warning(
                "No route found",
                extra={"origin": origin, "destination": destination, "status": element.get("status")}
            )
            raise ExternalServiceError("google_maps", detail="No route found between origin and destination")

        return DistanceResponse(
            origin=(data.get("origin_addresses") or [origin])[0],
            destination=(data.get("destination_addresses") or [destination])[0],
            distance_text=element["distance"]["text"],
            distance_meters=element["distance"]["value"],
            duration_text=element["duration"]["text"],
            duration_seconds=element["duration"]["value"],
        )
