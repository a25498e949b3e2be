from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, runtime_checkable

import httpx

from app.core.logging_config import logger


@runtime_checkable
class GeolocationDistanceProvider(Protocol):
    """Driving distance in km between two free-text addresses. None (or raise) on failure."""

    async def lookup_distance_km(self, origin: str, destination: str) -> Optional[float]:
        ...


class GoogleDistanceMatrixProvider:
    """Google Maps Distance Matrix client (driving, metric)."""

    PATH = "/maps/api/distancematrix/json"

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://maps.googleapis.com",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not api_key:
            raise ValueError("Google Maps API key required")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    async def _get(self, params: Dict[str, Any]) -> httpx.Response:
        url = f"{self.base_url}{self.PATH}"
        if self._client is not None:
            return await self._client.get(url, params=params, timeout=self.timeout)
        async with httpx.AsyncClient() as client:
            return await client.get(url, params=params, timeout=self.timeout)

    async def lookup_distance_km(self, origin: str, destination: str) -> Optional[float]:
        params = {
            "origins": origin,
            "destinations": destination,
            "mode": "driving",
            "units": "metric",
            "key": self.api_key,
        }
        r = await self._get(params)
        r.raise_for_status()
        body = r.json()

        status = body.get("status")
        if status != "OK":
            logger.warning("distance_matrix_failed", status=status, origin=origin, destination=destination)
            return None

        try:
            element = body["rows"][0]["elements"][0]
        except (KeyError, IndexError, TypeError):
            logger.warning("distance_matrix_empty", origin=origin, destination=destination)
            return None

        if element.get("status") != "OK":
            logger.warning(
                "distance_element_failed",
                status=element.get("status"),
                origin=origin,
                destination=destination,
            )
            return None

        meters = (element.get("distance") or {}).get("value")
        if not meters:
            return None
        return meters / 1000
