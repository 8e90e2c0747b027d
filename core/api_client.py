"""HTTP client for the reservation service's REST interface."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from core.exceptions import ApiError

logger = logging.getLogger(__name__)


class ApiClient:
    """Thin async wrapper over the service's read and write endpoints."""

    def __init__(self, base_url: str, timeout: float = 10.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Args:
            base_url: Service root including the API prefix, e.g. ``http://host:8080/api``
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        self.base_url = base_url.rstrip('/')
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            headers={"Content-Type": "application/json"},
            transport=transport
        )

    async def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        response = await self._client.request(method, path, json=payload)
        if response.is_error:
            raise ApiError(response.status_code, response.text, method=method, path=path)
        if not response.content:
            return None
        return response.json()

    # Reads

    async def get_status(self) -> Dict[str, Any]:
        return await self._request("GET", "/status")

    async def get_dates(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/dates")

    async def get_completed_reservations(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/completed-reservations")

    async def get_config(self) -> Dict[str, Any]:
        return await self._request("GET", "/config")

    # Writes

    async def add_date(self, date: str) -> Dict[str, Any]:
        return await self._request("POST", "/dates", {"date": date})

    async def update_date(self, date: str, enabled: Optional[bool] = None,
                          time_slots: Optional[List[str]] = None) -> Dict[str, Any]:
        """
        Partially update a monitored date.

        Only the fields that are given are sent, so toggling ``enabled``
        never clobbers the time slots and vice versa.
        """
        payload: Dict[str, Any] = {}
        if enabled is not None:
            payload["enabled"] = enabled
        if time_slots is not None:
            payload["timeSlots"] = list(time_slots)
        if not payload:
            raise ValueError("update_date needs enabled or time_slots")
        return await self._request("PUT", f"/dates/{date}", payload)

    async def remove_date(self, date: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/dates/{date}")

    async def start_monitoring(self) -> Dict[str, Any]:
        return await self._request("POST", "/monitoring/start", {})

    async def stop_monitoring(self) -> Dict[str, Any]:
        return await self._request("POST", "/monitoring/stop", {})

    async def set_monitoring_time_restriction(self, enabled: bool) -> Dict[str, Any]:
        return await self._request("PUT", "/config/monitoring-time-restriction", {"enabled": enabled})

    async def manual_reserve(self, date: str, url: str) -> Dict[str, Any]:
        return await self._request("POST", "/manual-reserve", {"date": date, "url": url})

    async def aclose(self) -> None:
        await self._client.aclose()
