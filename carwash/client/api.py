from typing import Any, Dict, List, Mapping, Optional

import httpx

from carwash.core.config import client_settings
from carwash.core.logger import logger


class APIError(Exception):
    """A failed API call, carrying the server's message when there is one."""

    def __init__(self, message: str, status_code: Optional[int] = None, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors or []

    def describe(self) -> str:
        """Validation errors joined into one line, else the message."""
        if self.errors:
            return ", ".join(e.get("message", "") for e in self.errors)
        return self.message


def _json_object(response: httpx.Response) -> Optional[Dict[str, Any]]:
    """Decoded body when it is a JSON object, else None (HTML error pages, lists)."""
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def clean_params(params: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in params.items() if v is not None and v != ""}


class BookingAPI:
    """Thin async wrapper around the booking REST endpoints. Returns decoded JSON bodies."""

    def __init__(self, base_url: str = None, timeout: float = None, client: httpx.AsyncClient = None):
        self.client = client or httpx.AsyncClient(
            base_url=base_url or client_settings.API_BASE_URL,
            timeout=timeout or client_settings.REQUEST_TIMEOUT,
            headers={"Content-Type": "application/json"},
        )

    async def aclose(self):
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    async def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        logger.debug(f"Making {method} request to {url}")
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"❌ API request failed: {e}")
            raise APIError("Network error - please check your connection") from e

        if response.is_error:
            body = _json_object(response) or {}
            message = body.get("message") or "An error occurred"
            logger.warning(f"⚠️ API {method} {url} -> {response.status_code}: {message}")
            errors = body.get("errors")
            raise APIError(message, status_code=response.status_code, errors=errors if isinstance(errors, list) else None)

        body = _json_object(response)
        if body is None:
            logger.error(f"❌ API {method} {url} -> {response.status_code}: response is not a JSON object")
            raise APIError("Invalid response from server", status_code=response.status_code)
        return body

    async def get_bookings(self, params: Mapping[str, Any] = None) -> Dict[str, Any]:
        return await self._request("GET", "/bookings", params=clean_params(params or {}))

    async def search_bookings(self, query: str) -> Dict[str, Any]:
        return await self._request("GET", "/bookings/search", params={"q": query})

    async def get_booking(self, booking_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/bookings/{booking_id}")

    async def create_booking(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/bookings", json=dict(data))

    async def update_booking(self, booking_id: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/bookings/{booking_id}", json=dict(data))

    async def delete_booking(self, booking_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/bookings/{booking_id}")
