"""
Async HTTP client for the inscriptions API.

Unwraps the {success, ...} envelope: successful calls return the envelope
dict, failed ones raise ApiError with the server's message.
"""

from typing import Any, Optional

import httpx


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


class AcaApiClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        token: Optional[str] = None,
        http: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self._http = http or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._owns_http = http is None
        self.token = token

    async def __aenter__(self) -> "AcaApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    async def _request(self, method: str, url: str, **kwargs) -> dict[str, Any]:
        try:
            response = await self._http.request(method, url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            raise ApiError(0, f"Error de conexión: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_error or not body.get("success", False):
            raise ApiError(response.status_code, body.get("error") or response.reason_phrase)
        return body

    async def get_events(self, **filters: Any) -> dict[str, Any]:
        params = {k: v for k, v in filters.items() if v is not None}
        return await self._request("GET", "/api/eventos", params=params)

    async def get_event(self, event_id: int) -> dict[str, Any]:
        return await self._request("GET", f"/api/eventos/{event_id}")

    async def inscribe(self, event_id: int) -> dict[str, Any]:
        return await self._request("POST", f"/api/eventos/{event_id}/inscribirse")

    async def cancel_inscription(self, inscription_id: str) -> dict[str, Any]:
        return await self._request("DELETE", f"/api/inscripciones/{inscription_id}")

    async def get_my_inscriptions(self) -> dict[str, Any]:
        return await self._request("GET", "/api/inscripciones/mis-inscripciones")
