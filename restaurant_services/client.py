"""
Async HTTP client for the three services.

Mirrors what the web frontend does: one base URL per service, an optional
Bearer token on every request, JSON in and out.

Usage:
    async with RestaurantClient() as client:
        client.set_token(id_token)
        order = await client.orders.create(user_id="user123", items=[...], total=37.8)
        await client.feedback.create(user_id="user123", rating=5)
"""

import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

AUTH_API = "http://localhost:3001"
ORDERS_API = "http://localhost:3002"
FEEDBACK_API = "http://localhost:3003"


class ServiceRequestError(Exception):
    """A service answered with a non-2xx status."""

    def __init__(self, status_code: int, error: str, message: Optional[str] = None):
        super().__init__(f"{status_code} {error}" + (f": {message}" if message else ""))
        self.status_code = status_code
        self.error = error
        self.message = message


class ServiceAPI:
    """Shared plumbing for one service's base URL."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)
        self.token: Optional[str] = None

    async def _request(self, method: str, path: str, **kwargs) -> dict[str, Any]:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        response = await self._http.request(method, path, headers=headers, **kwargs)

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.is_error:
            logger.debug(f"{method} {path} → {response.status_code} {body}")
            raise ServiceRequestError(
                response.status_code,
                body.get("error", response.reason_phrase),
                body.get("message"),
            )

        return body

    async def health(self) -> dict[str, Any]:
        return await self._request("GET", "/health")

    async def aclose(self) -> None:
        await self._http.aclose()


class AuthAPI(ServiceAPI):
    def __init__(self, base_url: str = AUTH_API, **kwargs):
        super().__init__(base_url, **kwargs)

    async def login(self, id_token: str) -> dict[str, Any]:
        return await self._request("POST", "/login", json={"idToken": id_token})

    async def register(
        self,
        email: str,
        password: str,
        display_name: Optional[str] = None,
    ) -> dict[str, Any]:
        payload = {"email": email, "password": password}
        if display_name:
            payload["displayName"] = display_name
        return await self._request("POST", "/register", json=payload)

    async def profile(self) -> dict[str, Any]:
        return await self._request("GET", "/profile")


class OrdersAPI(ServiceAPI):
    def __init__(self, base_url: str = ORDERS_API, **kwargs):
        super().__init__(base_url, **kwargs)

    async def list(
        self,
        user_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> dict[str, Any]:
        params = {k: v for k, v in (("user_id", user_id), ("status", status)) if v}
        return await self._request("GET", "/orders", params=params)

    async def get(self, order_id: int) -> dict[str, Any]:
        return await self._request("GET", f"/orders/{order_id}")

    async def create(self, user_id: str, items: list, total: float) -> dict[str, Any]:
        return await self._request(
            "POST", "/orders", json={"user_id": user_id, "items": items, "total": total}
        )

    async def update(self, order_id: int, **changes) -> dict[str, Any]:
        return await self._request("PUT", f"/orders/{order_id}", json=changes)

    async def delete(self, order_id: int) -> dict[str, Any]:
        return await self._request("DELETE", f"/orders/{order_id}")


class FeedbackAPI(ServiceAPI):
    def __init__(self, base_url: str = FEEDBACK_API, **kwargs):
        super().__init__(base_url, **kwargs)

    async def list(
        self,
        user_id: Optional[str] = None,
        rating: Optional[int] = None,
    ) -> dict[str, Any]:
        params = {k: v for k, v in (("user_id", user_id), ("rating", rating)) if v}
        return await self._request("GET", "/feedback", params=params)

    async def get(self, feedback_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/feedback/{feedback_id}")

    async def create(
        self,
        user_id: str,
        rating: int,
        comment: Optional[str] = None,
        order_id: Optional[Any] = None,
    ) -> dict[str, Any]:
        payload = {"user_id": user_id, "rating": rating}
        if comment is not None:
            payload["comment"] = comment
        if order_id is not None:
            payload["order_id"] = order_id
        return await self._request("POST", "/feedback", json=payload)

    async def delete(self, feedback_id: str) -> dict[str, Any]:
        return await self._request("DELETE", f"/feedback/{feedback_id}")

    async def stats(self) -> dict[str, Any]:
        return await self._request("GET", "/feedback/stats")


class RestaurantClient:
    """Groups the three service clients behind one token."""

    def __init__(
        self,
        auth_url: str = AUTH_API,
        orders_url: str = ORDERS_API,
        feedback_url: str = FEEDBACK_API,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.auth = AuthAPI(auth_url, timeout=timeout, transport=transport)
        self.orders = OrdersAPI(orders_url, timeout=timeout, transport=transport)
        self.feedback = FeedbackAPI(feedback_url, timeout=timeout, transport=transport)

    def set_token(self, token: Optional[str]) -> None:
        for api in (self.auth, self.orders, self.feedback):
            api.token = token

    async def health(self) -> dict[str, dict[str, Any]]:
        """Health of every service; unreachable ones are reported, not raised."""
        report = {}
        for name, api in (("auth", self.auth), ("orders", self.orders), ("feedback", self.feedback)):
            try:
                report[name] = await api.health()
            except (httpx.HTTPError, ServiceRequestError) as e:
                report[name] = {"status": "DOWN", "error": str(e)}
        return report

    async def aclose(self) -> None:
        for api in (self.auth, self.orders, self.feedback):
            await api.aclose()

    async def __aenter__(self) -> "RestaurantClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
