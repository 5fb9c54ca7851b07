"""
Async client for the warehouse order, assignment and user services.

All calls go through one httpx.AsyncClient. Responses may come wrapped in the
service's envelope:

    {"success": true, "message": "...", "data": {...}}

in which case "data" is unwrapped. Every failure is raised as
RemoteServiceError (or ApprovalRejectedError for refused coordinator
credentials), carrying the server's "message" when the body has one.
No retries are made here; the operator re-triggers failed actions.
"""

from typing import Any, Dict, List, Optional, Tuple

import httpx

from exceptions import ApprovalRejectedError, RemoteServiceError
from logger import get_logger
from models import AssignmentOutcome, Order, PendingApprovalRequest, User

logger = get_logger(__name__)

LOGIN_PATH = "/auth/login"
ORDERS_PATH = "/mobile/orders"
USERS_PATH = "/user-manager/users"

PICKER_ROLE = "picker"

# Statuses the pending-pick endpoint uses for refused coordinator credentials
APPROVAL_REJECTED_STATUSES = (401, 403, 422)


class PickingApiClient:
    """
    Thin async wrapper around the REST endpoints used by the picking client.

    Args:
        base_url: API root, e.g. "http://192.168.31.147:8040/api"
        timeout: Per-request timeout in seconds
        token: Bearer access token, if already logged in
        transport: Optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(self, base_url: str, timeout: float = 10, token: Optional[str] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip('/')
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )
        self.set_token(token)

    def set_token(self, token: Optional[str]):
        """Set or drop the bearer token sent with every request."""
        if token:
            self._client.headers["Authorization"] = f"Bearer {token}"
        else:
            self._client.headers.pop("Authorization", None)

    @property
    def has_token(self) -> bool:
        return "Authorization" in self._client.headers

    async def aclose(self):
        await self._client.aclose()

    async def __aenter__(self) -> 'PickingApiClient':
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    async def login(self, username: str, password: str) -> Tuple[User, Dict[str, str]]:
        """
        Exchange primary credentials for tokens.

        Returns:
            (user, {"access_token": ..., "refresh_token": ...})
        """
        data = await self._request("POST", LOGIN_PATH,
                                   json={"username": username, "password": password})
        tokens = {
            "access_token": data.get("access_token"),
            "refresh_token": data.get("refresh_token"),
        }
        return User.from_api(data["user"]), tokens

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    async def list_orders(self) -> List[Order]:
        """Orders assigned to the logged-in picker."""
        data = await self._request("GET", ORDERS_PATH)
        return [self._parse_order(item) for item in data or []]

    async def get_order(self, order_id) -> Order:
        data = await self._request("GET", f"{ORDERS_PATH}/{order_id}")
        return self._parse_order(data)

    async def list_picked_orders(self, page: int = 1, limit: int = 10,
                                 search: str = "") -> Tuple[List[Order], Dict[str, int]]:
        """
        One page of picked orders for the coordinator dashboard.

        Returns:
            (orders, meta) where meta has current_page and last_page. A
            response without pagination metadata is treated as a single page.
        """
        body = await self._request("GET", f"{ORDERS_PATH}/picked-orders",
                                   params={"page": page, "limit": limit, "search": search},
                                   unwrap=False)
        meta = body.get("meta") or {"current_page": page, "last_page": 1}
        orders = [self._parse_order(item) for item in body.get("data") or []]
        return orders, meta

    async def complete_order(self, order_id) -> Any:
        return await self._request("PUT", f"{ORDERS_PATH}/{order_id}/complete")

    async def mark_pending(self, order_id, request: PendingApprovalRequest) -> Any:
        """
        Move an order to pending; the server re-authenticates the coordinator.

        Raises:
            ApprovalRejectedError: Coordinator credentials were refused
            RemoteServiceError: Any other failure
        """
        try:
            return await self._request("PUT", f"{ORDERS_PATH}/{order_id}/pending-pick",
                                       json=request.to_payload())
        except RemoteServiceError as e:
            if e.status_code in APPROVAL_REJECTED_STATUSES:
                raise ApprovalRejectedError(str(e), status_code=e.status_code,
                                            server_message=e.server_message) from e
            raise

    # ------------------------------------------------------------------
    # Assignment
    # ------------------------------------------------------------------

    async def bulk_assign_picker(self, picker_id, trackings: List[str]) -> Optional[AssignmentOutcome]:
        """
        Assign trackings to a picker in one call.

        Returns:
            The per-tracking counts, or None when a successful response carries
            no summary (the assignment went through, counts are unknown)
        """
        data = await self._request("POST", f"{ORDERS_PATH}/bulk-assign-picker",
                                   json={"picker_id": picker_id, "trackings": list(trackings)})
        summary = data.get("summary") if isinstance(data, dict) else None
        if summary is None:
            logger.warning(f"Bulk assignment of {len(trackings)} trackings returned no summary")
            return None
        return AssignmentOutcome.from_api(summary)

    # ------------------------------------------------------------------
    # User directory
    # ------------------------------------------------------------------

    async def list_users(self, page: int = 1, limit: int = 50,
                         search: str = "") -> Tuple[List[User], Dict[str, Any]]:
        data = await self._request("GET", USERS_PATH,
                                   params={"page": page, "limit": limit, "search": search})
        users = [User.from_api(u) for u in (data or {}).get("users") or []]
        return users, (data or {}).get("pagination") or {}

    async def list_pickers(self, limit: int = 50) -> List[User]:
        """
        All users holding the picker role, across every page of the directory.
        """
        collected: List[User] = []
        page = 1

        while True:
            users, pagination = await self.list_users(page=page, limit=limit)
            collected.extend(users)

            if not users or not pagination or len(collected) >= pagination.get("total", 0):
                break
            page += 1

        pickers = [u for u in collected if u.has_role(PICKER_ROLE)]
        logger.info(f"Loaded {len(pickers)} pickers from {len(collected)} users")
        return pickers

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, unwrap: bool = True, **kwargs) -> Any:
        logger.debug(f"{method} {path}")

        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise RemoteServiceError(f"Could not reach the server: {e}") from e

        body = self._parse_body(response)

        if response.is_error:
            server_message = body.get("message") if isinstance(body, dict) else None
            logger.error(f"{method} {path} returned {response.status_code}: {server_message}")
            raise RemoteServiceError(
                f"Request failed with status {response.status_code}",
                status_code=response.status_code,
                server_message=server_message,
            )

        if isinstance(body, dict) and body.get("success") is False:
            logger.error(f"{method} {path} reported failure: {body.get('message')}")
            raise RemoteServiceError(
                "Server reported failure",
                status_code=response.status_code,
                server_message=body.get("message"),
            )

        if unwrap and isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    @staticmethod
    def _parse_order(data: Dict[str, Any]) -> Order:
        try:
            return Order.from_api(data)
        except ValueError as e:
            logger.error(f"Malformed order payload: {e}")
            raise RemoteServiceError(f"Malformed order payload: {e}") from e

    @staticmethod
    def _parse_body(response: httpx.Response) -> Any:
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {}
