"""
QueryPilot API client
"""
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar
import httpx
import pydantic
import structlog

from querypilot.client.config import get_client_settings
from querypilot.client.errors import ExecutionError, error_for_status
from querypilot.client.models import AuthResult, UserInfo, ConnectionInfo, PermissionInfo, AskResult
from querypilot.client.policy import SessionExpiryPolicy
from querypilot.client.session import Session, SessionStore, UserSnapshot

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


class QueryPilotClient:
    """
    Async client for the QueryPilot HTTP API.

    Every call carries the bearer token of the store's current session.
    Failures are raised as the typed errors of ``querypilot.client.errors``;
    an AuthenticationError is handed to the expiry policy first and the
    call is not retried.
    """

    def __init__(
        self,
        store: SessionStore,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        policy: Optional[SessionExpiryPolicy] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        settings = get_client_settings()
        self.store = store
        self.policy = policy or SessionExpiryPolicy(store, login_path=settings.LOGIN_PATH)
        self._http = httpx.AsyncClient(
            base_url=(base_url or settings.BASE_URL).rstrip("/"),
            timeout=timeout or settings.TIMEOUT_SECONDS,
            transport=transport
        )

    async def __aenter__(self) -> "QueryPilotClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _headers(self) -> Dict[str, str]:
        session = self.store.current
        if session.is_authenticated:
            return {"Authorization": f"Bearer {session.token}"}
        return {}

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None
    ) -> Any:
        try:
            response = await self._http.request(method, path, json=json, params=params, headers=self._headers())
        except httpx.TimeoutException as e:
            raise ExecutionError(f"Request timed out: {method} {path}") from e
        except httpx.HTTPError as e:
            raise ExecutionError(f"Request failed: {e}") from e

        if response.status_code >= 400:
            message, code = self._error_details(response)
            error = error_for_status(response.status_code, message, code)
            logger.info("api_call_failed", method=method, path=path, status_code=response.status_code)
            self.policy.handle(error)
            raise error

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ExecutionError("Malformed response from server", response.status_code) from e

    @staticmethod
    def _error_details(response: httpx.Response) -> Tuple[str, Optional[str]]:
        """Message and error code from an error body, tolerating non-JSON replies."""
        fallback = f"HTTP {response.status_code}"
        try:
            body = response.json()
        except ValueError:
            return response.text or fallback, None
        if not isinstance(body, dict):
            return fallback, None
        message = body.get("message") or body.get("detail")
        code = body.get("code")
        return (str(message) if message else fallback), (code if isinstance(code, str) else None)

    @staticmethod
    def _parse(model: Type[ModelT], data: Any) -> ModelT:
        try:
            return model.model_validate(data)
        except pydantic.ValidationError as e:
            raise ExecutionError(f"Malformed response from server: {e}") from e

    def _parse_list(self, model: Type[ModelT], data: Any) -> List[ModelT]:
        if not isinstance(data, list):
            raise ExecutionError("Malformed response from server: expected a list")
        return [self._parse(model, item) for item in data]

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    async def _authenticate(self, path: str, username: str, password: str) -> Session:
        data = await self._request("POST", path, json={"username": username, "password": password})
        auth = self._parse(AuthResult, data)
        session = Session(token=auth.token, user=UserSnapshot(username=auth.username, role=auth.role))
        self.store.replace(session)
        return session

    async def login(self, username: str, password: str) -> Session:
        return await self._authenticate("/auth/login", username, password)

    async def register(self, username: str, password: str) -> Session:
        """Create an analyst account; ends authenticated, exactly like login."""
        return await self._authenticate("/auth/register", username, password)

    def logout(self) -> None:
        """Local only. The token simply stops being sent."""
        self.store.clear()

    async def me(self) -> UserInfo:
        return self._parse(UserInfo, await self._request("GET", "/auth/me"))

    # ------------------------------------------------------------------
    # Admin: connections
    # ------------------------------------------------------------------

    async def list_connections(self) -> List[ConnectionInfo]:
        return self._parse_list(ConnectionInfo, await self._request("GET", "/admin/connections"))

    async def get_connection(self, connection_id: int) -> ConnectionInfo:
        return self._parse(ConnectionInfo, await self._request("GET", f"/admin/connections/{connection_id}"))

    async def create_connection(
        self,
        name: str,
        db_type: str,
        url: str,
        username: Optional[str] = None,
        password: Optional[str] = None
    ) -> ConnectionInfo:
        body = {"name": name, "type": db_type, "url": url, "username": username, "password": password}
        return self._parse(ConnectionInfo, await self._request("POST", "/admin/connections", json=body))

    async def delete_connection(self, connection_id: int) -> None:
        await self._request("DELETE", f"/admin/connections/{connection_id}")

    async def refresh_schema(self, connection_id: int) -> ConnectionInfo:
        data = await self._request("POST", f"/admin/connections/{connection_id}/refresh-schema")
        return self._parse(ConnectionInfo, data)

    # ------------------------------------------------------------------
    # Admin: permissions and users
    # ------------------------------------------------------------------

    async def grant_permission(self, user_id: int, connection_id: int) -> PermissionInfo:
        body = {"userId": user_id, "connectionId": connection_id}
        return self._parse(PermissionInfo, await self._request("POST", "/admin/permissions", json=body))

    async def revoke_permission(self, user_id: int, connection_id: int) -> None:
        params = {"userId": user_id, "connectionId": connection_id}
        await self._request("DELETE", "/admin/permissions", params=params)

    async def permissions_by_user(self, user_id: int) -> List[PermissionInfo]:
        return self._parse_list(PermissionInfo, await self._request("GET", f"/admin/permissions/user/{user_id}"))

    async def permissions_by_connection(self, connection_id: int) -> List[PermissionInfo]:
        data = await self._request("GET", f"/admin/permissions/connection/{connection_id}")
        return self._parse_list(PermissionInfo, data)

    async def list_users(self) -> List[UserInfo]:
        return self._parse_list(UserInfo, await self._request("GET", "/admin/users"))

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    async def accessible_connections(self) -> List[ConnectionInfo]:
        return self._parse_list(ConnectionInfo, await self._request("GET", "/query/connections"))

    async def ask(self, connection_id: int, question: str) -> AskResult:
        body = {"connectionId": connection_id, "question": question}
        return self._parse(AskResult, await self._request("POST", "/query/ask", json=body))

