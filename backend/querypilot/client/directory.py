"""
Connection Directory - what the signed-in user may pick from
"""
from typing import List, Optional
import structlog

from querypilot.client.api import QueryPilotClient
from querypilot.client.errors import ApiError
from querypilot.client.models import ConnectionInfo

logger = structlog.get_logger()


class ConnectionDirectory:
    """
    Last fetched connection list, for display only.

    The list is never used to decide access: the server re-checks every
    ask. A failed refresh leaves an empty list and a warning instead of
    raising.
    """

    def __init__(self, client: QueryPilotClient):
        self.client = client
        self.connections: List[ConnectionInfo] = []
        self.warning: Optional[str] = None

    async def refresh(self) -> List[ConnectionInfo]:
        try:
            if self.client.store.current.is_admin:
                connections = await self.client.list_connections()
            else:
                connections = await self.client.accessible_connections()
        except ApiError as e:
            logger.warning("connection_refresh_failed", error=e.message, status_code=e.status_code)
            self.connections = []
            self.warning = f"Could not load connections: {e.message}"
            return self.connections

        self.connections = connections
        self.warning = None
        return self.connections

    def find(self, connection_id: int) -> Optional[ConnectionInfo]:
        for connection in self.connections:
            if connection.id == connection_id:
                return connection
        return None

    @property
    def has_selectable(self) -> bool:
        return bool(self.connections)
