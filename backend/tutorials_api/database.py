"""
Tutorials API: Database Connector
=================================

What:  Owns the MongoDB client (Motor), its connection pool and the cached
       connection state reported by GET /health.
How:   `MongoConnector.connect()` builds a pooled AsyncIOMotorClient, verifies
       it with a single `ping` and records the state. A pymongo topology
       listener keeps the cached state current while the server runs.
Who:   Constructed once by the lifecycle controller (or by create_app when the
       app is served directly by uvicorn) and injected into route handlers
       via FastAPI's dependency injection (`get_connector`).
When:  Connected before the listener accepts traffic; closed after the
       listener has drained.

Connection state machine:
    DISCONNECTED ──connect()──▶ CONNECTING ──ping ok──▶ CONNECTED
         ▲                          │                     │  ▲
         │                      ping failed        topology lost / regained
         │                          ▼                     ▼  │
         └──────────────────── DISCONNECTED ◀───────── DISCONNECTED
    CONNECTED ──close()──▶ DISCONNECTING ──▶ DISCONNECTED

Pool sizing:
    maxPoolSize=10: one pool shared by every concurrently executing handler.
    Motor checks connections out and back in; the server adds no locking.
"""

import asyncio
import enum
import logging
from typing import Optional

from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import monitoring
from pymongo.errors import PyMongoError

from tutorials_api.config import Settings
from tutorials_api.exceptions import DatabaseConnectionError

logger = logging.getLogger(__name__)


class ConnectionState(str, enum.Enum):
    """Locally cached state of the database connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTING = "disconnecting"


class _TopologyStateListener(monitoring.TopologyListener):
    """
    Mirrors driver topology changes into the connector's cached state.

    Runs on pymongo's monitor threads. It only assigns an enum member, so the
    event loop never waits on it.
    """

    def __init__(self, connector: "MongoConnector"):
        self._connector = connector

    def opened(self, event: monitoring.TopologyOpenedEvent) -> None:
        logger.debug("MongoDB topology opened: %s", event.topology_id)

    def description_changed(self, event: monitoring.TopologyDescriptionChangedEvent) -> None:
        self._connector._on_topology_change(event.new_description.has_readable_server())

    def closed(self, event: monitoring.TopologyClosedEvent) -> None:
        logger.debug("MongoDB topology closed: %s", event.topology_id)


class MongoConnector:
    """
    Single owner of the MongoDB client.

    Attributes:
        url:                         MongoDB connection string
        default_database:            Database used when the URL names none
        max_pool_size:               Upper bound of pooled connections
        server_selection_timeout_ms: How long the startup ping may wait

    Health checks read `state` and never touch the network.
    """

    def __init__(
        self,
        url: str,
        default_database: str = "tutorials_db",
        max_pool_size: int = 10,
        server_selection_timeout_ms: int = 5000,
    ):
        self.url = url
        self.default_database = default_database
        self.max_pool_size = max_pool_size
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self._client: Optional[AsyncIOMotorClient] = None
        self._database: Optional[AsyncIOMotorDatabase] = None
        self._state = ConnectionState.DISCONNECTED

    @classmethod
    def from_settings(cls, settings: Settings) -> "MongoConnector":
        return cls(
            url=settings.mongodb_url,
            default_database=settings.mongodb_database,
            max_pool_size=settings.db_max_pool_size,
            server_selection_timeout_ms=settings.db_server_selection_timeout_ms,
        )

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    async def connect(self) -> None:
        """
        Open the pooled client and verify it with a single ping.

        Fail-fast: there is no retry loop. The ping waits at most
        `server_selection_timeout_ms` before the driver gives up.

        Raises:
            DatabaseConnectionError: The server could not be reached.
        """
        if self._client is not None:
            return

        self._state = ConnectionState.CONNECTING
        client: AsyncIOMotorClient = AsyncIOMotorClient(
            self.url,
            maxPoolSize=self.max_pool_size,
            serverSelectionTimeoutMS=self.server_selection_timeout_ms,
            tz_aware=True,
            event_listeners=[_TopologyStateListener(self)],
        )
        try:
            await client.admin.command("ping")
        except PyMongoError as e:
            client.close()
            self._state = ConnectionState.DISCONNECTED
            raise DatabaseConnectionError(
                message="Cannot connect to the database!",
                context={"error_type": type(e).__name__, "error": str(e)},
            ) from e
        except asyncio.CancelledError:
            # Shutdown requested while the ping was pending
            client.close()
            self._state = ConnectionState.DISCONNECTED
            raise

        self._client = client
        self._database = client.get_default_database(self.default_database)
        self._state = ConnectionState.CONNECTED
        logger.info(
            "Connected to the database '%s' (max pool size %d)",
            self._database.name,
            self.max_pool_size,
        )

    def get_collection(self, name: str) -> AsyncIOMotorCollection:
        """
        Return a collection of the connected database.

        Raises:
            DatabaseConnectionError: The connector is not open.
        """
        if self._database is None:
            raise DatabaseConnectionError(context={"state": self._state.value})
        return self._database[name]

    async def close(self) -> None:
        """Close every pooled connection. Safe to call more than once."""
        if self._client is None:
            return
        self._state = ConnectionState.DISCONNECTING
        client, self._client, self._database = self._client, None, None
        client.close()
        self._state = ConnectionState.DISCONNECTED
        logger.info("Database connection closed")

    def _on_topology_change(self, reachable: bool) -> None:
        # Only the steady states follow the driver; connect() and close()
        # own the transitional ones.
        if self._state not in (ConnectionState.CONNECTED, ConnectionState.DISCONNECTED):
            return
        if self._client is None:
            return
        new_state = ConnectionState.CONNECTED if reachable else ConnectionState.DISCONNECTED
        if new_state is not self._state:
            logger.warning("Database connection state changed: %s", new_state.value)
            self._state = new_state


# ── Dependencies ──────────────────────────────────────────────────────────
def get_connector(request: Request) -> MongoConnector:
    """
    FastAPI dependency returning the connector attached by create_app().

    Example usage in a route:
        @router.get("/health")
        async def health(connector: MongoConnector = Depends(get_connector)):
            ...
    """
    return request.app.state.connector
