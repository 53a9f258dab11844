"""
Database connection management for MongoDB Atlas.
"""
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from urllib.parse import quote_plus

from motor.motor_asyncio import AsyncIOMotorClient

from karen.config import get_settings

logger = logging.getLogger(__name__)

# Options shared by every client created by the package
DEFAULT_CONNECTION: dict[str, Any] = {
    "retryWrites": True,
    "w": "majority",
}


def build_mongo_uri(username: str, password: str, cluster: str, dbname: str) -> str:
    """
    Build the ``mongodb+srv`` URI of a database on the cluster.

    Credentials are percent-escaped.
    """
    return (
        f"mongodb+srv://{quote_plus(username)}:{quote_plus(password)}"
        f"@{cluster}/{dbname}?retryWrites=true&w=majority"
    )


def connection_options(**overrides: Any) -> dict[str, Any]:
    """Driver keyword options merged over ``DEFAULT_CONNECTION``."""
    options = {
        **DEFAULT_CONNECTION,
        "serverSelectionTimeoutMS": get_settings().server_selection_timeout_ms,
    }
    options.update(overrides)
    return options


async def ping(client: AsyncIOMotorClient) -> None:
    """Round trip to the server so connection failures surface now."""
    await client.admin.command("ping")


@asynccontextmanager
async def vault_connection(
    username: str, password: str, cluster: str, vault_dbname: str
) -> AsyncIterator[AsyncIOMotorClient]:
    """
    Open a dedicated connection to the key vault database.

    The server is pinged before the client is handed out, so connection
    failures surface immediately. The client is closed on exit, whether
    the body succeeded or not.
    """
    client = AsyncIOMotorClient(
        build_mongo_uri(username, password, cluster, vault_dbname),
        **connection_options(),
    )
    try:
        await ping(client)
        logger.info(f"Connected to key vault database {vault_dbname}")
        yield client
    finally:
        client.close()
        logger.debug(f"Key vault connection to {vault_dbname} closed")
