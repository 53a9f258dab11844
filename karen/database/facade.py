"""
MongoDB facade with optional client-side field level encryption.
"""
import logging
from collections.abc import Callable, Mapping
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo import ReturnDocument
from pymongo.encryption_options import AutoEncryptionOpts
from pymongo.results import InsertOneResult

from karen.database.connections import build_mongo_uri, connection_options, ping
from karen.encryption.settings import get_encryption_settings
from karen.validators import is_blank

logger = logging.getLogger(__name__)


def to_auto_encryption_opts(settings: Mapping[str, Any]) -> AutoEncryptionOpts:
    """Convert assembled encryption settings to driver options."""
    auto_encryption = settings["autoEncryption"]
    return AutoEncryptionOpts(
        kms_providers=dict(auto_encryption["kmsProviders"]),
        key_vault_namespace=auto_encryption["keyVaultNamespace"],
        schema_map=auto_encryption["schemaMap"],
    )


class MongoDBFacade:
    """
    Thin access layer over a MongoDB Atlas database.

    Prefer the ``open`` factory, which also establishes the connection::

        db = await MongoDBFacade.open(username, password, cluster, dbname)
    """

    @classmethod
    async def open(cls, *args, **kwargs) -> "MongoDBFacade":
        instance = cls(*args, **kwargs)
        await instance.connect()
        return instance

    def __init__(
        self,
        username: str,
        password: str,
        cluster: str,
        dbname: str,
        auto_encryption: bool = False,
        kms_providers: Optional[Mapping[str, Any]] = None,
        configuration: Optional[Mapping[str, Any]] = None,
        client_factory: Callable[..., AsyncIOMotorClient] = AsyncIOMotorClient,
    ):
        self.username = username
        self.password = password
        self.cluster = cluster
        self.dbname = dbname

        self.auto_encryption = auto_encryption
        self.kms_providers = kms_providers
        self.configuration = configuration

        self._client_factory = client_factory
        self._client: Optional[AsyncIOMotorClient] = None

    @property
    def client(self) -> Optional[AsyncIOMotorClient]:
        return self._client

    async def connect(self) -> None:
        """
        Establish the connection, with auto encryption when requested.

        The server is pinged, so an unreachable cluster fails here rather
        than on the first query.
        """
        options = connection_options()

        if self.auto_encryption:
            settings = await get_encryption_settings(
                username=self.username,
                password=self.password,
                cluster=self.cluster,
                dbname=self.dbname,
                kms_providers=self.kms_providers,
                configuration=self.configuration,
            )
            options["auto_encryption_opts"] = to_auto_encryption_opts(settings)

        client = self._client_factory(
            build_mongo_uri(self.username, self.password, self.cluster, self.dbname),
            **options,
        )
        try:
            await ping(client)
        except Exception:
            client.close()
            raise
        self._client = client
        logger.info(
            f"Connected to {self.dbname}"
            + (" with auto encryption" if self.auto_encryption else "")
        )

    async def close(self) -> None:
        """Close the database connection."""
        if self._client is not None:
            self._client.close()
            self._client = None

    async def find(self, collection: str, args: Mapping[str, Any]) -> Optional[dict]:
        """
        Find the first document whose fields equal ``args``.

        Raises:
            TypeError: If args is not a mapping
        """
        if not isinstance(args, Mapping):
            raise TypeError("Arguments must be an object")

        query = {key: {"$eq": value} for key, value in args.items()}
        return await self._get_collection(collection).find_one(query)

    async def first_or_create(
        self,
        collection: str,
        query: Mapping[str, Any],
        update: Optional[Mapping[str, Any]] = None,
    ) -> Optional[dict[str, Any]]:
        """
        Find the first document matching ``query`` or insert it.

        Returns:
            ``{"value": {"_id": str}}`` for the matched or created document
        """
        result = await self._get_collection(collection).find_one_and_update(
            dict(query),
            {"$setOnInsert": {**query, **(update or {})}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        if result is None:
            return None
        return {"value": {"_id": str(result["_id"])}}

    async def insert(self, collection: str, args: Mapping[str, Any]) -> InsertOneResult:
        """Insert a single document."""
        return await self._get_collection(collection).insert_one(dict(args))

    def _get_collection(self, collection: str) -> AsyncIOMotorCollection:
        if not isinstance(collection, str) or is_blank(collection):
            raise TypeError("Collection must a string")
        if self._client is None:
            raise RuntimeError("Database is not connected")

        return self._client[self.dbname][collection]
