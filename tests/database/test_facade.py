"""
Tests for the MongoDB facade.

These tests cover:
- Connection with and without auto encryption
- find / first_or_create / insert against mongomock-motor
- Argument validation
"""

import pytest
import pytest_asyncio
from unittest.mock import AsyncMock, MagicMock, patch

from pymongo.errors import ServerSelectionTimeoutError

from karen.database.facade import MongoDBFacade, to_auto_encryption_opts


@pytest.fixture(autouse=True)
def mock_ping():
    """Stand in for the server round trip made on connect."""
    with patch("karen.database.facade.ping", new_callable=AsyncMock) as mock:
        yield mock


@pytest.fixture
def client_factory(mock_async_mongo_client):
    """Client factory handing out the mongomock client."""
    return MagicMock(return_value=mock_async_mongo_client)


@pytest_asyncio.fixture
async def facade(client_factory):
    db = await MongoDBFacade.open("k", "d", "abc.mongodb.net", "test", client_factory=client_factory)
    yield db
    await db.close()


class TestConnect:
    """Tests for MongoDBFacade.connect."""

    @pytest.mark.asyncio
    async def test_connects_without_encryption(self, client_factory):
        """A plain connection should not build encryption settings."""
        with patch("karen.database.facade.get_encryption_settings", new_callable=AsyncMock) as mock_settings:
            db = await MongoDBFacade.open("k", "d", "abc.mongodb.net", "test", client_factory=client_factory)

        mock_settings.assert_not_called()
        uri = client_factory.call_args.args[0]
        assert uri == "mongodb+srv://k:d@abc.mongodb.net/test?retryWrites=true&w=majority"
        assert "auto_encryption_opts" not in client_factory.call_args.kwargs
        assert db.client is not None

    @pytest.mark.asyncio
    async def test_connects_with_auto_encryption(self, client_factory, kms_providers, raw_configuration):
        """Auto encryption should pass the assembled settings to the driver."""
        settings = {
            "autoEncryption": {
                "keyVaultNamespace": "test-vault.__default",
                "kmsProviders": kms_providers,
                "schemaMap": {},
            }
        }
        with patch("karen.database.facade.get_encryption_settings", new_callable=AsyncMock, return_value=settings) as mock_settings, \
             patch("karen.database.facade.AutoEncryptionOpts") as mock_opts:

            await MongoDBFacade.open(
                "k", "d", "abc.mongodb.net", "test",
                auto_encryption=True,
                kms_providers=kms_providers,
                configuration=raw_configuration,
                client_factory=client_factory,
            )

        mock_settings.assert_awaited_once_with(
            username="k",
            password="d",
            cluster="abc.mongodb.net",
            dbname="test",
            kms_providers=kms_providers,
            configuration=raw_configuration,
        )
        mock_opts.assert_called_once_with(
            kms_providers=kms_providers,
            key_vault_namespace="test-vault.__default",
            schema_map={},
        )
        assert client_factory.call_args.kwargs["auto_encryption_opts"] is mock_opts.return_value

    def test_to_auto_encryption_opts(self, kms_providers):
        """Settings should map onto AutoEncryptionOpts arguments."""
        settings = {
            "autoEncryption": {
                "keyVaultNamespace": "test-vault.__default",
                "kmsProviders": kms_providers,
                "schemaMap": {"test.users": {"bsonType": "object"}},
            }
        }
        with patch("karen.database.facade.AutoEncryptionOpts") as mock_opts:
            to_auto_encryption_opts(settings)

        mock_opts.assert_called_once_with(
            kms_providers=kms_providers,
            key_vault_namespace="test-vault.__default",
            schema_map={"test.users": {"bsonType": "object"}},
        )

    @pytest.mark.asyncio
    async def test_connect_pings_server(self, client_factory, mock_ping, mock_async_mongo_client):
        """connect should round trip to the server before accepting queries."""
        await MongoDBFacade.open("k", "d", "abc.mongodb.net", "test", client_factory=client_factory)

        mock_ping.assert_awaited_once_with(mock_async_mongo_client)

    @pytest.mark.asyncio
    async def test_unreachable_server_fails_open(self, mock_ping):
        """A failed ping should raise from open and close the new client."""
        mock_client = MagicMock()
        mock_ping.side_effect = ServerSelectionTimeoutError("timeout")
        db = MongoDBFacade("k", "d", "abc.mongodb.net", "test", client_factory=MagicMock(return_value=mock_client))

        with pytest.raises(ServerSelectionTimeoutError):
            await db.connect()

        mock_client.close.assert_called_once()
        assert db.client is None

    @pytest.mark.asyncio
    async def test_close_releases_client(self, client_factory):
        db = await MongoDBFacade.open("k", "d", "abc.mongodb.net", "test", client_factory=client_factory)

        await db.close()

        assert db.client is None


class TestQueries:
    """Tests for facade queries against mongomock."""

    @pytest.mark.asyncio
    async def test_insert_then_find(self, facade):
        """Inserted documents should be found by equality."""
        result = await facade.insert("users", {"email": "jane@example.com", "name": "Jane"})

        found = await facade.find("users", {"email": "jane@example.com"})

        assert result.inserted_id == found["_id"]
        assert found["name"] == "Jane"

    @pytest.mark.asyncio
    async def test_find_missing_returns_none(self, facade):
        assert await facade.find("users", {"email": "nobody@example.com"}) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("args", [None, "email", ["email"]])
    async def test_find_requires_mapping(self, facade, args):
        """find should reject anything but a mapping."""
        with pytest.raises(TypeError, match="Arguments must be an object"):
            await facade.find("users", args)

    @pytest.mark.asyncio
    async def test_find_with_empty_mapping_matches_any(self, facade):
        """An empty mapping should match the first document."""
        await facade.insert("users", {"email": "jane@example.com"})

        found = await facade.find("users", {})

        assert found["email"] == "jane@example.com"

    @pytest.mark.asyncio
    async def test_first_or_create_inserts_once(self, facade):
        """first_or_create should create then return the same document."""
        created = await facade.first_or_create("users", {"email": "jane@example.com"}, {"name": "Jane"})
        again = await facade.first_or_create("users", {"email": "jane@example.com"}, {"name": "Other"})

        assert created == again
        assert isinstance(created["value"]["_id"], str)
        stored = await facade.find("users", {"email": "jane@example.com"})
        assert stored["name"] == "Jane"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("collection", ["", "   ", None])
    async def test_blank_collection(self, facade, collection):
        """Blank collection names should be rejected."""
        with pytest.raises(TypeError, match="Collection must a string"):
            await facade.insert(collection, {"a": 1})

    @pytest.mark.asyncio
    async def test_query_before_connect(self):
        """Queries should fail on a facade that never connected."""
        db = MongoDBFacade("k", "d", "abc.mongodb.net", "test")

        with pytest.raises(RuntimeError):
            await db.insert("users", {"a": 1})
