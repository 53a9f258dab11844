"""
Global test fixtures for karen.

This module provides shared fixtures for all tests including:
- A sample encryption configuration
- Mock key vault (client encryption) and vault connection
- Mock MongoDB (mongomock-motor)
"""

from contextlib import asynccontextmanager
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import pytest_asyncio
import yaml
from bson.binary import Binary

from karen.models.encryption import EncryptionConfiguration


# =============================================================================
# Configuration Fixtures
# =============================================================================

CONFIG_YAML_CONTENTS = """
masterKeys:
  keyAltName:
    projectId: myproject
    location: mylocation
    keyRing: mykeyring
    keyName: mykeyname
    provider: gcp
  anotherkeyAltName:
    projectId: anotherproject
    location: anotherlocation
    keyRing: anotherkeyring
    keyName: anotherkeyname
    provider: gcp

collections:
  collection1:
    masterKey: keyAltName
    fields:
      field1:
        type: string
        encryption: deterministic
      field2:
        type: int
        encryption: random
  collection2:
    masterKey:
      projectId: customproject
      location: customlocation
      keyRing: customkeyring
      keyName: customkeyname
      keyAltName: customKeyAltName
      provider: gcp
    fields:
      field3:
        type: object
        encryption: deterministic
      field4:
        type: string
        encryption: random
  collection3:
    masterKey: anotherkeyAltName
    includes:
      - PII
    fields:
      field5:
        type: string
        encryption: deterministic
  collection4:
    masterKey: anotherkeyAltName
    includes:
      - PII
"""

USERNAME = "k"
PASSWORD = "d"
CLUSTER = "abc.mongodb.net"
DBNAME = "test"


@pytest.fixture
def raw_configuration() -> dict:
    """The sample configuration as loaded from YAML."""
    return yaml.safe_load(CONFIG_YAML_CONTENTS)


@pytest.fixture
def configuration(raw_configuration) -> EncryptionConfiguration:
    """The sample configuration, parsed."""
    return EncryptionConfiguration.model_validate(raw_configuration)


@pytest.fixture
def kms_providers() -> dict:
    return {
        "gcp": {
            "email": "service@iam.com",
            "privateKey": "abc123",
        }
    }


@pytest.fixture
def connection_args(kms_providers) -> dict:
    """Keyword arguments accepted by ``assemble``."""
    return {
        "username": USERNAME,
        "password": PASSWORD,
        "cluster": CLUSTER,
        "dbname": DBNAME,
        "kms_providers": kms_providers,
    }


# =============================================================================
# Key Vault Fixtures
# =============================================================================

@pytest.fixture
def mock_keys() -> dict[str, Binary]:
    """Data key ids by alt name."""
    return {
        "keyAltName": Binary.from_uuid(uuid4()),
        "anotherkeyAltName": Binary.from_uuid(uuid4()),
        "customKeyAltName": Binary.from_uuid(uuid4()),
    }


@pytest.fixture
def mock_client_encryption(mock_keys):
    """
    Mocked client encryption.

    Every key of ``mock_keys`` exists in the vault except ``anotherkeyAltName``,
    which ``create_data_key`` provisions.
    """
    async def get_key_by_alt_name(name):
        if name == "anotherkeyAltName" or name not in mock_keys:
            return None
        return {"_id": mock_keys[name], "keyAltNames": [name]}

    vault = MagicMock()
    vault.get_key_by_alt_name = AsyncMock(side_effect=get_key_by_alt_name)
    vault.create_data_key = AsyncMock(return_value=mock_keys["anotherkeyAltName"])
    vault.close = AsyncMock()
    return vault


@pytest.fixture
def mock_vault_connection():
    """
    Replacement for ``vault_connection`` recording how it is used.

    ``state.calls`` holds the positional arguments of each opening,
    ``state.closed`` counts the connections released.
    """
    state = SimpleNamespace(calls=[], closed=0, client=MagicMock(name="vault_client"))

    @asynccontextmanager
    async def factory(*args):
        state.calls.append(args)
        try:
            yield state.client
        finally:
            state.closed += 1

    state.factory = factory
    return state


@pytest.fixture
def client_encryption_factory(mock_client_encryption):
    """Factory returning the mocked client encryption, recording its arguments."""
    return MagicMock(return_value=mock_client_encryption)


# =============================================================================
# MongoDB Fixtures (mongomock)
# =============================================================================

@pytest_asyncio.fixture
async def mock_async_mongo_client():
    """
    Create an async mock MongoDB client using mongomock-motor.
    """
    try:
        from mongomock_motor import AsyncMongoMockClient
        client = AsyncMongoMockClient()
        yield client
        client.close()
    except ImportError:
        pytest.skip("mongomock-motor not installed")
