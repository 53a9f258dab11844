"""
karen - MongoDB client-side field level encryption made declarative.

Describe encrypted fields in ``.karenc.yml``, then connect with::

    db = await MongoDBFacade.open(
        username, password, cluster, dbname,
        auto_encryption=True,
        kms_providers={"gcp": {"email": ..., "privateKey": ...}},
    )
"""
from karen.database import MongoDBFacade
from karen.encryption import EncryptionSettingsAssembler, get_encryption_settings

__version__ = "0.1.0"

__all__ = [
    "MongoDBFacade",
    "EncryptionSettingsAssembler",
    "get_encryption_settings",
]
