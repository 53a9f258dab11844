"""
Database module - MongoDB connections and facade.
"""
from karen.database.connections import (
    DEFAULT_CONNECTION,
    build_mongo_uri,
    vault_connection,
)
from karen.database.facade import MongoDBFacade

__all__ = [
    "DEFAULT_CONNECTION",
    "build_mongo_uri",
    "vault_connection",
    "MongoDBFacade",
]
