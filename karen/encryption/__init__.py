"""
Encryption module - key provisioning and schema maps for client-side
field level encryption.
"""
from karen.encryption.key_vault import KeyVaultClient, ResolvedKeyMap
from karen.encryption.master_keys import MasterKeyCatalog
from karen.encryption.schema_map import SchemaMap, SchemaMapBuilder
from karen.encryption.settings import (
    EncryptionSettingsAssembler,
    get_encryption_settings,
    get_vault_name,
    get_vault_namespace,
)
from karen.encryption.templates import PREDEFINED_TEMPLATES, TemplateRegistry

__all__ = [
    "KeyVaultClient",
    "ResolvedKeyMap",
    "MasterKeyCatalog",
    "SchemaMap",
    "SchemaMapBuilder",
    "EncryptionSettingsAssembler",
    "get_encryption_settings",
    "get_vault_name",
    "get_vault_namespace",
    "PREDEFINED_TEMPLATES",
    "TemplateRegistry",
]
