"""
Models package - pydantic models for the encryption configuration.
"""
from karen.models.encryption import (
    CollectionSpec,
    EncryptionConfiguration,
    EncryptionMode,
    FieldSpec,
    InlineMasterKey,
    MasterKeyMaterial,
    MasterKeyRef,
    NamedMasterKey,
)

__all__ = [
    "CollectionSpec",
    "EncryptionConfiguration",
    "EncryptionMode",
    "FieldSpec",
    "InlineMasterKey",
    "MasterKeyMaterial",
    "MasterKeyRef",
    "NamedMasterKey",
]
