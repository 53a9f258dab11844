"""
Encryption configuration models.

Mirrors the layout of the ``.karenc.yml`` file::

    masterKeys:
      <altName>: {provider, projectId, location, keyRing, keyName}
    collections:
      <collection>:
        masterKey: <altName> | {provider, projectId, location, keyRing, keyName, keyAltName}
        fields:
          <field>: {type: <bsonType>, encryption: deterministic|random}
        includes: [<template>, ...]
"""
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EncryptionMode(str, Enum):
    """Field encryption modes."""
    DETERMINISTIC = "deterministic"
    RANDOM = "random"


class MasterKeyMaterial(BaseModel):
    """
    KMS master key used to wrap a data key in the vault.

    ``alt_name`` identifies the data key across the whole configuration.
    Entries declared under ``masterKeys`` get it from their mapping key.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    provider: str = Field(..., description="KMS provider name, e.g. gcp")
    project_id: str = Field(..., alias="projectId")
    location: str = Field(...)
    key_ring: str = Field(..., alias="keyRing")
    key_name: str = Field(..., alias="keyName")
    alt_name: Optional[str] = Field(None, alias="keyAltName")

    def master_key_document(self) -> dict[str, str]:
        """Master key options as expected by ``create_data_key``."""
        return {
            "projectId": self.project_id,
            "location": self.location,
            "keyRing": self.key_ring,
            "keyName": self.key_name,
        }


class NamedMasterKey(BaseModel):
    """Reference to a key declared under ``masterKeys``."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["named"] = "named"
    alt_name: str


class InlineMasterKey(BaseModel):
    """Key material embedded directly in a collection definition."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["inline"] = "inline"
    material: MasterKeyMaterial

    @property
    def alt_name(self) -> str:
        return self.material.alt_name


MasterKeyRef = Annotated[
    Union[NamedMasterKey, InlineMasterKey],
    Field(discriminator="kind"),
]


class FieldSpec(BaseModel):
    """Encryption directive declared for a single field."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    bson_type: str = Field(..., alias="type", description="BSON type name")
    encryption: EncryptionMode


class CollectionSpec(BaseModel):
    """Encryption definition of a collection."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    master_key: Optional[MasterKeyRef] = Field(None, alias="masterKey")
    fields: dict[str, FieldSpec] = Field(default_factory=dict)
    includes: list[str] = Field(default_factory=list)

    @field_validator("master_key", mode="before")
    @classmethod
    def tag_master_key(cls, value: Any) -> Any:
        """Turn the raw YAML reference into a tagged variant."""
        if isinstance(value, (NamedMasterKey, InlineMasterKey)):
            return value
        if isinstance(value, str):
            return {"kind": "named", "alt_name": value} if value.strip() else None
        if isinstance(value, dict):
            if "kind" in value:
                return value
            if value.get("keyAltName") or value.get("alt_name"):
                return {"kind": "inline", "material": value}
        return None

    @field_validator("fields", "includes", mode="before")
    @classmethod
    def empty_when_null(cls, value: Any, info) -> Any:
        if value is None:
            return {} if info.field_name == "fields" else []
        return value


class EncryptionConfiguration(BaseModel):
    """Whole encryption configuration, loaded once per process."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    master_keys: dict[str, MasterKeyMaterial] = Field(default_factory=dict, alias="masterKeys")
    collections: dict[str, CollectionSpec] = Field(default_factory=dict)

    @field_validator("master_keys", "collections", mode="before")
    @classmethod
    def empty_when_null(cls, value: Any) -> Any:
        return {} if value is None else value
