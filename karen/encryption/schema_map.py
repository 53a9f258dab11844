"""
Schema map building for MongoDB client-side field level encryption.
"""
import copy
import logging
from typing import Any

import inflection

from karen.core.errors import MissingMasterKey, UnresolvedMasterKey
from karen.encryption.key_vault import ResolvedKeyMap
from karen.encryption.templates import (
    ALGORITHM_PREFIX,
    PREDEFINED_TEMPLATES,
    TemplateRegistry,
)
from karen.models.encryption import CollectionSpec, EncryptionConfiguration, FieldSpec

logger = logging.getLogger(__name__)

SchemaDocument = dict[str, Any]
SchemaMap = dict[str, SchemaDocument]


def algorithm_for(field: FieldSpec) -> str:
    """Algorithm name for a field, e.g. ``AEAD_AES_256_CBC_HMAC_SHA_512-Random``."""
    return f"{ALGORITHM_PREFIX}-{inflection.titleize(field.encryption.value)}"


class SchemaMapBuilder:
    """Builds the per-collection encryption schema documents."""

    def __init__(self, templates: TemplateRegistry = PREDEFINED_TEMPLATES):
        self.templates = templates

    def build(
        self,
        dbname: str,
        collection_name: str,
        spec: CollectionSpec,
        resolved_keys: ResolvedKeyMap,
    ) -> SchemaDocument:
        """
        Build the schema document of a single collection.

        Explicit fields are set first, then included templates are merged
        in order. A template entry replaces an explicit field of the same name.

        Raises:
            MissingMasterKey: The collection has no master key
            UnresolvedMasterKey: Its master key is not in ``resolved_keys``
            UnknownTemplate: An included template does not exist
        """
        if spec.master_key is None:
            raise MissingMasterKey(collection_name)

        alt_name = spec.master_key.alt_name
        if alt_name not in resolved_keys:
            raise UnresolvedMasterKey(collection_name, alt_name)

        properties: dict[str, Any] = {}
        for field_name, field in spec.fields.items():
            properties[field_name] = {
                "encrypt": {
                    "bsonType": field.bson_type,
                    "algorithm": algorithm_for(field),
                }
            }

        for template_name in spec.includes:
            template = self.templates.get(template_name)
            for field_name, directive in template.items():
                properties[field_name] = _plain(directive)

        logger.debug(
            f"Schema for {dbname}.{collection_name}: {len(properties)} encrypted fields"
        )
        return {
            "bsonType": "object",
            "encryptMetadata": {
                "keyId": [resolved_keys[alt_name]],
            },
            "properties": properties,
        }

    def build_all(
        self,
        dbname: str,
        configuration: EncryptionConfiguration,
        resolved_keys: ResolvedKeyMap,
    ) -> SchemaMap:
        """Build the schema map keyed by ``<dbname>.<collection>``."""
        return {
            f"{dbname}.{name}": self.build(dbname, name, spec, resolved_keys)
            for name, spec in configuration.collections.items()
        }


def _plain(value: Any) -> Any:
    """Deep copy of a directive with read-only mappings turned into dicts."""
    if hasattr(value, "items"):
        return {k: _plain(v) for k, v in value.items()}
    return copy.deepcopy(value)
