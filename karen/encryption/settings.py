"""
Assembly of the auto encryption settings handed to a MongoDB client.

Pipeline:
- validate the KMS providers
- open a dedicated connection to the ``<dbname>-vault`` database
- resolve or create the data key of every master key
- build the schema map of every collection
"""
import logging
from collections.abc import Callable, Mapping
from typing import Any, Optional, Union

from bson.binary import UuidRepresentation
from bson.codec_options import CodecOptions
from motor.motor_asyncio import AsyncIOMotorClientEncryption

from karen.config import get_encryption_configuration
from karen.core.errors import ConfigMissing, NoKMSProviderDefined, UnsupportedKMSProvider
from karen.database.connections import vault_connection
from karen.encryption.key_vault import KeyVaultClient
from karen.encryption.master_keys import MasterKeyCatalog
from karen.encryption.schema_map import SchemaMapBuilder
from karen.encryption.templates import PREDEFINED_TEMPLATES, TemplateRegistry
from karen.models.encryption import EncryptionConfiguration

logger = logging.getLogger(__name__)

SUPPORTED_KMS_PROVIDERS = ("gcp",)
VAULT_COLLECTION = "__default"


def get_vault_name(dbname: str) -> str:
    """Vault database name of ``dbname``."""
    return f"{dbname}-vault"


def get_vault_namespace(dbname: str) -> str:
    """Key vault namespace, the ``__default`` collection of the vault database."""
    return f"{get_vault_name(dbname)}.{VAULT_COLLECTION}"


def validate_kms_providers(kms_providers: Any) -> None:
    """
    Check KMS providers before anything touches the network.

    Raises:
        NoKMSProviderDefined: Not a mapping, or empty
        UnsupportedKMSProvider: No supported provider in the mapping
    """
    if not isinstance(kms_providers, Mapping) or len(kms_providers) < 1:
        raise NoKMSProviderDefined()
    if not any(name in kms_providers for name in SUPPORTED_KMS_PROVIDERS):
        raise UnsupportedKMSProvider()


def default_client_encryption(
    kms_providers: Mapping[str, Any], key_vault_namespace: str, key_vault_client
) -> AsyncIOMotorClientEncryption:
    return AsyncIOMotorClientEncryption(
        dict(kms_providers),
        key_vault_namespace,
        key_vault_client,
        CodecOptions(uuid_representation=UuidRepresentation.STANDARD),
    )


class EncryptionSettingsAssembler:
    """
    Turns a static encryption configuration into auto encryption settings.

    The configuration is given once and never reloaded. Resolved keys and
    schema maps are rebuilt on every ``assemble`` call.
    """

    def __init__(
        self,
        configuration: Union[Mapping[str, Any], EncryptionConfiguration, None],
        templates: TemplateRegistry = PREDEFINED_TEMPLATES,
        connection_factory: Callable = vault_connection,
        client_encryption_factory: Callable = default_client_encryption,
    ):
        self.configuration = configuration
        self.schema_builder = SchemaMapBuilder(templates)
        self.connection_factory = connection_factory
        self.client_encryption_factory = client_encryption_factory

    def _parsed_configuration(self) -> EncryptionConfiguration:
        if not self.configuration:
            raise ConfigMissing()
        if isinstance(self.configuration, EncryptionConfiguration):
            configuration = self.configuration
        else:
            configuration = EncryptionConfiguration.model_validate(self.configuration)

        if not configuration.master_keys and not configuration.collections:
            raise ConfigMissing()
        return configuration

    async def assemble(
        self,
        *,
        username: str,
        password: str,
        cluster: str,
        dbname: str,
        kms_providers: Optional[Mapping[str, Any]],
    ) -> dict[str, Any]:
        """
        Build the settings for a client connecting to ``dbname``.

        Args:
            username: Atlas user
            password: Atlas password
            cluster: Atlas cluster host
            dbname: Database holding the encrypted collections
            kms_providers: KMS credentials, e.g. ``{"gcp": {"email", "privateKey"}}``

        Returns:
            ``{"autoEncryption": {"keyVaultNamespace", "kmsProviders", "schemaMap"}}``

        Raises:
            NoKMSProviderDefined, UnsupportedKMSProvider, ConfigMissing,
            MissingMasterKey, UnknownTemplate, and driver errors unchanged.
        """
        validate_kms_providers(kms_providers)

        vault_dbname = get_vault_name(dbname)
        key_vault_namespace = get_vault_namespace(dbname)
        configuration = self._parsed_configuration()

        async with self.connection_factory(username, password, cluster, vault_dbname) as client:
            vault = self.client_encryption_factory(kms_providers, key_vault_namespace, client)
            try:
                refs = MasterKeyCatalog.collect(configuration)
                resolved_keys = await KeyVaultClient(vault).resolve_all(refs)
            finally:
                await vault.close()

        schema_map = self.schema_builder.build_all(dbname, configuration, resolved_keys)
        logger.info(
            f"Encryption settings ready for {dbname}: "
            f"{len(resolved_keys)} data keys, {len(schema_map)} collections"
        )

        return {
            "autoEncryption": {
                "keyVaultNamespace": key_vault_namespace,
                "kmsProviders": kms_providers,
                "schemaMap": schema_map,
            }
        }


async def get_encryption_settings(
    *,
    username: str,
    password: str,
    cluster: str,
    dbname: str,
    kms_providers: Optional[Mapping[str, Any]],
    configuration: Union[Mapping[str, Any], EncryptionConfiguration, None] = None,
) -> dict[str, Any]:
    """
    Build encryption settings, defaulting to the process configuration file.
    """
    if configuration is None:
        configuration = get_encryption_configuration()

    assembler = EncryptionSettingsAssembler(configuration)
    return await assembler.assemble(
        username=username,
        password=password,
        cluster=cluster,
        dbname=dbname,
        kms_providers=kms_providers,
    )
