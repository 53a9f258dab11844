"""
Key vault access: get-or-create data keys by alt name.
"""
import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from bson.binary import Binary
from motor.motor_asyncio import AsyncIOMotorClientEncryption

from karen.models.encryption import MasterKeyMaterial

logger = logging.getLogger(__name__)

KeyId = Binary
ResolvedKeyMap = Mapping[str, KeyId]


class KeyVaultClient:
    """
    Resolves data keys stored in a KMS-backed key vault.

    Keys are looked up by alt name and provisioned when the vault does not
    hold them yet.
    """

    def __init__(self, client_encryption: AsyncIOMotorClientEncryption):
        """Initialize with a client encryption bound to the vault namespace."""
        self.vault = client_encryption

    async def resolve_or_create(self, ref: MasterKeyMaterial) -> KeyId:
        """
        Get the id of the data key named ``ref.alt_name``, creating it if needed.

        Args:
            ref: Master key material with its alt name

        Returns:
            The data key id (UUID binary)
        """
        datakey = await self.vault.get_key_by_alt_name(ref.alt_name)
        if datakey is not None:
            logger.debug(f"Data key '{ref.alt_name}' found in vault")
            return datakey["_id"]

        logger.info(f"Creating data key '{ref.alt_name}' with {ref.provider} KMS")
        return await self.vault.create_data_key(
            ref.provider,
            master_key=ref.master_key_document(),
            key_alt_names=[ref.alt_name],
        )

    async def resolve_all(self, refs: Iterable[MasterKeyMaterial]) -> ResolvedKeyMap:
        """
        Resolve every reference, one at a time.

        Resolution must stay sequential: two concurrent lookups of the same
        missing alt name would both create a data key. An alt name already
        resolved during this call is not looked up again.

        Raises:
            Whatever the driver raises; no partial map is returned.
        """
        resolved: dict[str, KeyId] = {}
        for ref in refs:
            if ref.alt_name in resolved:
                logger.debug(f"Data key '{ref.alt_name}' already resolved")
                continue
            resolved[ref.alt_name] = await self.resolve_or_create(ref)

        return MappingProxyType(resolved)
