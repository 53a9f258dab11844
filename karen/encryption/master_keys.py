"""
Collection of the master keys a configuration needs.
"""
from karen.models.encryption import (
    EncryptionConfiguration,
    InlineMasterKey,
    MasterKeyMaterial,
)


class MasterKeyCatalog:
    """Gathers master key references from both configuration shapes."""

    @staticmethod
    def collect(configuration: EncryptionConfiguration) -> list[MasterKeyMaterial]:
        """
        List every master key referenced by the configuration.

        Keys declared under ``masterKeys`` come first, named after their
        mapping key, followed by inline references found on collections.
        Duplicated alt names are kept.

        Args:
            configuration: Parsed encryption configuration

        Returns:
            Master keys in configuration order
        """
        keys = [
            material.model_copy(update={"alt_name": alt_name})
            for alt_name, material in configuration.master_keys.items()
        ]

        for spec in configuration.collections.values():
            if isinstance(spec.master_key, InlineMasterKey):
                keys.append(spec.master_key.material)

        return keys
