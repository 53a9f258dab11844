"""
Errors raised while building client-side field-level encryption settings.

Validation errors are detected locally and surfaced verbatim. Network errors
coming from the driver are not wrapped: ``VaultConnectionFailure`` and
``KeyCreationFailure`` are the driver's own exception types.
"""
from pymongo.errors import ConnectionFailure, EncryptionError as _DriverEncryptionError

# Driver failures propagate as-is
VaultConnectionFailure = ConnectionFailure
KeyCreationFailure = _DriverEncryptionError


class EncryptionError(Exception):
    """Base class for encryption settings errors."""


class ConfigMissing(EncryptionError, ValueError):
    """The encryption configuration file is absent, unreadable or empty."""

    def __init__(self):
        super().__init__("No configuration file detected.")


class NoKMSProviderDefined(EncryptionError, ValueError):
    """No KMS provider was given."""

    def __init__(self):
        super().__init__("At least one KMS Provider must be defined.")


class UnsupportedKMSProvider(EncryptionError, ValueError):
    """KMS providers were given but none of them is supported."""

    def __init__(self):
        super().__init__("Only GCP is supported as KMS.")


class MissingMasterKey(EncryptionError, ValueError):
    """A collection does not reference any master key."""

    def __init__(self, collection_name: str, message: str | None = None):
        self.collection_name = collection_name
        super().__init__(message or f'"{collection_name}" is missing master key.')


class UnresolvedMasterKey(MissingMasterKey):
    """A collection references a master key that was never resolved."""

    def __init__(self, collection_name: str, alt_name: str):
        self.alt_name = alt_name
        super().__init__(
            collection_name,
            f'"{collection_name}" references unknown master key "{alt_name}".',
        )


class UnknownTemplate(EncryptionError, KeyError):
    """A predefined template name is not registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f'Unknown encryption template "{name}".')

    def __str__(self) -> str:
        return self.args[0]
