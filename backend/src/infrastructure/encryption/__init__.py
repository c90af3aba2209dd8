"""Infrastructure encryption utilities."""

from .symmetric_string_encryption import (
    EncryptionError,
    SymmetricStringEncryptionProvider,
)

__all__ = [
    "EncryptionError",
    "SymmetricStringEncryptionProvider",
]
