"""Symmetric encryption of stored connection strings.

ODS instance connection strings are stored encrypted in the admin database
using the base64 ENCRYPTION_KEY shared with the ODS admin tooling.

Format: base64(iv) | base64(ciphertext) | base64(hmac)

- AES in CBC mode with PKCS7 padding, 16-byte random IV
- HMAC-SHA256 over the ciphertext, keyed with the same key
"""

import base64
import binascii
import logging
import os
from typing import Optional, Tuple

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

logger = logging.getLogger(__name__)

SEPARATOR = "|"


class EncryptionError(Exception):
    """Raised when a value cannot be encrypted."""
    pass


class SymmetricStringEncryptionProvider:
    """Encrypts and decrypts strings with a symmetric AES key.

    Example:
        provider = SymmetricStringEncryptionProvider()
        key = base64.b64decode(settings.ENCRYPTION_KEY)

        stored = provider.encrypt("host=pg01;database=edfi_ods", key)
        ok, plaintext = provider.try_decrypt(stored, key)
    """

    IV_SIZE = 16

    def encrypt(self, plaintext: str, key: bytes) -> str:
        """Encrypt plaintext.

        Args:
            plaintext: Value to encrypt
            key: 16, 24 or 32 byte AES key

        Returns:
            str: Encrypted value in iv|ciphertext|hmac form

        Raises:
            EncryptionError: If the key is not a valid AES key
        """
        try:
            iv = os.urandom(self.IV_SIZE)
            padder = padding.PKCS7(algorithms.AES.block_size).padder()
            padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

            encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
            ciphertext = encryptor.update(padded) + encryptor.finalize()
        except ValueError as e:
            logger.error(f"Encryption failed: {e}")
            raise EncryptionError(f"Failed to encrypt value: {e}")

        signature = self._sign(ciphertext, key)
        return SEPARATOR.join(
            base64.b64encode(part).decode("ascii")
            for part in (iv, ciphertext, signature)
        )

    def try_decrypt(self, encrypted: Optional[str], key: bytes) -> Tuple[bool, Optional[str]]:
        """Decrypt a value without raising.

        Returns:
            Tuple[bool, Optional[str]]: (True, plaintext) on success,
                (False, None) for malformed input, a wrong key or a
                signature mismatch
        """
        if not encrypted:
            return False, None

        parts = encrypted.split(SEPARATOR)
        if len(parts) != 3:
            return False, None

        try:
            iv, ciphertext, signature = (base64.b64decode(part, validate=True) for part in parts)
        except (binascii.Error, ValueError):
            return False, None

        try:
            verifier = hmac.HMAC(key, hashes.SHA256())
            verifier.update(ciphertext)
            verifier.verify(signature)

            decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            plaintext = unpadder.update(padded) + unpadder.finalize()
            return True, plaintext.decode("utf-8")
        except (InvalidSignature, ValueError, TypeError):
            return False, None

    @staticmethod
    def _sign(ciphertext: bytes, key: bytes) -> bytes:
        signer = hmac.HMAC(key, hashes.SHA256())
        signer.update(ciphertext)
        return signer.finalize()
