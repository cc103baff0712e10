"""Field-level encryption for account numbers and security codes.

Tokens are base64 of ``nonce (12 bytes) || tag (16 bytes) || ciphertext``
produced by AES-256-GCM. A fresh nonce is drawn for every call, so the same
plaintext never encrypts to the same token and tokens must not be used as
lookup keys.
"""
import base64
import binascii
import os

import structlog
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from billpay.config import Settings
from billpay.exceptions import ConfigurationError, EncryptionError

logger = structlog.get_logger(__name__)

KEY_SIZE = 32
NONCE_SIZE = 12
TAG_SIZE = 16


class DataEncryptor:
    """Authenticated symmetric encryption keyed by a fixed 32-byte secret."""

    def __init__(self, key: bytes):
        """
        Initialize encryptor with a raw key.

        Args:
            key: 32-byte AES-256 key

        Raises:
            ConfigurationError: If the key is not exactly 32 bytes
        """
        if len(key) != KEY_SIZE:
            raise ConfigurationError(f"Data encryption key must be {KEY_SIZE} bytes, got {len(key)}")
        self._aead = AESGCM(key)

    @classmethod
    def from_settings(cls, settings: Settings) -> "DataEncryptor":
        """
        Build an encryptor from the base64 ``DATA_ENCRYPTION_KEY`` setting.

        Raises:
            ConfigurationError: If the key is missing, not base64, or the wrong length
        """
        encoded = settings.data_encryption_key.get_secret_value()
        if not encoded:
            raise ConfigurationError("DATA_ENCRYPTION_KEY is not configured")
        try:
            key = base64.b64decode(encoded, validate=True)
        except binascii.Error as e:
            raise ConfigurationError("DATA_ENCRYPTION_KEY must be base64-encoded") from e
        return cls(key)

    @staticmethod
    def generate_key() -> str:
        """Generate a new base64-encoded key suitable for DATA_ENCRYPTION_KEY."""
        return base64.b64encode(AESGCM.generate_key(bit_length=KEY_SIZE * 8)).decode("ascii")

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt a value for storage.

        Args:
            plaintext: Value to protect

        Returns:
            Opaque base64 token
        """
        nonce = os.urandom(NONCE_SIZE)
        # AESGCM appends the tag to the ciphertext
        sealed = self._aead.encrypt(nonce, plaintext.encode("utf-8"), None)
        ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
        return base64.b64encode(nonce + tag + ciphertext).decode("ascii")

    def decrypt(self, token: str) -> str:
        """
        Decrypt a stored token.

        Args:
            token: Value produced by ``encrypt``

        Returns:
            Original plaintext

        Raises:
            EncryptionError: If the token is malformed or fails authentication
        """
        try:
            raw = base64.b64decode(token, validate=True)
        except (binascii.Error, ValueError) as e:
            logger.error("decryption_failed", reason="malformed_token")
            raise EncryptionError("Encrypted value is not valid base64") from e

        if len(raw) < NONCE_SIZE + TAG_SIZE:
            logger.error("decryption_failed", reason="truncated_token", length=len(raw))
            raise EncryptionError("Encrypted value is truncated")

        nonce = raw[:NONCE_SIZE]
        tag = raw[NONCE_SIZE:NONCE_SIZE + TAG_SIZE]
        ciphertext = raw[NONCE_SIZE + TAG_SIZE:]

        try:
            plaintext = self._aead.decrypt(nonce, ciphertext + tag, None)
        except InvalidTag as e:
            logger.error("decryption_failed", reason="authentication_failed")
            raise EncryptionError("Encrypted value failed authentication") from e

        return plaintext.decode("utf-8")
