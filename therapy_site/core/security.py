"""At-rest encryption for small configuration secrets (e.g. provider API keys)."""
import base64
import binascii
import hashlib
import os
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

NONCE_BYTES = 12
TAG_BYTES = 16
SEPARATOR = "."


class SecretError(Exception):
    """Base class for secret encryption failures"""


class SecretConfigurationError(SecretError):
    """No process secret is configured"""


class SecretFormatError(SecretError):
    """Encrypted payload is not nonce.tag.ciphertext"""


class SecretAuthenticationError(SecretError):
    """Authentication tag did not verify (tampered payload or wrong key)"""


class SecretBox:
    """
    AES-256-GCM helper keyed by SHA-256 of a process secret.
    Payload format: base64(nonce).base64(tag).base64(ciphertext)
    """

    def __init__(self, secret: Optional[str]):
        if not secret:
            raise SecretConfigurationError(
                "Missing ADMIN_ENCRYPTION_KEY (or NEXTAUTH_SECRET/APP_SECRET)."
            )
        self._aead = AESGCM(hashlib.sha256(secret.encode("utf-8")).digest())

    def encrypt(self, plaintext: str) -> str:
        nonce = os.urandom(NONCE_BYTES)
        sealed = self._aead.encrypt(nonce, plaintext.encode("utf-8"), None)
        ciphertext, tag = sealed[:-TAG_BYTES], sealed[-TAG_BYTES:]
        return SEPARATOR.join(
            base64.b64encode(part).decode("ascii") for part in (nonce, tag, ciphertext)
        )

    def decrypt(self, payload: str) -> str:
        parts = payload.split(SEPARATOR)
        # Ciphertext of an empty string encodes to "", so only nonce and tag must be non-empty
        if len(parts) != 3 or not parts[0] or not parts[1]:
            raise SecretFormatError("Invalid encrypted payload.")

        try:
            nonce, tag, ciphertext = (base64.b64decode(part, validate=True) for part in parts)
        except (binascii.Error, ValueError) as e:
            raise SecretFormatError("Invalid encrypted payload.") from e

        if len(nonce) != NONCE_BYTES or len(tag) != TAG_BYTES:
            raise SecretFormatError("Invalid encrypted payload.")

        try:
            plaintext = self._aead.decrypt(nonce, ciphertext + tag, None)
        except InvalidTag as e:
            raise SecretAuthenticationError("Encrypted payload failed authentication.") from e

        return plaintext.decode("utf-8")


def encrypt_secret(plaintext: str, secret: Optional[str]) -> str:
    return SecretBox(secret).encrypt(plaintext)


def decrypt_secret(payload: str, secret: Optional[str]) -> str:
    return SecretBox(secret).decrypt(payload)
