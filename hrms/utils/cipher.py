"""필드 암호화 유틸리티 — PAN/Aadhaar 저장용.

Symmetric field cipher for PII at rest (Fernet with a PBKDF2-derived key).
The secret comes from configuration; a missing secret is fatal.
"""

import base64
from functools import lru_cache

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from hrms.config import settings
from hrms.utils.exceptions import ConfigurationError


class EncryptionError(Exception):
    """암호화/복호화 실패 (Encryption or decryption failure)."""


class FieldCipher:
    """Fernet 기반 필드 암호기.

    Encrypts and decrypts individual string fields.

    Args:
        secret: 키 유도용 비밀 (Master secret; empty raises ConfigurationError)
        salt: PBKDF2 솔트 (Key-derivation salt)
    """

    def __init__(self, secret: str, salt: str) -> None:
        if not secret:
            raise ConfigurationError("ENCRYPTION_KEY is not configured")
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=salt.encode("utf-8"),
            iterations=100_000,
        )
        key: bytes = base64.urlsafe_b64encode(kdf.derive(secret.encode("utf-8")))
        self._fernet: Fernet = Fernet(key)

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, ciphertext: str) -> str:
        try:
            return self._fernet.decrypt(ciphertext.encode("utf-8")).decode("utf-8")
        except InvalidToken as exc:
            raise EncryptionError("Unable to decrypt field") from exc


@lru_cache
def build_cipher(secret: str, salt: str) -> FieldCipher:
    """비밀/솔트 조합별 암호기 (One cipher per secret and salt; key derivation runs once)."""
    return FieldCipher(secret, salt)


def get_cipher() -> FieldCipher:
    """설정 기반 암호기 의존성 (FastAPI dependency resolving the cipher from settings).

    Raises:
        ConfigurationError: ENCRYPTION_KEY 미설정 (Key not configured)
    """
    return build_cipher(settings.ENCRYPTION_KEY, settings.ENCRYPTION_SALT)
