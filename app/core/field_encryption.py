"""Field-level encryption for integration credentials stored in the database."""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any

from cryptography.fernet import Fernet, InvalidToken

from app.config import settings


@lru_cache(maxsize=1)
def get_credentials_cipher() -> Fernet:
    """Return Fernet cipher used for credential encryption/decryption."""
    return Fernet(settings.get_credentials_encryption_key())


def encrypt_value(value: str) -> str:
    """Encrypt a single secret string."""
    return get_credentials_cipher().encrypt(value.encode("utf-8")).decode("utf-8")


def decrypt_value(value: str) -> str:
    """Decrypt a stored secret ciphertext."""
    try:
        return get_credentials_cipher().decrypt(value.encode("utf-8")).decode("utf-8")
    except InvalidToken as exc:
        raise ValueError("invalid_credentials_ciphertext") from exc


def encrypt_json(payload: dict[str, Any]) -> str:
    """Serialize and encrypt a credentials mapping."""
    return encrypt_value(json.dumps(payload, sort_keys=True, default=str))


def decrypt_json(ciphertext: str) -> dict[str, Any]:
    """Decrypt a credentials mapping written by `encrypt_json`."""
    decoded = json.loads(decrypt_value(ciphertext))
    if not isinstance(decoded, dict):
        raise ValueError("invalid_credentials_payload")
    return decoded
