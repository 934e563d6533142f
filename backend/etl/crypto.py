"""
Symmetric encryption for stored board tokens.

CREDENTIALS_FERNET_KEYS may list several keys: the first encrypts, all of them
decrypt, so keys can be rotated without re-entering tokens.
"""
import base64
from typing import List

from cryptography.fernet import Fernet, InvalidToken, MultiFernet
from django.conf import settings


def _as_fernet_key(key: str) -> bytes:
    if len(key) == 44:  # already urlsafe base64 of 32 bytes
        return key.encode()
    return base64.urlsafe_b64encode(key.encode()[:32].ljust(32, b"0"))


def _keys() -> List[bytes]:
    keys = list(getattr(settings, "CREDENTIALS_FERNET_KEYS", None) or [])
    single = getattr(settings, "CREDENTIALS_FERNET_KEY", None)
    if single:
        keys.insert(0, single)
    if not keys:
        # dev only: derived from SECRET_KEY
        keys = [settings.SECRET_KEY + "board-token"]
    return [_as_fernet_key(k) for k in keys]


def _cipher() -> MultiFernet:
    return MultiFernet([Fernet(k) for k in _keys()])


def encrypt_value(plain: str) -> bytes:
    if not plain:
        return b""
    return _cipher().encrypt(plain.encode())


def decrypt_value(cipher: bytes) -> str:
    if not cipher:
        return ""
    try:
        return _cipher().decrypt(cipher).decode()
    except InvalidToken:
        return ""


def rotate_value(cipher: bytes) -> bytes:
    """Re-encrypt under the current primary key."""
    if not cipher:
        return b""
    return _cipher().rotate(cipher)
