"""
At-rest protection for WiFi passphrases.

Passphrases are Fernet tokens in the database and plaintext everywhere else
(API payloads, backup snapshots). The key is bound to settings.SECRET_KEY, so
a backup restored into an installation with a different key is re-encrypted
on import rather than carried over as ciphertext.
"""
import base64
import hashlib
from typing import Optional
from cryptography.fernet import Fernet, InvalidToken
from subnetly.config import settings

_KEY_CONTEXT = b"subnetly/wifi-passphrase/v1:"

_fernet = Fernet(base64.urlsafe_b64encode(
    hashlib.sha256(_KEY_CONTEXT + settings.SECRET_KEY.encode()).digest()
))


def encrypt_passphrase(plaintext: Optional[str]) -> Optional[str]:
    if not plaintext:
        return plaintext
    return _fernet.encrypt(plaintext.encode()).decode()


def decrypt_passphrase(stored: Optional[str]) -> Optional[str]:
    """Return the plaintext of a stored passphrase.

    Rows written before encryption was introduced hold plaintext and are
    returned unchanged.
    """
    if not stored:
        return stored
    try:
        return _fernet.decrypt(stored.encode()).decode()
    except InvalidToken:
        return stored
