"""Password based encryption of single secret values.

A ciphertext blob is the standard base64 encoding of::

    nonce (12 bytes) || AES-256-GCM ciphertext and tag || salt (32 bytes)

The blob carries everything needed to decrypt it except the password. Every
call to `encrypt_secret` uses a fresh salt and a fresh nonce.
"""

import base64
import binascii
import logging
import os
from typing import Optional, Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from workersync import DecryptionError

logger = logging.getLogger(__name__)

ENCRYPTION_KEY_LENGTH = 32
SALT_LENGTH = 32
NONCE_LENGTH = 12
TAG_LENGTH = 16
MINIMUM_BLOB_LENGTH = NONCE_LENGTH + TAG_LENGTH + SALT_LENGTH

# scrypt work factors
SCRYPT_N = 2**14
SCRYPT_R = 8
SCRYPT_P = 1


def derive_key(
    password: bytes, salt: Optional[bytes] = None
) -> Tuple[bytes, bytes]:
    """Derive an AES-256 key from `password`.

    Returns `(key, salt)`. A random salt is generated if none is given,
    otherwise the derivation is deterministic for the password/salt pair.
    """
    if salt is None:
        salt = os.urandom(SALT_LENGTH)
    kdf = Scrypt(
        salt=salt,
        length=ENCRYPTION_KEY_LENGTH,
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
    )
    return kdf.derive(password), salt


def encrypt_secret(password: str, value: str) -> str:
    key, salt = derive_key(password.encode("utf-8"))
    nonce = os.urandom(NONCE_LENGTH)
    sealed = AESGCM(key).encrypt(nonce, value.encode("utf-8"), None)
    return base64.b64encode(nonce + sealed + salt).decode("ascii")


def decrypt_secret(password: str, blob: str) -> str:
    try:
        data = base64.b64decode(blob, validate=True)
    except (binascii.Error, ValueError) as e:
        logger.debug("Secret is not valid base64: %s", e)
        raise DecryptionError.from_context()

    if len(data) < MINIMUM_BLOB_LENGTH:
        raise DecryptionError.from_context("invalid encrypted secret length")

    data, salt = data[:-SALT_LENGTH], data[-SALT_LENGTH:]
    nonce, sealed = data[:NONCE_LENGTH], data[NONCE_LENGTH:]

    key, _ = derive_key(password.encode("utf-8"), salt)
    try:
        cleartext = AESGCM(key).decrypt(nonce, sealed, None)
        return cleartext.decode("utf-8")
    except (InvalidTag, UnicodeDecodeError) as e:
        logger.debug("Cannot open secret: %s", e.__class__.__name__)
        raise DecryptionError.from_context()
