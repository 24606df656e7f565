"""Password hashing for users without an external identity provider.

Format matches the auth server: ``hex(salt):hex(scrypt(password))`` with
N=16384, r=16, p=1, dkLen=64, the hex salt string used as the salt bytes.
"""

import hashlib
import hmac
import os

_SCRYPT_N = 16384
_SCRYPT_R = 16
_SCRYPT_P = 1
_SCRYPT_DKLEN = 64
_SCRYPT_MAXMEM = 128 * _SCRYPT_N * _SCRYPT_R * 2


def _derive(password: str, salt_hex: str) -> bytes:
    return hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt_hex.encode("utf-8"),
        n=_SCRYPT_N,
        r=_SCRYPT_R,
        p=_SCRYPT_P,
        dklen=_SCRYPT_DKLEN,
        maxmem=_SCRYPT_MAXMEM,
    )


def hash_password(password: str) -> str:
    salt_hex = os.urandom(16).hex()
    return f"{salt_hex}:{_derive(password, salt_hex).hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored hash. Malformed hashes never match."""
    salt_hex, sep, key_hex = password_hash.partition(":")
    if not sep or not salt_hex or not key_hex:
        return False
    return hmac.compare_digest(_derive(password, salt_hex).hex(), key_hex)
