"""
RSA key material loaders.

- load_private_key(path) -> RSAPrivateKey  (PEM "PRIVATE KEY", PKCS8)
- load_public_key(keys_dir, identity) -> RSAPublicKey  (PEM "PUBLIC KEY", PKIX)

Public keys live in a keys directory as '<identity>.pub'. Keys are read from
disk on every call unless a KeyStore with caching is used; the cache is
process-scoped and never invalidated.

Do NOT log key bytes.
"""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, Optional, Tuple

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from .error_handling import InvalidKeyFile

logger = logging.getLogger(__name__)

_PEM_LABEL = re.compile(rb"-----BEGIN ([A-Z0-9 ]+)-----")


def _pem_label(data: bytes) -> Optional[str]:
    """Label of the first PEM block in data, or None if there is none."""
    m = _PEM_LABEL.search(data)
    return m.group(1).decode("ascii") if m else None


def _check_identity(identity: str) -> None:
    if not identity or identity in (".", "..") or "/" in identity or "\\" in identity:
        raise InvalidKeyFile(f"{identity!r}: invalid signer identity")


def load_private_key(path: str) -> rsa.RSAPrivateKey:
    invalid = f"{path} is not a valid RSA private key"
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise InvalidKeyFile(f"{invalid} ({e.strerror or e})", path=str(path)) from e

    # PKCS8 only; PKCS1 'RSA PRIVATE KEY' is rejected
    if _pem_label(data) != "PRIVATE KEY":
        raise InvalidKeyFile(invalid, path=str(path))

    try:
        key = serialization.load_pem_private_key(data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise InvalidKeyFile(invalid, path=str(path)) from e

    if not isinstance(key, rsa.RSAPrivateKey):
        raise InvalidKeyFile(invalid, path=str(path))

    return key


def public_key_path(keys_dir: str, identity: str) -> Path:
    _check_identity(identity)
    return Path(keys_dir) / f"{identity}.pub"


def load_public_key(keys_dir: str, identity: str) -> rsa.RSAPublicKey:
    file = public_key_path(keys_dir, identity)
    invalid = f"{file} is not a valid RSA public key"
    try:
        data = file.read_bytes()
    except FileNotFoundError as e:
        raise InvalidKeyFile(f"{identity}: no RSA public key", path=str(file)) from e
    except OSError as e:
        raise InvalidKeyFile(f"{invalid} ({e.strerror or e})", path=str(file)) from e

    if _pem_label(data) != "PUBLIC KEY":
        raise InvalidKeyFile(invalid, path=str(file))

    try:
        key = serialization.load_pem_public_key(data)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise InvalidKeyFile(f"{invalid} ({e})", path=str(file)) from e

    if not isinstance(key, rsa.RSAPublicKey):
        raise InvalidKeyFile(f"{identity}: no RSA public key", path=str(file))

    return key


class KeyStore:
    """
    Resolves key material on demand, optionally caching parsed keys by
    absolute path for the lifetime of the process.
    """

    def __init__(self, cache: bool = True):
        self.cache = cache
        self._keys: Dict[Tuple[str, str], object] = {}

    def _cached(self, kind: str, path: Path, loader):
        if not self.cache:
            return loader()
        k = (kind, str(path.resolve()))
        if k not in self._keys:
            self._keys[k] = loader()
            logger.debug("Loaded %s key %s", kind, path)
        return self._keys[k]

    def private_key(self, path: str) -> rsa.RSAPrivateKey:
        return self._cached("private", Path(path), lambda: load_private_key(path))

    def public_key(self, keys_dir: str, identity: str) -> rsa.RSAPublicKey:
        p = public_key_path(keys_dir, identity)
        return self._cached("public", p, lambda: load_public_key(keys_dir, identity))

    def clear(self) -> None:
        self._keys.clear()
