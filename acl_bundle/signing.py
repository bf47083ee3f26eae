"""
ACL payload signing / verification helpers.

This supports:
- RSA PKCS#1 v1.5 + SHA256 signing of a payload with a PKCS8 private key,
- verification against '<identity>.pub' in a keys directory.

Notes:
- Signatures cover the exact payload bytes. Nothing is normalised, so any
  re-encoding between sign and verify (line endings, trailing newline)
  invalidates the signature.
- Do NOT log secret keys or signature bytes.
"""
from __future__ import annotations

import logging
from typing import Optional

from cryptography.exceptions import InvalidSignature as _CryptoInvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding

from .error_handling import InvalidKeyFile, InvalidSignature, NoPublicKey, wrap_signing
from .keystore import KeyStore

logger = logging.getLogger(__name__)

_uncached = KeyStore(cache=False)


@wrap_signing
def sign(payload: bytes, private_key_path: str, keystore: Optional[KeyStore] = None) -> bytes:
    """
    Return the RSA-PKCS1v15/SHA-256 signature of payload. Raises SigningError
    if the key cannot be loaded or signing fails.
    """
    key = (keystore or _uncached).private_key(private_key_path)
    return key.sign(payload, padding.PKCS1v15(), hashes.SHA256())


def verify(identity: str, payload: bytes, signature: bytes, keys_dir: str,
           keystore: Optional[KeyStore] = None) -> None:
    """
    Verify signature over payload with the public key of identity. Returns
    None on success, raises NoPublicKey or InvalidSignature otherwise.
    """
    try:
        pub = (keystore or _uncached).public_key(keys_dir, identity)
    except InvalidKeyFile as e:
        raise NoPublicKey(identity, str(e)) from e

    try:
        pub.verify(signature, payload, padding.PKCS1v15(), hashes.SHA256())
    except _CryptoInvalidSignature as e:
        logger.warning("Invalid signature for ACL signed by %s", identity)
        raise InvalidSignature(identity, f"{identity}: invalid RSA signature") from e

    logger.debug("Verified %d byte payload signed by %s", len(payload), identity)
