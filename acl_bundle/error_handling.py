"""
Error taxonomy for acl-bundle.

Every failure in the codec, key, signing and transport layers is an
AclBundleError subclass carrying the offending URI, role or identity.
Nothing here is retried.
"""
from __future__ import annotations

import functools
from typing import Optional


class AclBundleError(Exception):
    pass


class InvalidKeyFile(AclBundleError):
    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class SigningError(AclBundleError):
    pass


class VerificationError(AclBundleError):
    def __init__(self, identity: str, message: str):
        super().__init__(message)
        self.identity = identity


class NoPublicKey(VerificationError):
    pass


class InvalidSignature(VerificationError):
    pass


class BundleError(AclBundleError):
    pass


class DuplicateEntry(BundleError):
    def __init__(self, role: str):
        super().__init__(f"multiple '{role}' entries in bundle")
        self.role = role


class MissingEntry(BundleError):
    def __init__(self, role: str):
        super().__init__(f"'{role}' entry missing from bundle")
        self.role = role


class InvalidArchive(BundleError):
    pass


class InvalidURI(AclBundleError):
    def __init__(self, uri: str, message: Optional[str] = None):
        super().__init__(message or f"Invalid URI ({uri})")
        self.uri = uri


class TransportError(AclBundleError):
    def __init__(self, uri: str, message: str):
        super().__init__(f"{uri}: {message}" if uri else message)
        self.uri = uri


class CredentialsError(TransportError):
    def __init__(self, message: str, uri: str = ""):
        super().__init__(uri, message)


# Keeps library exceptions from leaking out of the signing path
def wrap_signing(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SigningError:
            raise
        except Exception as e:
            raise SigningError(str(e)) from e
    return wrapper
