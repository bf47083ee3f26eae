# tests/conftest.py
from pathlib import Path
from types import SimpleNamespace

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from acl_bundle.config import DEFAULT_CREDENTIALS, Config


def write_private_key(path: Path, key) -> Path:
    path.write_bytes(key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ))
    return path


def write_public_key(path: Path, key) -> Path:
    path.write_bytes(key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ))
    return path


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def keys(tmp_path, rsa_key):
    """
    A keys directory holding svc-a.pub plus the matching PKCS8 private key.
    """
    keys_dir = tmp_path / "keys"
    keys_dir.mkdir()
    private = write_private_key(keys_dir / "svc-a", rsa_key)
    write_public_key(keys_dir / "svc-a.pub", rsa_key)
    return SimpleNamespace(dir=keys_dir, private=private, identity="svc-a")


@pytest.fixture
def cfg(tmp_path, keys):
    return Config(
        KEYS_DIR=str(keys.dir),
        KEY_FILE=str(keys.private),
        IDENTITY=keys.identity,
        CREDENTIALS=DEFAULT_CREDENTIALS,
        PROFILE="default",
        REGION="us-east-1",
        WORKDIR=str(tmp_path),
        LOG_FILE=str(tmp_path / "acl-bundle.log"),
    )
