"""Local filesystem transport for file:// URIs."""
from __future__ import annotations

import logging
import os

from ..error_handling import TransportError
from ..uri import parse_file_uri

logger = logging.getLogger(__name__)

FILE_MODE = 0o660


class FileTransport:
    def fetch(self, uri: str) -> bytes:
        path = parse_file_uri(uri)
        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as e:
            raise TransportError(uri, f"could not read {path} ({e.strerror or e})") from e
        logger.info("Fetched %s (%d bytes)", uri, len(data))
        return data

    def store(self, uri: str, data: bytes) -> None:
        path = parse_file_uri(uri)
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            # O_CREAT mode is masked by umask and ignored for existing files
            os.chmod(path, FILE_MODE)
        except OSError as e:
            raise TransportError(uri, f"could not write {path} ({e.strerror or e})") from e
        logger.info("Stored %s (%d bytes)", uri, len(data))
