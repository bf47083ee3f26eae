#!/usr/bin/env python3
"""
Transport abstraction for acl-bundle.

Define a Transport interface that the workflows use to move opaque bundle
bytes. Implementations (S3, HTTP, local file) implement this interface.
"""
from __future__ import annotations
from typing import Protocol


class Transport(Protocol):
    """
    Minimal transport interface.

    - fetch(uri) -> bytes
    - store(uri, data) -> None

    Both raise TransportError (or InvalidURI) with the offending URI.
    """
    def fetch(self, uri: str) -> bytes:
        ...

    def store(self, uri: str, data: bytes) -> None:
        ...
