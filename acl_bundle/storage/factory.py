#!/usr/bin/env python3
"""
Transport factory.

Creates a Transport implementation for a resolved URI scheme and exposes the
fetch()/store() entry points used by the workflows.
Supported schemes: "http"/"https", "s3", "file".
"""
from __future__ import annotations
from typing import Optional

from ..config import Config, load_config
from ..uri import Locator, Scheme, resolve
from .abstract import Transport


def create_transport(scheme: Scheme, cfg: Optional[Config] = None) -> Transport:
    cfg = cfg or load_config()
    if scheme is Scheme.S3:
        from .s3_adapter import S3Transport
        return S3Transport(credentials=cfg.CREDENTIALS, profile=cfg.PROFILE, region=cfg.REGION, endpoint_url=cfg.S3_ENDPOINT)
    if scheme is Scheme.HTTP:
        from .http_adapter import HTTPTransport
        return HTTPTransport(timeout=cfg.HTTP_TIMEOUT)
    if scheme is Scheme.FILE:
        from .file_adapter import FileTransport
        return FileTransport()
    raise RuntimeError(f"Unsupported transport scheme: {scheme}")


def _locate(uri) -> Locator:
    return uri if isinstance(uri, Locator) else resolve(uri)


def fetch(uri, cfg: Optional[Config] = None) -> bytes:
    loc = _locate(uri)
    return create_transport(loc.scheme, cfg).fetch(loc.uri)


def store(uri, data: bytes, cfg: Optional[Config] = None) -> None:
    loc = _locate(uri)
    create_transport(loc.scheme, cfg).store(loc.uri, data)
