#!/usr/bin/env python3
"""
URI resolution for the transport layer.

resolve(uri) -> Locator(scheme, format, ...) is evaluated once per operation:
- scheme from the prefix: http:// | https:// | s3:// | file://
- archive format from the suffix of the path part: '.zip' -> zip, else tar.gz

Unrecognised schemes are rejected with InvalidURI.
"""
from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import urlsplit

from .error_handling import InvalidURI

_S3_URI = re.compile(r"^s3://([^/]+)/(.+)$")
_FILE_URI = re.compile(r"^file://(.+)$")


class Scheme(enum.Enum):
    HTTP = "http"
    S3 = "s3"
    FILE = "file"


class Format(enum.Enum):
    TARGZ = "tar.gz"
    ZIP = "zip"


@dataclass(frozen=True)
class Locator:
    uri: str
    scheme: Scheme
    format: Format
    bucket: Optional[str] = None
    key: Optional[str] = None
    path: Optional[str] = None


def parse_s3_uri(uri: str) -> Tuple[str, str]:
    """
    Split s3://<bucket>/<key> into (bucket, key). The key keeps any further
    slashes.
    """
    m = _S3_URI.match(uri)
    if m is None:
        raise InvalidURI(uri, f"Invalid S3 URI ({uri})")
    return m.group(1), m.group(2)


def parse_file_uri(uri: str) -> str:
    m = _FILE_URI.match(uri)
    if m is None:
        raise InvalidURI(uri, f"Invalid file URI ({uri})")
    return m.group(1)


def archive_format(uri: str) -> Format:
    path = uri
    if uri.startswith(("http://", "https://")):
        path = urlsplit(uri).path
    return Format.ZIP if path.endswith(".zip") else Format.TARGZ


def resolve(uri: str) -> Locator:
    if uri is None or not uri.strip():
        raise InvalidURI("", "missing URI")
    uri = uri.strip()
    fmt = archive_format(uri)

    if uri.startswith("s3://"):
        bucket, key = parse_s3_uri(uri)
        return Locator(uri, Scheme.S3, fmt, bucket=bucket, key=key)
    if uri.startswith("file://"):
        return Locator(uri, Scheme.FILE, fmt, path=parse_file_uri(uri))
    if uri.startswith(("http://", "https://")):
        if not urlsplit(uri).netloc:
            raise InvalidURI(uri, f"Invalid HTTP URI ({uri})")
        return Locator(uri, Scheme.HTTP, fmt)

    raise InvalidURI(uri, f"Unsupported URI scheme ({uri})")
