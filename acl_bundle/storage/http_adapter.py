#!/usr/bin/env python3
"""
HTTP(S) transport using requests.

fetch() issues a GET and returns the full body; store() issues a PUT with a
fixed binary content type. No retries.
"""
from __future__ import annotations

import logging

import requests

from ..error_handling import TransportError

logger = logging.getLogger(__name__)

CONTENT_TYPE = "binary/octet-stream"


class HTTPTransport:
    def __init__(self, timeout: float = 30):
        self.timeout = timeout

    def fetch(self, uri: str) -> bytes:
        try:
            r = requests.get(uri, timeout=self.timeout)
            r.raise_for_status()
        except requests.RequestException as e:
            raise TransportError(uri, f"GET failed ({e})") from e
        data = r.content
        logger.info("Fetched %s (%d bytes)", uri, len(data))
        return data

    def store(self, uri: str, data: bytes) -> None:
        headers = {"Content-Type": CONTENT_TYPE}
        try:
            r = requests.put(uri, data=data, headers=headers, timeout=self.timeout)
            r.raise_for_status()
        except requests.RequestException as e:
            raise TransportError(uri, f"PUT failed ({e})") from e
        logger.info("Stored %s (%d bytes)", uri, len(data))
