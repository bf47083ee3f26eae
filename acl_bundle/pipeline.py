#!/usr/bin/env python3
"""
High-level workflows: fetch+verify an ACL bundle, and sign+store ACLs and
'diff' reports.

API:
- fetch_acl(uri, cfg, verify=True) -> Bundle
  - fetches the archive, unpacks it and verifies the signature
  - raises before returning if the bundle is malformed or unauthenticated
- store_acl(uri, payload, cfg) -> int (archive size)
- store_report(uri, diffs, cfg) -> str (report file name)

Callers MUST treat any exception from fetch_acl as "do not load".
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional

from . import bundle as codec
from . import signing, storage
from .bundle import Bundle
from .config import Config
from .keystore import KeyStore
from .report import COMPARE_TEMPLATE, Diff, ReportTemplate, render, report_filename
from .uri import resolve

LOG = logging.getLogger("acl_bundle.pipeline")


def fetch_acl(uri: str, cfg: Config, verify: bool = True, keystore: Optional[KeyStore] = None) -> Bundle:
    loc = resolve(uri)
    LOG.info("Fetching ACL from %s", loc.uri)

    data = storage.fetch(loc, cfg)
    LOG.info("Fetched ACL from %s (%d bytes)", loc.uri, len(data))

    b = codec.unpack(data, loc.format, require_signature=verify)
    LOG.info("Extracted ACL from %s: %d bytes, signature: %d bytes",
             loc.uri, len(b.payload), len(b.signature or b""))

    if verify:
        signing.verify(b.identity, b.payload, b.signature, cfg.KEYS_DIR, keystore=keystore)
        LOG.info("Verified ACL signature (signed by %s)", b.identity)
    else:
        LOG.warning("ACL signature verification disabled for %s", loc.uri)

    return b


def _sign_and_store(uri: str, name: str, payload: bytes, cfg: Config, what: str,
                    now: Optional[datetime] = None, keystore: Optional[KeyStore] = None) -> int:
    loc = resolve(uri)
    signature = signing.sign(payload, cfg.KEY_FILE, keystore=keystore)
    b = Bundle(payload=payload, signature=signature, identity=cfg.IDENTITY, payload_name=name)

    data = codec.pack(b, loc.format, now=now)
    LOG.info("Packed %s (%d bytes) and signature (%d bytes): %d bytes (%s)",
             what, len(payload), len(signature), len(data), loc.format.value)

    storage.store(loc, data, cfg)
    LOG.info("Stored %s to %s", what, loc.uri)
    return len(data)


def store_acl(uri: str, payload: bytes, cfg: Config, name: Optional[str] = None,
              now: Optional[datetime] = None, keystore: Optional[KeyStore] = None) -> int:
    LOG.info("Storing ACL to %s", uri)
    return _sign_and_store(uri, name or cfg.ACL_FILENAME, payload, cfg, "ACL", now=now, keystore=keystore)


def store_report(uri: str, diffs: Mapping[Any, Diff], cfg: Config, template: ReportTemplate = COMPARE_TEMPLATE,
                 now: Optional[datetime] = None, keystore: Optional[KeyStore] = None) -> str:
    now = now or datetime.now()
    LOG.info("Uploading ACL 'diff' report")
    for device, d in diffs.items():
        LOG.info("%s  SUMMARY  same:%d  different:%d  missing:%d  extraneous:%d",
                 device, len(d.unchanged), len(d.updated), len(d.added), len(d.deleted))

    filename = report_filename(now)
    rpt = render(diffs, template, now).encode("utf-8")
    _sign_and_store(uri, filename, rpt, cfg, "report", now=now, keystore=keystore)
    return filename
