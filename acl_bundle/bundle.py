#!/usr/bin/env python3
"""
Signed bundle codec.

A bundle is an archive holding an ACL payload and its detached signature:

- the payload entry is identified by a '.acl' extension,
- the signature entry is named exactly 'signature',
- the signer identity travels as archive metadata: the tar owner name
  (uname) of the payload entry, or the zip comment of the payload entry.

Two encodings are supported and carry byte-identical payload/signature pairs:

- tar.gz: POSIX tar with normalised headers (mode 0660, uid/gid 0, mtime 0)
  wrapped in gzip with a timestamped archive name,
- zip: deflated zip entries.

Unpacking never interprets the payload bytes.
"""
from __future__ import annotations

import gzip
import io
import logging
import stat
import tarfile
import zipfile
import zlib
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Tuple

from .error_handling import BundleError, DuplicateEntry, InvalidArchive, MissingEntry
from .uri import Format

logger = logging.getLogger(__name__)

ACL = "ACL"
SIGNATURE = "signature"
ACL_EXT = ".acl"

ENTRY_MODE = 0o660
FIXED_MTIME = 0  # unix epoch


@dataclass
class Bundle:
    payload: bytes
    signature: Optional[bytes] = None
    identity: str = ""
    payload_name: str = "uhppoted.acl"
    extras: Dict[str, bytes] = field(default_factory=dict)

    def entries(self) -> Dict[str, bytes]:
        """Role -> bytes."""
        roles = {ACL: self.payload}
        if self.signature is not None:
            roles[SIGNATURE] = self.signature
        return roles

    def files(self) -> Dict[str, bytes]:
        """Wire name -> bytes, payload first."""
        if self.payload_name == SIGNATURE:
            raise BundleError(f"payload cannot be named '{SIGNATURE}'")
        files = {self.payload_name: self.payload}
        if self.signature is not None:
            files[SIGNATURE] = self.signature
        for name, body in self.extras.items():
            if name in files:
                raise BundleError(f"extra entry '{name}' collides with a reserved entry")
            files[name] = body
        return files


def archive_name(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"uhppoted-{now.strftime('%Y-%m-%dT%H%M%S')}.tar.gz"


def _is_acl(name: str) -> bool:
    return name.endswith(ACL_EXT)


def _identity_entry(files: Mapping[str, bytes]) -> Optional[str]:
    names = list(files)
    for name in names:
        if _is_acl(name):
            return name
    for name in names:
        if name != SIGNATURE:
            return name
    return None


class _Collector:
    """Accumulates role candidates while iterating archive entries."""

    def __init__(self):
        self.acl: List[Tuple[str, bytes, str]] = []
        self.signatures: List[bytes] = []
        self.extras: Dict[str, bytes] = {}

    def add(self, name: str, body: bytes, identity: str) -> None:
        if _is_acl(name):
            self.acl.append((name, body, identity))
        elif name == SIGNATURE:
            self.signatures.append(body)
        else:
            self.extras[name] = body

    def bundle(self, require_signature: bool) -> Bundle:
        if len(self.acl) > 1:
            raise DuplicateEntry(ACL)
        if len(self.signatures) > 1:
            raise DuplicateEntry(SIGNATURE)
        if not self.acl:
            raise MissingEntry(ACL)
        if require_signature and not self.signatures:
            raise MissingEntry(SIGNATURE)

        name, payload, identity = self.acl[0]
        return Bundle(
            payload=payload,
            signature=self.signatures[0] if self.signatures else None,
            identity=identity,
            payload_name=name,
            extras=self.extras,
        )


# ---------------------------------------------------------------------------
# tar.gz
# ---------------------------------------------------------------------------

def pack_targz(files: Mapping[str, bytes], identity: str, now: Optional[datetime] = None) -> bytes:
    now = now or datetime.now()

    raw = io.BytesIO()
    with tarfile.open(fileobj=raw, mode="w", format=tarfile.PAX_FORMAT) as tar:
        for name, body in files.items():
            ti = tarfile.TarInfo(name=name)
            ti.type = tarfile.REGTYPE
            ti.mode = ENTRY_MODE
            ti.size = len(body)
            ti.mtime = FIXED_MTIME
            ti.uid = 0
            ti.gid = 0
            ti.uname = identity
            ti.gname = identity
            tar.addfile(ti, io.BytesIO(body))

    out = io.BytesIO()
    with gzip.GzipFile(filename=archive_name(now), mode="wb", fileobj=out, mtime=int(now.timestamp())) as gz:
        gz.write(raw.getvalue())

    return out.getvalue()


def unpack_targz(data: bytes, require_signature: bool = True) -> Bundle:
    collector = _Collector()
    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
            for member in tar:
                if not member.isfile():
                    continue
                f = tar.extractfile(member)
                body = f.read() if f is not None else b""
                collector.add(member.name, body, member.uname or "")
    except (tarfile.TarError, OSError, EOFError, zlib.error) as e:
        raise InvalidArchive(f"invalid tar.gz archive ({e})") from e

    return collector.bundle(require_signature)


# ---------------------------------------------------------------------------
# zip
# ---------------------------------------------------------------------------

def pack_zip(files: Mapping[str, bytes], identity: str, now: Optional[datetime] = None) -> bytes:
    now = now or datetime.now()
    carrier = _identity_entry(files)

    out = io.BytesIO()
    with zipfile.ZipFile(out, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, body in files.items():
            info = zipfile.ZipInfo(filename=name, date_time=now.timetuple()[:6])
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = (stat.S_IFREG | ENTRY_MODE) << 16
            if name == carrier:
                info.comment = identity.encode("utf-8")
            zf.writestr(info, body)

    return out.getvalue()


def unpack_zip(data: bytes, require_signature: bool = True) -> Bundle:
    collector = _Collector()
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            for info in zf.infolist():
                if info.is_dir():
                    continue
                if info.flag_bits & 0x1:
                    raise InvalidArchive(f"encrypted zip entry '{info.filename}' not supported")
                body = zf.read(info)
                collector.add(info.filename, body, info.comment.decode("utf-8", errors="replace"))
    except (zipfile.BadZipFile, zlib.error, OSError, EOFError, NotImplementedError) as e:
        raise InvalidArchive(f"invalid zip archive ({e})") from e

    return collector.bundle(require_signature)


# ---------------------------------------------------------------------------
# dispatch
# ---------------------------------------------------------------------------

def pack(bundle: Bundle, fmt: Format, now: Optional[datetime] = None) -> bytes:
    files = bundle.files()
    if fmt is Format.ZIP:
        data = pack_zip(files, bundle.identity, now=now)
    else:
        data = pack_targz(files, bundle.identity, now=now)
    logger.debug("Packed %s (%d entries): %d bytes", fmt.value, len(files), len(data))
    return data


def unpack(data: bytes, fmt: Format, require_signature: bool = True) -> Bundle:
    if fmt is Format.ZIP:
        return unpack_zip(data, require_signature=require_signature)
    return unpack_targz(data, require_signature=require_signature)
