"""
End-to-end workflows over the file:// transport, plus S3 dispatch with a
fake client.
"""
import gzip
import io
import tarfile
import zipfile
from datetime import datetime

import pytest

from acl_bundle import bundle as codec
from acl_bundle import pipeline
from acl_bundle.bundle import Bundle
from acl_bundle.error_handling import InvalidSignature, MissingEntry, NoPublicKey, SigningError
from acl_bundle.report import Diff
from acl_bundle.signing import sign, verify
from acl_bundle.storage import s3_adapter
from acl_bundle.uri import Format

ACL = b"1,Alice,101\n"
NOW = datetime(2023, 5, 1, 12, 30, 45)


def test_end_to_end_targz(tmp_path, cfg, keys):
    out = tmp_path / "out.tar.gz"
    uri = f"file://{out}"

    size = pipeline.store_acl(uri, ACL, cfg)
    assert size == out.stat().st_size
    assert out.read_bytes()[:2] == b"\x1f\x8b"

    b = pipeline.fetch_acl(uri, cfg)
    assert b.payload == ACL
    assert b.identity == "svc-a"
    assert b.payload_name == "uhppoted.acl"
    verify(b.identity, b.payload, b.signature, str(keys.dir))


def test_zip_destination_stores_zip(tmp_path, cfg):
    out = tmp_path / "out.zip"
    pipeline.store_acl(f"file://{out}", ACL, cfg)
    assert zipfile.is_zipfile(out)
    assert pipeline.fetch_acl(f"file://{out}", cfg).payload == ACL


def test_zip_archive_not_readable_as_targz(tmp_path, cfg):
    zipped = tmp_path / "out.zip"
    pipeline.store_acl(f"file://{zipped}", ACL, cfg)
    renamed = tmp_path / "out.tar.gz"
    renamed.write_bytes(zipped.read_bytes())
    with pytest.raises(codec.InvalidArchive):
        pipeline.fetch_acl(f"file://{renamed}", cfg)


def test_custom_acl_entry_name(tmp_path, cfg):
    out = tmp_path / "out.tar.gz"
    pipeline.store_acl(f"file://{out}", ACL, cfg, name="site-a.acl")
    with tarfile.open(out, "r:gz") as tar:
        assert tar.getnames() == ["site-a.acl", "signature"]


def test_tampered_payload_is_rejected(tmp_path, cfg):
    signature = sign(ACL, cfg.KEY_FILE)
    forged = Bundle(payload=b"1,Mallory,101\n", signature=signature, identity="svc-a")
    out = tmp_path / "forged.tar.gz"
    out.write_bytes(codec.pack(forged, Format.TARGZ))

    with pytest.raises(InvalidSignature):
        pipeline.fetch_acl(f"file://{out}", cfg)


def test_unknown_signer_is_rejected(tmp_path, cfg):
    signature = sign(ACL, cfg.KEY_FILE)
    out = tmp_path / "other.zip"
    out.write_bytes(codec.pack(Bundle(payload=ACL, signature=signature, identity="svc-x"), Format.ZIP))

    with pytest.raises(NoPublicKey):
        pipeline.fetch_acl(f"file://{out}", cfg)


def test_unsigned_bundle(tmp_path, cfg):
    out = tmp_path / "unsigned.tar.gz"
    out.write_bytes(codec.pack(Bundle(payload=ACL, identity="svc-a"), Format.TARGZ))

    with pytest.raises(MissingEntry):
        pipeline.fetch_acl(f"file://{out}", cfg)

    b = pipeline.fetch_acl(f"file://{out}", cfg, verify=False)
    assert b.payload == ACL
    assert b.signature is None


def test_no_verify_skips_key_lookup(tmp_path, cfg):
    out = tmp_path / "out.tar.gz"
    pipeline.store_acl(f"file://{out}", ACL, cfg)
    cfg.KEYS_DIR = str(tmp_path / "no-keys-here")
    assert pipeline.fetch_acl(f"file://{out}", cfg, verify=False).payload == ACL


def test_store_acl_signing_failure_stores_nothing(tmp_path, cfg):
    cfg.KEY_FILE = str(tmp_path / "missing-key")
    out = tmp_path / "out.tar.gz"
    with pytest.raises(SigningError):
        pipeline.store_acl(f"file://{out}", ACL, cfg)
    assert not out.exists()


def test_store_report(tmp_path, cfg, keys):
    diffs = {405419896: Diff(updated=["1,Alice,101"], added=["2,Bob,102"])}
    out = tmp_path / "report.tar.gz"
    name = pipeline.store_report(f"file://{out}", diffs, cfg, now=NOW)
    assert name == "acl-2023-05-01T123045.rpt"

    with tarfile.open(fileobj=io.BytesIO(gzip.decompress(out.read_bytes()))) as tar:
        rpt = tar.extractfile(name).read()
        signature = tar.extractfile("signature").read()
        assert tar.getmember(name).uname == "svc-a"

    assert rpt.startswith(b"ACL DIFF REPORT 2023-05-01 12:30:45")
    assert b"Missing:" in rpt
    verify("svc-a", rpt, signature, str(keys.dir))


def test_s3_round_trip(cfg, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    objects = {}

    class FakeClient:
        def put_object(self, Bucket, Key, Body, ContentType=None):
            objects[(Bucket, Key)] = Body

        def get_object(self, Bucket, Key):
            return {"Body": io.BytesIO(objects[(Bucket, Key)])}

    class FakeSession:
        def __init__(self, region_name=None, **kwargs):
            pass

        def client(self, name, endpoint_url=None):
            return FakeClient()

    monkeypatch.setattr(s3_adapter.boto3, "Session", FakeSession)

    pipeline.store_acl("s3://acl-bucket/sites/a/uhppoted.zip", ACL, cfg)
    assert zipfile.is_zipfile(io.BytesIO(objects[("acl-bucket", "sites/a/uhppoted.zip")]))
    assert pipeline.fetch_acl("s3://acl-bucket/sites/a/uhppoted.zip", cfg).payload == ACL
