#!/usr/bin/env python3
"""
Command line entry point.

Usage:
  acl-bundle fetch-acl --url s3://bucket/acl.tar.gz --out acl.tsv
  acl-bundle store-acl --url file:///tmp/acl.zip --acl acl.tsv
  acl-bundle store-report --url s3://bucket/reports/report.tar.gz --diff diff.json

Exit codes:
  0 ok; 1 operation failed; 2 usage error.
"""
from __future__ import annotations

import argparse
import json
import logging
import logging.handlers
import sys
from pathlib import Path

import yaml

from . import __version__, pipeline
from .config import load_config
from .error_handling import AclBundleError
from .report import TEMPLATES, Diff

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)-5s %(name)s  %(message)s"


def setup_logging(debug: bool = False, nolog: bool = False, log_file: str = None, log_file_size: int = 10) -> None:
    level = logging.DEBUG if debug else logging.INFO
    # botocore is chatty at DEBUG
    logging.getLogger("botocore").setLevel(logging.WARNING)
    if nolog or not log_file:
        # stdout is reserved for fetched payloads
        logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)
        return
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(log_file, maxBytes=log_file_size * 1024 * 1024, backupCount=3)
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=[handler])


def _fetch_acl(args, cfg) -> int:
    b = pipeline.fetch_acl(args.url, cfg, verify=not args.no_verify)
    if args.out:
        Path(args.out).write_bytes(b.payload)
        logger.info("Wrote ACL (%d bytes) to %s", len(b.payload), args.out)
    else:
        sys.stdout.buffer.write(b.payload)
        sys.stdout.buffer.flush()
    return 0


def _store_acl(args, cfg) -> int:
    payload = Path(args.acl).read_bytes()
    pipeline.store_acl(args.url, payload, cfg, name=args.name)
    return 0


def load_diffs(path: str) -> dict:
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected an object of device -> diff")
    for device, d in raw.items():
        if not isinstance(d, dict):
            raise ValueError(f"{path}: diff for device {device} is not an object")
        for section, records in d.items():
            if not isinstance(records, list):
                raise ValueError(f"{path}: '{section}' for device {device} is not a list of records")
    return {device: Diff.from_dict(d) for device, d in raw.items()}


def _store_report(args, cfg) -> int:
    diffs = load_diffs(args.diff)
    name = pipeline.store_report(args.url, diffs, cfg, template=TEMPLATES[args.template])
    print(name)
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="acl-bundle", description="Signed ACL bundles over S3, HTTP and local files")
    ap.add_argument("--config", help="YAML config file")
    ap.add_argument("--debug", action="store_true", help="Enables debugging information")
    ap.add_argument("--no-log", action="store_true", help="Writes log messages to stderr rather than a rotatable log file")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    aws = argparse.ArgumentParser(add_help=False)
    aws.add_argument("--credentials", help="AWS credentials file")
    aws.add_argument("--profile", help="AWS credentials file profile (defaults to 'default')")
    aws.add_argument("--region", help="AWS region for S3 (defaults to us-east-1)")

    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("fetch-acl", parents=[aws], help="Fetch and verify a signed ACL bundle")
    p.add_argument("--url", required=True, help="URL of the ACL bundle. S3 URL's are formatted as s3://<bucket>/<key>")
    p.add_argument("--out", help="File to write the verified ACL to (defaults to stdout)")
    p.add_argument("--keys", help="Directory of RSA public keys, named '<identity>.pub'")
    p.add_argument("--no-verify", action="store_true", help="Disables verification of the ACL signature")
    p.set_defaults(func=_fetch_acl)

    p = sub.add_parser("store-acl", parents=[aws], help="Sign an ACL file and store it as a bundle")
    p.add_argument("--url", required=True, help="Destination URL; a '.zip' suffix stores a zip archive")
    p.add_argument("--acl", required=True, help="ACL file to sign and store")
    p.add_argument("--key", help="RSA signing key (PKCS8 PEM)")
    p.add_argument("--identity", help="Signer identity recorded in the bundle")
    p.add_argument("--name", help="Name of the ACL entry in the bundle (must end in '.acl')")
    p.set_defaults(func=_store_acl)

    p = sub.add_parser("store-report", parents=[aws], help="Render, sign and store an ACL 'diff' report")
    p.add_argument("--url", required=True, help="Destination URL for the report bundle")
    p.add_argument("--diff", required=True, help="JSON comparison result: {device: {unchanged|updated|added|deleted: [...]}}")
    p.add_argument("--key", help="RSA signing key (PKCS8 PEM)")
    p.add_argument("--identity", help="Signer identity recorded in the bundle")
    p.add_argument("--template", choices=sorted(TEMPLATES), default="compare")
    p.set_defaults(func=_store_report)

    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if getattr(args, "name", None) and not args.name.endswith(".acl"):
        print("ERROR: --name must end in '.acl'", file=sys.stderr)
        return 2

    try:
        cfg = load_config(
            args.config,
            CREDENTIALS=args.credentials,
            PROFILE=args.profile,
            REGION=args.region,
            KEYS_DIR=getattr(args, "keys", None),
            KEY_FILE=getattr(args, "key", None),
            IDENTITY=getattr(args, "identity", None),
        )
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"ERROR: could not load configuration ({e})", file=sys.stderr)
        return 1

    try:
        setup_logging(debug=args.debug, nolog=args.no_log, log_file=cfg.LOG_FILE, log_file_size=cfg.LOG_FILE_SIZE)
    except OSError as e:
        setup_logging(debug=args.debug, nolog=True)
        logger.warning("Could not open log file %s (%s), logging to stderr", cfg.LOG_FILE, e)

    try:
        return args.func(args, cfg)
    except (AclBundleError, OSError, ValueError) as e:
        logger.error("%s failed: %s", args.command, e)
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
