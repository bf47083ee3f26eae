#!/usr/bin/env python3
"""
acl-bundle config adapter: unify env + optional YAML config.

Usage:
  from acl_bundle.config import load_config
  cfg = load_config()
  print(cfg.KEYS_DIR, cfg.REGION)
"""
from __future__ import annotations
import logging
import os
import sys
import yaml
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def _platform_defaults() -> dict:
    if sys.platform == "darwin":
        etc = "/usr/local/etc/com.github.twystd.uhppoted"
        var = "/usr/local/var/com.github.twystd.uhppoted"
        return {
            "KEYS_DIR": f"{etc}/acl/keys",
            "KEY_FILE": f"{etc}/acl/keys/uhppoted",
            "WORKDIR": var,
            "CREDENTIALS": ".aws/credentials",
            "LOG_FILE": f"{var}/logs/uhppoted-acl-s3.log",
        }
    if sys.platform.startswith("win"):
        workdir = os.path.join(os.environ.get("PROGRAMDATA", "C:\\ProgramData"), "uhppoted")
        return {
            "KEYS_DIR": os.path.join(workdir, "acl", "keys"),
            "KEY_FILE": os.path.join(workdir, "acl", "keys", "uhppoted"),
            "WORKDIR": workdir,
            "CREDENTIALS": os.path.join(workdir, ".aws", "credentials"),
            "LOG_FILE": os.path.join(workdir, "logs", "uhppoted-acl-s3.log"),
        }
    return {
        "KEYS_DIR": "/etc/uhppoted/acl/keys",
        "KEY_FILE": "/etc/uhppoted/acl/keys/uhppoted",
        "WORKDIR": "/var/uhppoted",
        "CREDENTIALS": ".aws/credentials",
        "LOG_FILE": "/var/log/uhppoted/uhppoted-acl-s3.log",
    }


_DEFAULTS = _platform_defaults()
DEFAULT_CREDENTIALS = _DEFAULTS["CREDENTIALS"]

_NUMERIC = {"HTTP_TIMEOUT": float, "LOG_FILE_SIZE": int}


def _env(name: str, default=None):
    return os.environ.get(name, default)


@dataclass
class Config:
    # keys
    KEYS_DIR: Optional[str] = None
    KEY_FILE: Optional[str] = None
    IDENTITY: Optional[str] = None
    # AWS / S3
    CREDENTIALS: Optional[str] = None
    PROFILE: Optional[str] = None
    REGION: Optional[str] = None
    S3_ENDPOINT: Optional[str] = None
    # HTTP
    HTTP_TIMEOUT: Optional[float] = None
    # general
    WORKDIR: Optional[str] = None
    ACL_FILENAME: Optional[str] = None
    LOG_FILE: Optional[str] = None
    LOG_FILE_SIZE: Optional[int] = None  # MB
    # raw loaded yaml (if any)
    _raw: Optional[dict] = None

    def __post_init__(self):
        # env is read at construction time so tests can monkeypatch it
        env_defaults = {
            "KEYS_DIR": _env("ACL_KEYS_DIR", _DEFAULTS["KEYS_DIR"]),
            "KEY_FILE": _env("ACL_KEY_FILE", _DEFAULTS["KEY_FILE"]),
            "IDENTITY": _env("ACL_IDENTITY", "uhppoted"),
            "CREDENTIALS": _env("AWS_CREDENTIALS_FILE", _DEFAULTS["CREDENTIALS"]),
            "PROFILE": _env("AWS_PROFILE", "default"),
            "REGION": _env("AWS_REGION", "us-east-1"),
            "S3_ENDPOINT": _env("ACL_S3_ENDPOINT"),
            "HTTP_TIMEOUT": float(_env("ACL_HTTP_TIMEOUT", "30")),
            "WORKDIR": _env("ACL_WORKDIR", _DEFAULTS["WORKDIR"]),
            "ACL_FILENAME": _env("ACL_FILENAME", "uhppoted.acl"),
            "LOG_FILE": _env("ACL_LOG_FILE", _DEFAULTS["LOG_FILE"]),
            "LOG_FILE_SIZE": int(_env("ACL_LOG_FILE_SIZE", "10")),
        }
        for k, v in env_defaults.items():
            if getattr(self, k) is None:
                setattr(self, k, v)


def _config_paths(path: Optional[str] = None) -> list:
    if path:
        return [Path(path)]
    paths = [
        Path(os.environ["ACL_BUNDLE_CONFIG"]) if os.environ.get("ACL_BUNDLE_CONFIG") else None,
        Path("acl-bundle.yaml"),
        Path("acl-bundle.yml"),
    ]
    return [p for p in paths if p is not None]


def _load_yaml(path: Path) -> dict:
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a mapping of config keys")
    return raw


def _merge_from_yaml(cfg: Config, path: Optional[str] = None) -> Config:
    known = {f.name for f in fields(cfg) if not f.name.startswith("_")}
    if path and not Path(path).exists():
        raise FileNotFoundError(f"config file not found: {path}")
    for p in _config_paths(path):
        if p.exists():
            raw = _load_yaml(p)
            # map known keys
            for k, v in raw.items():
                key = str(k).upper()
                if key in _NUMERIC:
                    try:
                        v = _NUMERIC[key](v)
                    except (TypeError, ValueError) as e:
                        raise ValueError(f"{p}: {k} must be a number (got {v!r})") from e
                if key in known:
                    setattr(cfg, key, v)
                else:
                    logger.debug("Ignoring unknown config key %s in %s", k, p)
            cfg._raw = raw
            break
    return cfg


def load_config(path: Optional[str] = None, **overrides) -> Config:
    """
    Build a fresh Config from env, then YAML, then explicit keyword overrides
    (None values are skipped so CLI flags that were not given keep the
    configured value).
    """
    cfg = _merge_from_yaml(Config(), path)
    for k, v in overrides.items():
        if v is not None:
            setattr(cfg, k, v)
    return cfg
