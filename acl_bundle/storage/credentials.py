#!/usr/bin/env python3
"""
AWS credentials file loader.

Accepts either a standard shared-credentials file with profile sections:

    [default]
    aws_access_key_id = AKIA...
    aws_secret_access_key = ...

or a flat file holding just the 'key = value' lines with no section header.
Do NOT log secret values.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from botocore.configloader import raw_config_parse
from botocore.exceptions import ConfigNotFound, ConfigParseError

from ..error_handling import CredentialsError

logger = logging.getLogger(__name__)

_LINE = re.compile(r"^\s*(aws_access_key_id|aws_secret_access_key|aws_session_token)\s*=\s*(\S+)\s*$")


@dataclass(frozen=True)
class AWSCredentials:
    access_key_id: str
    secret_access_key: str
    session_token: Optional[str] = None

    def __repr__(self) -> str:
        return f"AWSCredentials(access_key_id={self.access_key_id!r}, secret_access_key='***')"

    def session_kwargs(self) -> dict:
        kwargs = {
            "aws_access_key_id": self.access_key_id,
            "aws_secret_access_key": self.secret_access_key,
        }
        if self.session_token:
            kwargs["aws_session_token"] = self.session_token
        return kwargs


def _scan_flat(text: str) -> dict:
    values = {}
    for line in text.splitlines():
        m = _LINE.match(line)
        if m:
            values[m.group(1)] = m.group(2)
    return values


def _has_sections(text: str) -> bool:
    return any(line.strip().startswith("[") for line in text.splitlines())


def load_credentials(path: str, profile: Optional[str] = None) -> AWSCredentials:
    file = Path(path).expanduser()
    try:
        text = file.read_text(encoding="utf-8")
    except OSError as e:
        raise CredentialsError(f"could not read AWS credentials file {file} ({e.strerror or e})") from e

    if _has_sections(text):
        profile = profile or "default"
        try:
            sections = raw_config_parse(str(file), parse_subsections=False)
        except (ConfigParseError, ConfigNotFound) as e:
            raise CredentialsError(f"invalid AWS credentials file {file} ({e})") from e
        if profile not in sections:
            raise CredentialsError(f"Invalid AWS credentials - no profile '{profile}' in {file}")
        values = sections[profile]
    else:
        values = _scan_flat(text)

    key_id = (values.get("aws_access_key_id") or "").strip()
    secret = (values.get("aws_secret_access_key") or "").strip()
    if not key_id:
        raise CredentialsError("Invalid AWS credentials - missing 'aws_access_key_id'")
    if not secret:
        raise CredentialsError("Invalid AWS credentials - missing 'aws_secret_access_key'")

    logger.debug("Loaded AWS credentials from %s (profile %s)", file, profile or "-")
    return AWSCredentials(key_id, secret, (values.get("aws_session_token") or "").strip() or None)
