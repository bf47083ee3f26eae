#!/usr/bin/env python3
"""
AWS S3 transport using boto3.

Credentials come from the configured credentials file and profile. When the
credentials file is unset, or left at the built-in default path and absent,
the standard boto3 configuration chain (env vars, shared credentials, instance
role) is used with the configured profile. An explicitly configured file that
does not exist is a CredentialsError. Pass endpoint_url for S3-compatible
providers if needed.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..config import DEFAULT_CREDENTIALS
from ..error_handling import CredentialsError, TransportError
from ..uri import parse_s3_uri
from .credentials import load_credentials

logger = logging.getLogger(__name__)


class S3Transport:
    def __init__(self, credentials: Optional[str] = None, profile: Optional[str] = None,
                 region: Optional[str] = None, endpoint_url: Optional[str] = None):
        self.credentials = credentials
        self.profile = profile
        self.region = region
        self.endpoint_url = endpoint_url

    def _client(self, uri: str):
        session_kwargs = {}
        if self.credentials and Path(self.credentials).expanduser().exists():
            try:
                creds = load_credentials(self.credentials, self.profile)
            except CredentialsError as e:
                raise CredentialsError(str(e), uri=uri) from e
            session_kwargs.update(creds.session_kwargs())
        elif self.credentials and self.credentials != DEFAULT_CREDENTIALS:
            raise CredentialsError(f"AWS credentials file {self.credentials} not found", uri=uri)
        else:
            # an explicit profile_name turns off boto3's env var credentials
            if self.profile and self.profile != "default":
                session_kwargs["profile_name"] = self.profile
            logger.debug("No AWS credentials file, using default credentials chain (profile %s)", self.profile or "-")
        try:
            session = boto3.Session(region_name=self.region, **session_kwargs)
            return session.client("s3", endpoint_url=self.endpoint_url)
        except BotoCoreError as e:
            raise TransportError(uri, f"could not create S3 client ({e})") from e

    def fetch(self, uri: str) -> bytes:
        bucket, key = parse_s3_uri(uri)
        client = self._client(uri)
        try:
            response = client.get_object(Bucket=bucket, Key=key)
            data = response["Body"].read()
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            raise TransportError(uri, f"S3 get_object failed ({code or e})") from e
        except BotoCoreError as e:
            raise TransportError(uri, f"S3 get_object failed ({e})") from e
        logger.info("Fetched %s (%d bytes)", uri, len(data))
        return data

    def store(self, uri: str, data: bytes) -> None:
        bucket, key = parse_s3_uri(uri)
        client = self._client(uri)
        try:
            client.put_object(Bucket=bucket, Key=key, Body=data, ContentType="binary/octet-stream")
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            raise TransportError(uri, f"S3 put_object failed ({code or e})") from e
        except BotoCoreError as e:
            raise TransportError(uri, f"S3 put_object failed ({e})") from e
        logger.info("Stored %s (%d bytes)", uri, len(data))
