"""Artifact storage on S3-compatible object stores (DigitalOcean Spaces, S3, MinIO)."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from typing import Any, Protocol
from uuid import uuid4

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from cattlescan.config import get_settings
from cattlescan.errors import StorageFailure

_UNSAFE_NAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


class ArtifactStore(Protocol):
    """Protocol for durable, publicly readable image storage."""

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        """Store ``content`` under ``path`` and return its public URL."""

    def public_url(self, path: str) -> str:
        """Return the public URL for ``path`` without touching the network."""

    def list_paths(self, prefix: str) -> list[str]:
        """Return every stored path under ``prefix``."""

    def delete(self, path: str) -> None:
        """Remove one stored object."""


@dataclass(slots=True)
class S3ArtifactStore:
    """Object store backed by a boto3 S3 client."""

    client: Any
    bucket: str
    public_base_url: str

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=path,
                Body=content,
                ContentType=content_type,
                ACL="public-read",
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageFailure(f"Upload of {path} failed: {exc}") from exc
        return self.public_url(path)

    def public_url(self, path: str) -> str:
        return f"{self.public_base_url.rstrip('/')}/{path.lstrip('/')}"

    def list_paths(self, prefix: str) -> list[str]:
        paths: list[str] = []
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                paths.extend(obj["Key"] for obj in page.get("Contents", []))
        except (BotoCoreError, ClientError) as exc:
            raise StorageFailure(f"Listing {prefix!r} failed: {exc}") from exc
        return paths

    def delete(self, path: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=path)
        except (BotoCoreError, ClientError) as exc:
            raise StorageFailure(f"Delete of {path} failed: {exc}") from exc


def get_default_artifact_store() -> S3ArtifactStore:
    """Build the configured artifact store."""

    settings = get_settings()
    endpoint_url = settings.storage_endpoint_url or f"https://{settings.storage_region}.digitaloceanspaces.com"
    session = boto3.session.Session()
    client = session.client(
        "s3",
        region_name=settings.storage_region,
        endpoint_url=endpoint_url,
        aws_access_key_id=settings.storage_access_key,
        aws_secret_access_key=settings.storage_secret_key,
        config=Config(
            signature_version="s3v4",
            connect_timeout=settings.storage_timeout_seconds,
            read_timeout=settings.storage_timeout_seconds,
            retries={"mode": "standard", "total_max_attempts": 1},
        ),
    )
    public_base_url = settings.storage_public_base_url or (
        f"https://{settings.storage_bucket}.{settings.storage_region}.digitaloceanspaces.com"
    )
    return S3ArtifactStore(client=client, bucket=settings.storage_bucket, public_base_url=public_base_url)


def build_artifact_path(filename: str, *, prefix: str | None = None, now_ms: int | None = None) -> str:
    """Return a collision-resistant object path: ``<prefix><epoch-ms>-<suffix>-<name>``."""

    clean_prefix = get_settings().artifact_prefix if prefix is None else prefix
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    base_name = filename.rsplit("/", 1)[-1].rsplit("\\", 1)[-1]
    safe_name = _UNSAFE_NAME_RE.sub("-", base_name).strip("-.") or "image"
    return f"{clean_prefix}{stamp}-{uuid4().hex[:8]}-{safe_name[:120]}"
