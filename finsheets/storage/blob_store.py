from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

"""Blob storage for uploaded workbooks.

Workbooks live under ``months/{period_key}.xlsx``. Deployments that predate
period keys keep a single legacy object (``data.xlsx`` by default).

Two backends share one small interface:
- ``LocalBlobStore``: a directory tree, used for development and tests
- ``S3BlobStore``: any S3-compatible endpoint through boto3
"""

__all__ = [
    "BlobEntry",
    "BlobStore",
    "LocalBlobStore",
    "S3BlobStore",
    "StorageError",
    "ObjectNotFoundError",
    "MONTHS_PREFIX",
    "WORKBOOK_SUFFIX",
    "DEFAULT_LEGACY_KEY",
    "XLSX_CONTENT_TYPE",
    "month_object_key",
    "period_key_from_object",
]

MONTHS_PREFIX = "months/"
WORKBOOK_SUFFIX = ".xlsx"
DEFAULT_LEGACY_KEY = "data.xlsx"
XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

logger = logging.getLogger(__name__)


class StorageError(Exception):
    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"storage error ({status_code}): {message}")


class ObjectNotFoundError(StorageError):
    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(404, f"no object at {key}")


@dataclass(frozen=True)
class BlobEntry:
    key: str
    last_modified: datetime | None
    size: int


def month_object_key(period_key: str) -> str:
    return f"{MONTHS_PREFIX}{period_key}{WORKBOOK_SUFFIX}"


def period_key_from_object(object_key: str) -> str:
    """"months/2025-11.xlsx" -> "2025-11"."""
    key = object_key
    if key.startswith(MONTHS_PREFIX):
        key = key[len(MONTHS_PREFIX):]
    if key.endswith(WORKBOOK_SUFFIX):
        key = key[: -len(WORKBOOK_SUFFIX)]
    return key


class BlobStore(ABC):
    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str = XLSX_CONTENT_TYPE) -> None:
        ...

    @abstractmethod
    def get(self, key: str) -> bytes:
        """Object bytes; ``ObjectNotFoundError`` when the key does not exist."""

    @abstractmethod
    def list(self, prefix: str = "") -> list[BlobEntry]:
        ...

    def exists(self, key: str) -> bool:
        try:
            self.get(key)
        except ObjectNotFoundError:
            return False
        return True


class LocalBlobStore(BlobStore):
    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise StorageError(400, f"invalid object key: {key!r}")
        return path

    def put(self, key: str, data: bytes, content_type: str = XLSX_CONTENT_TYPE) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.debug("stored %s (%d bytes)", key, len(data))

    def get(self, key: str) -> bytes:
        path = self._path(key)
        if not path.is_file():
            raise ObjectNotFoundError(key)
        return path.read_bytes()

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def list(self, prefix: str = "") -> list[BlobEntry]:
        if not self.root.exists():
            return []
        entries = []
        for path in sorted(self.root.rglob("*")):
            if not path.is_file():
                continue
            key = path.relative_to(self.root).as_posix()
            if not key.startswith(prefix):
                continue
            stat = path.stat()
            entries.append(BlobEntry(key, datetime.fromtimestamp(stat.st_mtime, UTC), stat.st_size))
        return entries


class S3BlobStore(BlobStore):
    """S3-compatible bucket (AWS, Linode Object Storage, MinIO)."""

    def __init__(
        self,
        bucket: str,
        region: str | None = None,
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        client: Any = None,
    ) -> None:
        if not bucket:
            raise StorageError(500, "bucket is not configured")
        self.bucket = bucket
        self._client = client or boto3.client(
            "s3",
            region_name=region,
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key or None,
            aws_secret_access_key=secret_key or None,
        )

    @staticmethod
    def _wrap(e: ClientError, key: str) -> StorageError:
        err = e.response.get("Error", {})
        status = int(e.response.get("ResponseMetadata", {}).get("HTTPStatusCode") or 500)
        if status == 404 or err.get("Code") in ("NoSuchKey", "404"):
            return ObjectNotFoundError(key)
        return StorageError(status, err.get("Message") or str(e))

    def put(self, key: str, data: bytes, content_type: str = XLSX_CONTENT_TYPE) -> None:
        try:
            self._client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        except ClientError as e:
            raise self._wrap(e, key) from e
        except BotoCoreError as e:
            raise StorageError(500, str(e)) from e
        logger.debug("uploaded s3://%s/%s (%d bytes)", self.bucket, key, len(data))

    def get(self, key: str) -> bytes:
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=key)
            return response["Body"].read()
        except ClientError as e:
            raise self._wrap(e, key) from e
        except BotoCoreError as e:
            raise StorageError(500, str(e)) from e

    def exists(self, key: str) -> bool:
        """HEAD the object instead of downloading it."""
        try:
            self._client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            err = self._wrap(e, key)
            if isinstance(err, ObjectNotFoundError):
                return False
            raise err from e
        except BotoCoreError as e:
            raise StorageError(500, str(e)) from e
        return True

    def list(self, prefix: str = "") -> list[BlobEntry]:
        entries: list[BlobEntry] = []
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                for obj in page.get("Contents", []):
                    entries.append(BlobEntry(obj["Key"], obj.get("LastModified"), int(obj.get("Size", 0))))
        except ClientError as e:
            raise self._wrap(e, prefix) from e
        except BotoCoreError as e:
            raise StorageError(500, str(e)) from e
        return entries
