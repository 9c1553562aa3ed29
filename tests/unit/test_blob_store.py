from __future__ import annotations

import io
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from finsheets.storage.blob_store import (
    LocalBlobStore,
    ObjectNotFoundError,
    S3BlobStore,
    StorageError,
    month_object_key,
    period_key_from_object,
)


def test_key_helpers():
    assert month_object_key("2025-11") == "months/2025-11.xlsx"
    assert period_key_from_object("months/2025-11.xlsx") == "2025-11"
    assert period_key_from_object("2025-11") == "2025-11"


def test_local_put_get_list(tmp_path: Path):
    store = LocalBlobStore(tmp_path / "store")
    assert store.list() == []
    store.put("months/2025-11.xlsx", b"abc")
    store.put("data.xlsx", b"legacy")
    assert store.get("months/2025-11.xlsx") == b"abc"
    assert store.exists("data.xlsx")
    entries = store.list("months/")
    assert [e.key for e in entries] == ["months/2025-11.xlsx"]
    assert entries[0].size == 3
    assert entries[0].last_modified is not None


def test_local_missing_and_escape(tmp_path: Path):
    store = LocalBlobStore(tmp_path)
    with pytest.raises(ObjectNotFoundError) as e:
        store.get("months/1999-01.xlsx")
    assert e.value.status_code == 404
    with pytest.raises(StorageError):
        store.put("../outside.xlsx", b"x")


def _client_error(code: str, status: int) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}, "ResponseMetadata": {"HTTPStatusCode": status}},
                       "GetObject")


def test_s3_put_get():
    client = MagicMock()
    client.get_object.return_value = {"Body": io.BytesIO(b"xlsx-bytes")}
    store = S3BlobStore("bucket", client=client)
    store.put("months/2025-11.xlsx", b"data")
    client.put_object.assert_called_once()
    assert client.put_object.call_args.kwargs["Key"] == "months/2025-11.xlsx"
    assert store.get("months/2025-11.xlsx") == b"xlsx-bytes"


def test_s3_errors_mapped():
    client = MagicMock()
    client.get_object.side_effect = _client_error("NoSuchKey", 404)
    client.put_object.side_effect = _client_error("AccessDenied", 403)
    store = S3BlobStore("bucket", client=client)
    with pytest.raises(ObjectNotFoundError):
        store.get("months/2025-11.xlsx")
    with pytest.raises(StorageError) as e:
        store.put("k", b"x")
    assert e.value.status_code == 403


def test_s3_list_paginates():
    modified = datetime(2025, 12, 1, tzinfo=timezone.utc)
    paginator = MagicMock()
    paginator.paginate.return_value = [
        {"Contents": [{"Key": "months/2025-10.xlsx", "LastModified": modified, "Size": 10}]},
        {"Contents": [{"Key": "months/2025-11.xlsx", "LastModified": modified, "Size": 20}]},
        {},
    ]
    client = MagicMock()
    client.get_paginator.return_value = paginator
    entries = S3BlobStore("bucket", client=client).list("months/")
    assert [(e.key, e.size) for e in entries] == [("months/2025-10.xlsx", 10), ("months/2025-11.xlsx", 20)]
    paginator.paginate.assert_called_once_with(Bucket="bucket", Prefix="months/")


def test_s3_requires_bucket():
    with pytest.raises(StorageError):
        S3BlobStore("", client=MagicMock())


def test_s3_exists_uses_head():
    client = MagicMock()
    store = S3BlobStore("finance", client=client)
    assert store.exists("months/2025-11.xlsx")
    client.head_object.assert_called_once_with(Bucket="finance", Key="months/2025-11.xlsx")
    client.get_object.assert_not_called()

    client.head_object.side_effect = _client_error("404", 404)
    assert not store.exists("months/2025-10.xlsx")

    client.head_object.side_effect = _client_error("AccessDenied", 403)
    with pytest.raises(StorageError) as e:
        store.exists("months/2025-10.xlsx")
    assert e.value.status_code == 403
