# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""Tests for the blob store backed by a local directory."""

from pathlib import Path

import pytest

from transparent_release.blobstore.base import BucketHandle, read_blob
from transparent_release.blobstore.local import LocalBlobStore
from transparent_release.errors import BlobNotFoundError, BlobStoreError


@pytest.fixture(name="store")
def store_(tmp_path: Path) -> LocalBlobStore:
    """Return a store with one bucket holding a few blobs."""
    bucket = tmp_path.joinpath("oss-fuzz-coverage")
    for name in ["oak/srcmap/20221206.json", "oak/srcmap/20221205.json", "oak/reports/summary.json", "other.json"]:
        path = bucket.joinpath(*name.split("/"))
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(name, encoding="utf-8")
    return LocalBlobStore(str(tmp_path))


def test_list_blobs(store: LocalBlobStore) -> None:
    """Test that the blobs starting with a prefix are listed by name."""
    bucket = store.get_bucket("oss-fuzz-coverage")
    assert store.list_blobs(bucket, "oak/srcmap/") == ["oak/srcmap/20221205.json", "oak/srcmap/20221206.json"]
    assert store.list_blobs(bucket, "oak/") == [
        "oak/reports/summary.json",
        "oak/srcmap/20221205.json",
        "oak/srcmap/20221206.json",
    ]
    assert store.list_blobs(bucket, "oak/fuzzer_stats/") == []


def test_read_blob(store: LocalBlobStore) -> None:
    """Test reading the content of a blob."""
    bucket = store.get_bucket("oss-fuzz-coverage")
    assert read_blob(store, bucket, "oak/reports/summary.json") == b"oak/reports/summary.json"


def test_missing_blob(store: LocalBlobStore) -> None:
    """Test opening a blob that does not exist."""
    with pytest.raises(BlobNotFoundError):
        read_blob(store, store.get_bucket("oss-fuzz-coverage"), "oak/reports/missing.json")


def test_missing_bucket(store: LocalBlobStore) -> None:
    """Test accessing a bucket that does not exist."""
    with pytest.raises(BlobStoreError):
        store.get_bucket("oak-logs.clusterfuzz-external.appspot.com")
    with pytest.raises(BlobStoreError):
        store.list_blobs(BucketHandle("oak-logs.clusterfuzz-external.appspot.com"), "")
