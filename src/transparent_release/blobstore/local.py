# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""A blob store backed by a local directory, where each bucket is a sub-directory."""

import logging
import os
from typing import BinaryIO

from transparent_release.blobstore.base import BlobStore, BucketHandle
from transparent_release.errors import BlobNotFoundError, BlobStoreError

logger: logging.Logger = logging.getLogger(__name__)


class LocalBlobStore(BlobStore):
    """A blob store whose buckets are the sub-directories of a root directory."""

    def __init__(self, root: str) -> None:
        self.root = root

    def _bucket_path(self, bucket: BucketHandle) -> str:
        return os.path.join(self.root, bucket.name)

    def get_bucket(self, name: str) -> BucketHandle:
        """Return the handle of a bucket, checking that its directory exists."""
        bucket = BucketHandle(name)
        if not os.path.isdir(self._bucket_path(bucket)):
            raise BlobStoreError(f"The bucket {name} does not exist in {self.root}.")
        return bucket

    def list_blobs(self, bucket: BucketHandle, prefix: str) -> list[str]:
        """Return the names of the files of the bucket that start with ``prefix``, sorted by name."""
        bucket_path = self._bucket_path(bucket)
        if not os.path.isdir(bucket_path):
            raise BlobStoreError(f"The bucket {bucket.name} does not exist in {self.root}.")

        names = []
        for dir_path, _, file_names in os.walk(bucket_path):
            for file_name in file_names:
                name = os.path.relpath(os.path.join(dir_path, file_name), bucket_path).replace(os.sep, "/")
                if name.startswith(prefix):
                    names.append(name)
        return sorted(names)

    def open_blob(self, bucket: BucketHandle, name: str) -> BinaryIO:
        """Open the file of a blob."""
        path = os.path.join(self._bucket_path(bucket), *name.split("/"))
        try:
            return open(path, "rb")  # pylint: disable=consider-using-with
        except FileNotFoundError as error:
            raise BlobNotFoundError(f"The blob {name} does not exist in the bucket {bucket.name}.") from error
        except OSError as error:
            raise BlobStoreError(f"Cannot read the blob {name} of the bucket {bucket.name}: {error}") from error
