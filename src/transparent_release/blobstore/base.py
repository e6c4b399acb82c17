# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module defines the blob store that the fuzzing reports are read from."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO

logger: logging.Logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BucketHandle:
    """A bucket of a blob store."""

    name: str


class BlobStore(ABC):
    """Base blob store class.

    Blobs are identified by the name of their bucket and their name, which is a ``/``-separated path.
    """

    def get_bucket(self, name: str) -> BucketHandle:
        """Return the handle of a bucket.

        Raises
        ------
        BlobStoreError
            If the bucket cannot be accessed.
        """
        return BucketHandle(name)

    @abstractmethod
    def list_blobs(self, bucket: BucketHandle, prefix: str) -> list[str]:
        """Return the names of the blobs of a bucket that start with ``prefix``, in the order of the store.

        Raises
        ------
        BlobStoreError
            If the blobs cannot be listed.
        """

    @abstractmethod
    def open_blob(self, bucket: BucketHandle, name: str) -> BinaryIO:
        """Open a blob for reading. The caller closes the returned reader.

        Raises
        ------
        BlobNotFoundError
            If the blob does not exist.
        BlobStoreError
            If the blob cannot be read.
        """


def read_blob(store: BlobStore, bucket: BucketHandle, name: str) -> bytes:
    """Return the content of a blob. The reader is closed on every exit path.

    Raises
    ------
    BlobNotFoundError
        If the blob does not exist.
    BlobStoreError
        If the blob cannot be read.
    """
    logger.debug("Reading gs://%s/%s.", bucket.name, name)
    with store.open_blob(bucket, name) as reader:
        return reader.read()
