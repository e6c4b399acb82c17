# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""A blob store backed by the public Google Cloud Storage HTTP API.

Only public buckets are supported: the requests are not authenticated.
"""

import io
import logging
import urllib.parse
from typing import BinaryIO

from transparent_release.blobstore.base import BlobStore, BucketHandle
from transparent_release.config.defaults import defaults
from transparent_release.errors import BlobNotFoundError, BlobStoreError, ConfigurationError
from transparent_release.json_tools import json_extract
from transparent_release.util import send_get_http_raw

logger: logging.Logger = logging.getLogger(__name__)


class GCSBlobStore(BlobStore):
    """A blob store for public Google Cloud Storage buckets."""

    def __init__(self, api_url: str = "", download_url: str = "", page_size: int = 0) -> None:
        self.api_url = api_url
        self.download_url = download_url
        self.page_size = page_size

    def load_defaults(self) -> None:
        """Load the .ini configuration of the store.

        Raises
        ------
        ConfigurationError
            If the ``blobstore.gcs`` section is missing.
        """
        section_name = "blobstore.gcs"
        if not defaults.has_section(section_name):
            raise ConfigurationError(f"The section [{section_name}] is missing in the .ini configuration file.")
        section = defaults[section_name]
        self.api_url = section.get("api_url", "https://storage.googleapis.com/storage/v1").rstrip("/")
        self.download_url = section.get("download_url", "https://storage.googleapis.com").rstrip("/")
        try:
            self.page_size = section.getint("page_size", fallback=1000)
        except ValueError as error:
            raise ConfigurationError(f"The page_size of [{section_name}] is not an integer: {error}") from error

    def list_blobs(self, bucket: BucketHandle, prefix: str) -> list[str]:
        """Return the names of the blobs of a bucket that start with ``prefix``, following every result page."""
        url = f"{self.api_url}/b/{urllib.parse.quote(bucket.name, safe='')}/o"
        names: list[str] = []
        page_token = ""
        while True:
            params: dict = {"prefix": prefix, "fields": "items(name),nextPageToken"}
            if self.page_size:
                params["maxResults"] = self.page_size
            if page_token:
                params["pageToken"] = page_token

            response = send_get_http_raw(url, params=params)
            if response is None:
                raise BlobStoreError(f"Cannot list the blobs of the bucket {bucket.name} with prefix {prefix}.")
            if response.status_code != 200:
                raise BlobStoreError(
                    f"Cannot list the blobs of the bucket {bucket.name}: error {response.status_code}."
                )
            try:
                content = response.json()
            except ValueError as error:
                raise BlobStoreError(f"The blob listing of the bucket {bucket.name} is not valid JSON.") from error

            for item in json_extract(content, ["items"], list) or []:
                name = json_extract(item, ["name"], str)
                if name:
                    names.append(name)

            page_token = json_extract(content, ["nextPageToken"], str) or ""
            if not page_token:
                return names

    def open_blob(self, bucket: BucketHandle, name: str) -> BinaryIO:
        """Download a blob and return a reader over its content."""
        url = f"{self.download_url}/{urllib.parse.quote(bucket.name, safe='')}/{urllib.parse.quote(name)}"
        response = send_get_http_raw(url)
        if response is None:
            raise BlobStoreError(f"Cannot download the blob {name} of the bucket {bucket.name}.")
        if response.status_code == 404:
            raise BlobNotFoundError(f"The blob {name} does not exist in the bucket {bucket.name}.")
        if response.status_code != 200:
            raise BlobStoreError(
                f"Cannot download the blob {name} of the bucket {bucket.name}: error {response.status_code}."
            )
        return io.BytesIO(response.content)
