# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""
This module test the Util methods
"""

import hashlib
from collections.abc import Callable
from unittest.mock import patch

import requests
from pytest_httpserver import HTTPServer
from werkzeug import Request, Response

from transparent_release.config.defaults import defaults
from transparent_release.util import send_get_http_raw, sha256_hexdigest, wait_before_retry


def _response_generator(target_value: int, status_code: int = 429) -> Callable[[Request], Response]:
    """Return a generator with closure so a value can be tracked across multiple invocations."""
    value = 0

    def generator(request: Request) -> Response:  # pylint: disable=unused-argument
        """Add the next value as a header and adjust the status code based on the value."""
        nonlocal value, target_value
        value += 1
        response = Response()
        response.status_code = status_code if value <= (target_value + 1) else 200
        response.headers["X-VALUE"] = str(value)
        # Retry immediately.
        response.headers["Retry-After"] = "0"
        return response

    return generator


def _http_setup(retries: int, httpserver: HTTPServer, status_code: int = 429) -> str:
    """Set up the http server for a GET test."""
    # Get a localhost URL.
    mocked_url: str = httpserver.url_for("")

    # Create and assign the stateful handler.
    handler = _response_generator(retries, status_code)
    httpserver.expect_request("").respond_with_handler(handler)
    return mocked_url


def test_get_http_partial_failure(httpserver: HTTPServer) -> None:
    """Test the http GET operation when some errors are received before the request succeeds."""
    # Retrieve the allowed number of retries on a failed request and reduce it by 1.
    target_value = defaults.getint("requests", "error_retries", fallback=5) - 1

    mocked_url = _http_setup(target_value, httpserver)

    # Test for a correct response after the expected number of retries.
    response = send_get_http_raw(mocked_url)
    assert response
    assert "X-VALUE" in response.headers
    assert response.headers["X-VALUE"] == str(target_value + 2)


def test_get_http_complete_failure(httpserver: HTTPServer) -> None:
    """Test get http GET operations when too many errors are received and the request fails."""
    # Retrieve the allowed number of retries on a failed request.
    target_value = defaults.getint("requests", "error_retries", fallback=5)

    mocked_url = _http_setup(target_value, httpserver)

    # Assert the request fails and returns nothing.
    assert send_get_http_raw(mocked_url) is None


def test_get_http_client_error(httpserver: HTTPServer) -> None:
    """Test that a client error is not attempted again."""
    # The server keeps answering 404 for both requests.
    mocked_url = _http_setup(1, httpserver, status_code=404)

    response = send_get_http_raw(mocked_url)
    assert response is not None
    assert response.status_code == 404
    assert response.headers["X-VALUE"] == "1"

    assert send_get_http_raw(mocked_url, check_response_fails=False) is None
    assert len(httpserver.log) == 2


def test_get_http_unreachable() -> None:
    """Test the http GET operation when the server cannot be reached."""
    assert send_get_http_raw("http://localhost:1/unreachable", timeout=1) is None


def test_wait_before_retry() -> None:
    """Test the waiting time between two attempts of a failed request."""
    response = requests.models.Response()
    response.headers["Retry-After"] = "7"
    with patch("time.sleep") as mock_sleep:
        wait_before_retry(response, 0)
        mock_sleep.assert_called_once_with(7.0)

    response.headers["Retry-After"] = "Wed, 21 Oct 2015 07:28:00 GMT"
    with patch("time.sleep") as mock_sleep:
        wait_before_retry(response, 3)
        mock_sleep.assert_called_once_with(8.0)


def test_sha256_hexdigest() -> None:
    """Test the sha256 digest of some content."""
    assert sha256_hexdigest(b"oak") == hashlib.sha256(b"oak").hexdigest()
