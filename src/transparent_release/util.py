# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module includes utilities functions for transparent_release."""

import hashlib
import logging
import time

import requests
from requests.models import Response

from transparent_release.config.defaults import defaults

logger: logging.Logger = logging.getLogger(__name__)

# Status codes for which the request is attempted again.
RETRY_STATUS_CODES = {429, 500, 502, 503, 504}


def send_get_http_raw(
    url: str,
    headers: dict | None = None,
    params: dict | None = None,
    timeout: int | None = None,
    check_response_fails: bool = True,
) -> Response | None:
    """Send the GET HTTP request with the given url and headers.

    This method also handle logging when the server returns an error status code. Requests that are rate
    limited or fail with a server error are attempted again, up to ``error_retries`` times.

    Parameters
    ----------
    url : str
        The url of the request.
    headers : dict | None
        The dict that describes the headers of the request.
    params : dict | None
        The query parameters of the request.
    timeout: int | None
        The request timeout (optional).
    check_response_fails: bool
        When True, a response with another error status code is returned so that the caller can check it.
        Otherwise, ``None`` is returned for such responses.

    Returns
    -------
    Response | None
        The response, or ``None`` if the request failed.
    """
    logger.debug("GET - %s %s", url, params or "")
    if not timeout:
        timeout = defaults.getint("requests", "timeout", fallback=10)
    error_retries = defaults.getint("requests", "error_retries", fallback=5)
    retry_counter = error_retries
    try:
        response = requests.get(url=url, headers=headers, params=params, timeout=timeout)
    except requests.exceptions.RequestException as error:
        logger.debug(error)
        return None

    while response.status_code != 200:
        logger.debug("Receiving error code %s from server.", response.status_code)
        if response.status_code not in RETRY_STATUS_CODES:
            return response if check_response_fails else None
        if retry_counter <= 0:
            logger.debug("Maximum retries reached: %s", error_retries)
            return None
        wait_before_retry(response, error_retries - retry_counter)
        retry_counter = retry_counter - 1
        try:
            response = requests.get(url=url, headers=headers, params=params, timeout=timeout)
        except requests.exceptions.RequestException as error:
            logger.debug(error)
            return None

    return response


def wait_before_retry(response: Response, attempt: int) -> None:
    """Wait before attempting a failed request again.

    The ``Retry-After`` header of the response is honored when it is a number of seconds. Otherwise the wait
    grows exponentially with the number of attempts.

    Parameters
    ----------
    response : Response
        The latest response from the server.
    attempt : int
        The number of attempts made so far, starting at 0.
    """
    retry_after = response.headers.get("Retry-After", "")
    try:
        time_to_sleep = float(retry_after)
    except ValueError:
        time_to_sleep = float(2**attempt)

    if time_to_sleep > 0:
        logger.info("Server error or rate limit. Sleep for %s seconds", time_to_sleep)
        time.sleep(time_to_sleep)


def sha256_hexdigest(data: bytes) -> str:
    """Return the lowercase hex sha256 digest of ``data``."""
    return hashlib.sha256(data).hexdigest()
