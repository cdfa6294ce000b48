import logging

import requests

logger = logging.getLogger(__name__)

# Known error markers that indicate a failed or incomplete page load
ERROR_MARKERS = [
    "this page isn't working",
    "err_connection",
    "page not found",
    "404 not found",
    "access denied",
    "503 service unavailable",
]


class TransportError(RuntimeError):
    """Raised when the partner listing (or a photo) cannot be fetched."""


def validate_content(html):
    """
    Validate that fetched HTML looks like a real listing page.

    Returns:
        (bool, str): (is_valid, reason)
    """
    if html is None:
        return False, "HTML is None"

    if len(html.strip()) == 0:
        return False, "HTML is empty"

    html_lower = html.lower()
    for marker in ERROR_MARKERS:
        if marker in html_lower:
            return False, f"Error marker detected: '{marker}'"

    return True, "OK"


def fetch_page(url, auth=None, timeout=30):
    """
    Fetch the partner listing over HTTP basic auth.

    No retries: a failed fetch aborts the run and the next scheduled
    invocation tries again.

    Returns:
        str: validated HTML content

    Raises:
        TransportError: on network errors, non-200 responses or an
            invalid page.
    """
    if not url:
        raise TransportError("No partner listing URL configured")

    logger.info(f"Loading partner listing via HTTP: {url}")
    try:
        response = requests.get(
            url, auth=auth, timeout=timeout, headers={'User-Agent': 'Mozilla/5.0'}
        )
    except requests.RequestException as e:
        raise TransportError(f"Request to {url} failed: {e}") from e

    if response.status_code != 200:
        raise TransportError(f"{url} returned HTTP {response.status_code}")

    html = response.text
    is_valid, reason = validate_content(html)
    if not is_valid:
        raise TransportError(f"Content validation failed for {url}: {reason}")

    logger.info(f"Fetched {len(html)} characters of HTML")
    return html
