"""HTTP helpers for metadata lookups.

Retries with exponential backoff so a burst of DOI citations does not
trip rate limits.
"""

from __future__ import annotations

import time

import httpx

DEFAULT_TIMEOUT = 15.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_BACKOFF_BASE = 1.0  # seconds
USER_AGENT = "Folio/0.1"


def user_agent(mailto: str = "") -> str:
    """User-Agent string, with a contact address when one is configured."""
    return f"{USER_AGENT} (mailto:{mailto})" if mailto else USER_AGENT


def get_with_retry(
    url: str,
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    backoff_base: float = DEFAULT_BACKOFF_BASE,
    **kwargs,
) -> httpx.Response:
    """httpx.get that retries on 429, 5xx and connection failures.

    The delay doubles on each attempt; a numeric ``Retry-After`` header
    raises it further.

    Returns:
        The last response, which may still be an error status.

    Raises:
        httpx.ConnectError, httpx.TimeoutException: When the final attempt
            cannot connect.
    """
    kwargs.setdefault("timeout", DEFAULT_TIMEOUT)

    for attempt in range(max_retries + 1):
        last = attempt == max_retries
        try:
            resp = httpx.get(url, **kwargs)
        except (httpx.ConnectError, httpx.TimeoutException):
            if last:
                raise
            time.sleep(backoff_base * (2 ** attempt))
            continue

        if not last and (resp.status_code == 429 or resp.status_code >= 500):
            wait = backoff_base * (2 ** attempt)
            retry_after = resp.headers.get("retry-after", "")
            if retry_after.isdigit():
                wait = max(wait, float(retry_after))
            time.sleep(wait)
            continue

        return resp

    raise AssertionError("unreachable")
