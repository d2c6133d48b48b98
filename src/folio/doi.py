"""Resolve DOIs to CSL-JSON through doi.org content negotiation.

A citation whose ``data-key`` is a DOI needs no local .bib entry: the
registration agency (CrossRef, DataCite, ...) returns CSL-JSON directly.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import quote

import httpx

from folio.errors import DOIResolutionFailed
from folio.http import get_with_retry, user_agent

logger = logging.getLogger(__name__)

DOI_RESOLVER = "https://doi.org"
CSL_JSON_MIME = "application/vnd.citationstyles.csl+json"
REQUEST_TIMEOUT = 15.0

DOI_RE = re.compile(
    r"^(?:https?://(?:dx\.)?doi\.org/|doi:\s*)?(10\.\d{4,9}/\S+)$",
    re.IGNORECASE,
)


def normalize_doi(value: str) -> str | None:
    """Bare DOI from a DOI, ``doi:`` reference or doi.org URL; None otherwise."""
    m = DOI_RE.match(value.strip())
    if not m:
        return None
    return m.group(1)


def fetch_csl(doi: str, mailto: str = "") -> dict:
    """Fetch the CSL-JSON record for *doi*.

    Raises:
        DOIResolutionFailed: On any non-200 response or connection failure.
    """
    url = f"{DOI_RESOLVER}/{quote(doi, safe='/')}"
    headers = {"Accept": CSL_JSON_MIME, "User-Agent": user_agent(mailto)}

    try:
        resp = get_with_retry(url, headers=headers, timeout=REQUEST_TIMEOUT, follow_redirects=True)
    except (httpx.ConnectError, httpx.TimeoutException) as e:
        raise DOIResolutionFailed(doi, 0) from e

    if resp.status_code != 200:
        raise DOIResolutionFailed(doi, resp.status_code)

    logger.debug("Resolved DOI %s", doi)
    return resp.json()
