"""Epic Games Store catalog and content API client."""
from __future__ import annotations

import logging
from typing import List, Optional

import requests

from .config import Settings

LOGGER = logging.getLogger(__name__)

HEADERS = {"Accept": "application/json"}


class CatalogError(RuntimeError):
    """Raised when the promotions catalog cannot be fetched or parsed."""


def _session(session: Optional[requests.Session]) -> requests.Session:
    return session if session is not None else requests.Session()


def _extract_elements(payload: object) -> List[dict]:
    node = payload
    for key in ("data", "Catalog", "searchStore", "elements"):
        if not isinstance(node, dict) or key not in node:
            raise CatalogError(f"Catalog payload missing '{key}'")
        node = node[key]
    if not isinstance(node, list):
        raise CatalogError("Catalog elements payload is not a list")
    return [entry for entry in node if isinstance(entry, dict)]


def fetch_catalog(
    settings: Settings, session: Optional[requests.Session] = None
) -> List[dict]:
    """Return the raw ``searchStore.elements`` list for the configured region."""

    http = _session(session)
    url = settings.catalog_url
    LOGGER.info("Fetching promotions catalog from %s", url)
    try:
        response = http.get(url, headers=HEADERS, timeout=settings.timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise CatalogError(f"Failed to fetch promotions catalog: {exc}") from exc
    try:
        payload = response.json()
    except ValueError as exc:
        raise CatalogError(f"Unable to decode promotions catalog: {exc}") from exc
    elements = _extract_elements(payload)
    LOGGER.info("Catalog returned %s elements", len(elements))
    return elements


def fetch_bundle_description(
    content_url: str,
    *,
    timeout: float,
    session: Optional[requests.Session] = None,
) -> Optional[str]:
    """Look up the short description of a bundle page.

    Returns ``None`` on any failure so callers can keep the catalog copy.
    """

    http = _session(session)
    try:
        response = http.get(content_url, headers=HEADERS, timeout=timeout)
        response.raise_for_status()
        payload = response.json()
    except requests.RequestException as exc:
        LOGGER.warning("Bundle content lookup failed for %s: %s", content_url, exc)
        return None
    except ValueError:
        LOGGER.warning("Unable to decode bundle content from %s", content_url)
        return None
    about = payload.get("about") if isinstance(payload, dict) else None
    if not isinstance(about, dict):
        LOGGER.debug("Bundle content at %s has no 'about' section", content_url)
        return None
    description = about.get("shortDescription")
    if isinstance(description, str) and description:
        return description
    return None
