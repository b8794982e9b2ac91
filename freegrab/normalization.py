"""Classification and field extraction for catalog elements."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .config import Settings
from .models import CatalogElement, NormalizedItem, PromotionalOffer
from .utils import ensure_utc, parse_iso_datetime

LOGGER = logging.getLogger(__name__)

BUNDLE_CATEGORY = "bundles"
WIDE_IMAGE_TYPE = "OfferImageWide"
ADD_ON_OFFER_TYPE = "ADD_ON"

DescriptionLookup = Callable[[str], Optional[str]]


@dataclass(frozen=True)
class ResolvedLink:
    """Where an element lives on the store and on the content API."""

    link: str
    content_url: Optional[str]
    is_bundle: bool


def _first_offer(groups: list[list[PromotionalOffer]]) -> Optional[PromotionalOffer]:
    if not groups or not groups[0]:
        return None
    return groups[0][0]


def current_offer(element: CatalogElement) -> Optional[PromotionalOffer]:
    if element.promotions is None:
        return None
    return _first_offer(element.promotions.promotional_offers)


def upcoming_offer(element: CatalogElement) -> Optional[PromotionalOffer]:
    if element.promotions is None:
        return None
    return _first_offer(element.promotions.upcoming_promotional_offers)


def is_current(element: CatalogElement, now: datetime) -> bool:
    """Return ``True`` when the element is free right now.

    The window is start-inclusive and end-exclusive.
    """

    offer = current_offer(element)
    if offer is None or not offer.is_free:
        return False
    now = ensure_utc(now)
    start = parse_iso_datetime(offer.start_date)
    end = parse_iso_datetime(offer.end_date)
    if start is None or end is None:
        LOGGER.debug("Skipping offer with unparseable window for %s", element.title)
        return False
    return start <= now < end


def is_upcoming(element: CatalogElement) -> bool:
    offer = upcoming_offer(element)
    return offer is not None and offer.is_free


def is_bundle(element: CatalogElement) -> bool:
    return any(category.path == BUNDLE_CATEGORY for category in element.categories)


def resolve_slug(element: CatalogElement) -> Optional[str]:
    """Pick the store page slug for ``element``.

    Catalog namespace mapping, then offer mapping, then product slug (or the
    url slug when no product slug is present). Add-ons always use their offer
    mapping.
    """

    catalog_slug = element.catalog_mappings[0].page_slug if element.catalog_mappings else None
    offer_slug = element.offer_mappings[0].page_slug if element.offer_mappings else None
    product_slug = (
        element.product_slug if element.product_slug is not None else element.url_slug
    )
    slug = catalog_slug or offer_slug or product_slug
    if element.offer_type == ADD_ON_OFFER_TYPE and element.offer_mappings:
        slug = offer_slug
    return slug or None


def resolve_link(element: CatalogElement, settings: Settings) -> ResolvedLink:
    bundle = is_bundle(element)
    slug = resolve_slug(element)
    if bundle:
        link_base = f"{settings.store_base_url}/bundles/"
        content_base = f"{settings.content_base_url}/bundles/"
    else:
        link_base = f"{settings.store_base_url}/p/"
        content_base = f"{settings.content_base_url}/products/"
    if not slug:
        LOGGER.warning("No page slug for %s; linking to the free games page", element.title)
        return ResolvedLink(link=settings.fallback_link, content_url=None, is_bundle=bundle)
    return ResolvedLink(
        link=f"{link_base}{slug}",
        content_url=f"{content_base}{slug}",
        is_bundle=bundle,
    )


def select_image(element: CatalogElement) -> str:
    for image in element.key_images:
        if image.type == WIDE_IMAGE_TYPE and image.url:
            return image.url
    if element.key_images:
        return element.key_images[0].url or ""
    return ""


def normalize_element(
    element: CatalogElement,
    offer: PromotionalOffer,
    settings: Settings,
    *,
    describe_bundle: DescriptionLookup | None = None,
) -> NormalizedItem:
    """Build the page item for ``element`` using the offer that qualified it.

    Bundles get their description from ``describe_bundle`` when it returns
    a non-empty value; anything else keeps the catalog description.
    """

    resolved = resolve_link(element, settings)
    description = element.description or ""
    if resolved.is_bundle and resolved.content_url and describe_bundle is not None:
        enriched = describe_bundle(resolved.content_url)
        if enriched:
            description = enriched
    return NormalizedItem(
        title=element.title or "",
        description=description,
        image_url=select_image(element),
        link=resolved.link,
        start_time=offer.start_date,
        end_time=offer.end_date,
    )
