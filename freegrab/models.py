"""Data models used by the freegrab pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


def _text(value: object) -> Optional[str]:
    if isinstance(value, str):
        return value
    return None


def _records(value: object) -> List[dict]:
    """Return list entries as dicts, keeping positions for malformed entries."""

    if not isinstance(value, list):
        return []
    return [entry if isinstance(entry, dict) else {} for entry in value]


@dataclass(frozen=True)
class Category:
    path: Optional[str] = None


@dataclass(frozen=True)
class KeyImage:
    type: Optional[str] = None
    url: Optional[str] = None


@dataclass(frozen=True)
class PageMapping:
    page_slug: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: dict) -> "PageMapping":
        return cls(page_slug=_text(payload.get("pageSlug")))


@dataclass(frozen=True)
class PromotionalOffer:
    """A single time-boxed discount inside an offer group."""

    start_date: Optional[str] = None
    end_date: Optional[str] = None
    discount_percentage: Optional[float] = None

    @classmethod
    def from_dict(cls, payload: dict) -> "PromotionalOffer":
        setting = payload.get("discountSetting")
        percentage = None
        if isinstance(setting, dict):
            raw = setting.get("discountPercentage")
            if isinstance(raw, (int, float)) and not isinstance(raw, bool):
                percentage = float(raw)
        return cls(
            start_date=_text(payload.get("startDate")),
            end_date=_text(payload.get("endDate")),
            discount_percentage=percentage,
        )

    @property
    def is_free(self) -> bool:
        return self.discount_percentage == 0


def _offer_groups(value: object) -> List[List[PromotionalOffer]]:
    groups: List[List[PromotionalOffer]] = []
    for group in _records(value):
        offers = [
            PromotionalOffer.from_dict(entry)
            for entry in _records(group.get("promotionalOffers"))
        ]
        groups.append(offers)
    return groups


@dataclass(frozen=True)
class OfferSchedule:
    """The active and upcoming offer groups attached to a catalog element."""

    promotional_offers: List[List[PromotionalOffer]] = field(default_factory=list)
    upcoming_promotional_offers: List[List[PromotionalOffer]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: dict) -> "OfferSchedule":
        return cls(
            promotional_offers=_offer_groups(payload.get("promotionalOffers")),
            upcoming_promotional_offers=_offer_groups(
                payload.get("upcomingPromotionalOffers")
            ),
        )


@dataclass(frozen=True)
class CatalogElement:
    """A raw catalog entry as returned by the store search API.

    Every field is optional: the catalog omits keys freely and ``from_dict``
    treats missing or mistyped values as absent.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    categories: List[Category] = field(default_factory=list)
    key_images: List[KeyImage] = field(default_factory=list)
    offer_type: Optional[str] = None
    catalog_mappings: List[PageMapping] = field(default_factory=list)
    offer_mappings: List[PageMapping] = field(default_factory=list)
    product_slug: Optional[str] = None
    url_slug: Optional[str] = None
    promotions: Optional[OfferSchedule] = None

    @classmethod
    def from_dict(cls, payload: dict) -> "CatalogElement":
        catalog_ns = payload.get("catalogNs")
        catalog_mappings: List[PageMapping] = []
        if isinstance(catalog_ns, dict):
            catalog_mappings = [
                PageMapping.from_dict(entry)
                for entry in _records(catalog_ns.get("mappings"))
            ]
        promotions = payload.get("promotions")
        return cls(
            title=_text(payload.get("title")),
            description=_text(payload.get("description")),
            categories=[
                Category(path=_text(entry.get("path")))
                for entry in _records(payload.get("categories"))
            ],
            key_images=[
                KeyImage(type=_text(entry.get("type")), url=_text(entry.get("url")))
                for entry in _records(payload.get("keyImages"))
            ],
            offer_type=_text(payload.get("offerType")),
            catalog_mappings=catalog_mappings,
            offer_mappings=[
                PageMapping.from_dict(entry)
                for entry in _records(payload.get("offerMappings"))
            ],
            product_slug=_text(payload.get("productSlug")),
            url_slug=_text(payload.get("urlSlug")),
            promotions=(
                OfferSchedule.from_dict(promotions)
                if isinstance(promotions, dict)
                else None
            ),
        )


@dataclass(frozen=True)
class NormalizedItem:
    """A catalog element reduced to what the page needs to render it."""

    title: str
    description: str
    image_url: str
    link: str
    start_time: Optional[str]
    end_time: Optional[str]

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "imageUrl": self.image_url,
            "link": self.link,
            "startTime": self.start_time,
            "endTime": self.end_time,
        }


@dataclass(frozen=True)
class Promotions:
    """Normalized items split into the currently free and upcoming buckets."""

    current: List[NormalizedItem] = field(default_factory=list)
    upcoming: List[NormalizedItem] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "currentItems": [item.to_dict() for item in self.current],
            "upcomingItems": [item.to_dict() for item in self.upcoming],
        }
