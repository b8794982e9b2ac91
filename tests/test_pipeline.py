import threading
from datetime import datetime, timezone

import pytest
import requests

from freegrab.config import Settings
from freegrab.epic import CatalogError
from freegrab.pipeline import FreeGamesPipeline

NOW = datetime(2024, 5, 20, 12, 0, tzinfo=timezone.utc)
SETTINGS = Settings(locale="zh-CN", country="CN", max_workers=4)
CONTENT_BASE = "https://store-content-ipv4.ak.epicgames.com/api/zh-CN/content"


class DummyResponse:
    def __init__(self, payload=None, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        return self._payload


class RoutingSession:
    """Answers by URL prefix; safe to share between worker threads."""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []
        self._lock = threading.Lock()

    def get(self, url, headers=None, timeout=None):
        with self._lock:
            self.calls.append(url)
        for prefix, response in self.routes.items():
            if url.startswith(prefix):
                if isinstance(response, Exception):
                    raise response
                return response
        raise AssertionError(f"Unexpected request to {url}")


def offer(start, end, discount=0):
    return {
        "startDate": start,
        "endDate": end,
        "discountSetting": {"discountType": "PERCENTAGE", "discountPercentage": discount},
    }


def active_element():
    return {
        "title": "Active Game",
        "description": "Free this week",
        "offerType": "BASE_GAME",
        "categories": [{"path": "freegames"}, {"path": "games"}],
        "keyImages": [
            {"type": "Thumbnail", "url": "https://cdn.example.com/active-thumb.jpg"},
            {"type": "OfferImageWide", "url": "https://cdn.example.com/active-wide.jpg"},
        ],
        "catalogNs": {"mappings": [{"pageSlug": "active-game", "pageType": "productHome"}]},
        "offerMappings": [],
        "productSlug": "active-game/home",
        "urlSlug": "active-game",
        "promotions": {
            "promotionalOffers": [
                {
                    "promotionalOffers": [
                        offer("2024-05-16T15:00:00.000Z", "2024-05-23T15:00:00.000Z")
                    ]
                }
            ],
            "upcomingPromotionalOffers": [],
        },
    }


def upcoming_element():
    return {
        "title": "Next Game",
        "description": "Free next week",
        "offerType": "BASE_GAME",
        "categories": [{"path": "games"}],
        "keyImages": [{"type": "Thumbnail", "url": "https://cdn.example.com/next-thumb.jpg"}],
        "catalogNs": {"mappings": []},
        "offerMappings": [],
        "productSlug": "next-game",
        "promotions": {
            "promotionalOffers": [],
            "upcomingPromotionalOffers": [
                {
                    "promotionalOffers": [
                        offer("2024-05-23T15:00:00.000Z", "2024-05-30T15:00:00.000Z")
                    ]
                }
            ],
        },
    }


def bundle_element(slug="mega-pack", title="Mega Pack"):
    return {
        "title": title,
        "description": "Catalog bundle copy",
        "offerType": "BUNDLE",
        "categories": [{"path": "bundles"}],
        "keyImages": [],
        "catalogNs": {"mappings": []},
        "offerMappings": [{"pageSlug": slug}],
        "promotions": active_element()["promotions"],
    }


def catalog(elements):
    return DummyResponse({"data": {"Catalog": {"searchStore": {"elements": elements}}}})


def test_pipeline_end_to_end_two_elements():
    session = RoutingSession(
        {SETTINGS.catalog_endpoint: catalog([active_element(), upcoming_element()])}
    )
    pipeline = FreeGamesPipeline(settings=SETTINGS, session=session)

    promotions = pipeline.run(now=NOW)

    assert len(promotions.current) == 1
    assert len(promotions.upcoming) == 1
    current = promotions.current[0]
    assert current.title == "Active Game"
    assert current.description == "Free this week"
    assert current.image_url == "https://cdn.example.com/active-wide.jpg"
    assert current.link == "https://store.epicgames.com/zh-CN/p/active-game"
    assert current.start_time == "2024-05-16T15:00:00.000Z"
    assert current.end_time == "2024-05-23T15:00:00.000Z"
    upcoming = promotions.upcoming[0]
    assert upcoming.title == "Next Game"
    assert upcoming.image_url == "https://cdn.example.com/next-thumb.jpg"
    assert upcoming.link == "https://store.epicgames.com/zh-CN/p/next-game"
    assert upcoming.start_time == "2024-05-23T15:00:00.000Z"
    assert session.calls == [SETTINGS.catalog_url]


def test_pipeline_enriches_bundle_description():
    session = RoutingSession(
        {
            SETTINGS.catalog_endpoint: catalog([bundle_element()]),
            f"{CONTENT_BASE}/bundles/mega-pack": DummyResponse(
                {"about": {"shortDescription": "Three games in one"}}
            ),
        }
    )
    promotions = FreeGamesPipeline(settings=SETTINGS, session=session).run(now=NOW)

    item = promotions.current[0]
    assert item.description == "Three games in one"
    assert item.link == "https://store.epicgames.com/zh-CN/bundles/mega-pack"
    assert item.image_url == ""


def test_pipeline_keeps_description_when_bundle_lookup_fails():
    session = RoutingSession(
        {
            SETTINGS.catalog_endpoint: catalog([bundle_element(), upcoming_element()]),
            f"{CONTENT_BASE}/bundles/": DummyResponse({}, status_code=500),
        }
    )
    promotions = FreeGamesPipeline(settings=SETTINGS, session=session).run(now=NOW)

    assert promotions.current[0].description == "Catalog bundle copy"
    assert [item.title for item in promotions.upcoming] == ["Next Game"]


def test_pipeline_preserves_catalog_order():
    bundles = [bundle_element(slug=f"pack-{index}", title=f"Pack {index}") for index in range(8)]
    session = RoutingSession(
        {
            SETTINGS.catalog_endpoint: catalog(bundles),
            f"{CONTENT_BASE}/bundles/": requests.ConnectionError("offline"),
        }
    )
    promotions = FreeGamesPipeline(settings=SETTINGS, session=session).run(now=NOW)

    assert [item.title for item in promotions.current] == [f"Pack {index}" for index in range(8)]


def test_pipeline_drops_non_free_and_processes_dual_bucket_elements():
    discounted = active_element()
    discounted["title"] = "Half Price"
    discounted["promotions"]["promotionalOffers"][0]["promotionalOffers"][0][
        "discountSetting"
    ]["discountPercentage"] = 50
    both = active_element()
    both["title"] = "Both"
    both["promotions"]["upcomingPromotionalOffers"] = upcoming_element()["promotions"][
        "upcomingPromotionalOffers"
    ]
    session = RoutingSession({SETTINGS.catalog_endpoint: catalog([discounted, both])})

    promotions = FreeGamesPipeline(settings=SETTINGS, session=session).run(now=NOW)

    assert [item.title for item in promotions.current] == ["Both"]
    assert [item.title for item in promotions.upcoming] == ["Both"]
    assert promotions.current[0].end_time == "2024-05-23T15:00:00.000Z"
    assert promotions.upcoming[0].end_time == "2024-05-30T15:00:00.000Z"


def test_pipeline_propagates_catalog_failure():
    session = RoutingSession({SETTINGS.catalog_endpoint: DummyResponse({}, status_code=502)})
    with pytest.raises(CatalogError):
        FreeGamesPipeline(settings=SETTINGS, session=session).run(now=NOW)


def test_classify_with_empty_catalog():
    pipeline = FreeGamesPipeline(settings=SETTINGS, session=RoutingSession({}))
    promotions = pipeline.classify([], now=NOW)
    assert promotions.current == []
    assert promotions.upcoming == []


def test_classify_reads_naive_now_as_utc():
    pipeline = FreeGamesPipeline(settings=SETTINGS, session=RoutingSession({}))
    promotions = pipeline.classify(
        [active_element(), upcoming_element()], now=datetime(2024, 5, 20, 12, 0)
    )
    assert [item.title for item in promotions.current] == ["Active Game"]
    assert [item.title for item in promotions.upcoming] == ["Next Game"]


def test_pipeline_uses_first_offer_group_only():
    element = active_element()
    element["promotions"]["promotionalOffers"] = [
        {"promotionalOffers": [offer("2024-05-16T15:00:00.000Z", "2024-05-23T15:00:00.000Z", 50)]},
        {"promotionalOffers": [offer("2024-05-16T15:00:00.000Z", "2024-05-23T15:00:00.000Z")]},
    ]
    session = RoutingSession({SETTINGS.catalog_endpoint: catalog([element])})

    promotions = FreeGamesPipeline(settings=SETTINGS, session=session).run(now=NOW)

    assert promotions.current == []
