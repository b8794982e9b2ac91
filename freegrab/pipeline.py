"""Fetch-and-normalize pipeline for the free games page."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

import requests

from . import epic
from .config import Settings, load_settings
from .models import CatalogElement, NormalizedItem, PromotionalOffer, Promotions
from .normalization import (
    current_offer,
    is_current,
    is_upcoming,
    normalize_element,
    upcoming_offer,
)
from .utils import ensure_utc, utcnow

LOGGER = logging.getLogger(__name__)

CURRENT = "current"
UPCOMING = "upcoming"

_Task = Tuple[str, CatalogElement, PromotionalOffer]


class FreeGamesPipeline:
    def __init__(
        self,
        settings: Settings | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.settings = settings or load_settings()
        self.session = session or requests.Session()

    # ------------------------------------------------------------------
    # Helpers

    def _describe_bundle(self, content_url: str) -> Optional[str]:
        return epic.fetch_bundle_description(
            content_url, timeout=self.settings.timeout, session=self.session
        )

    def _plan(self, elements: Sequence[CatalogElement], now: datetime) -> List[_Task]:
        tasks: List[_Task] = []
        for element in elements:
            if is_current(element, now):
                tasks.append((CURRENT, element, current_offer(element)))
        for element in elements:
            if is_upcoming(element):
                tasks.append((UPCOMING, element, upcoming_offer(element)))
        return tasks

    def _normalize(self, task: _Task) -> NormalizedItem:
        _bucket, element, offer = task
        return normalize_element(
            element, offer, self.settings, describe_bundle=self._describe_bundle
        )

    # ------------------------------------------------------------------

    def classify(
        self, raw_elements: Sequence[dict], *, now: datetime | None = None
    ) -> Promotions:
        """Normalize raw catalog entries into current and upcoming items.

        Every qualifying element is normalized on the worker pool at once and
        the results keep catalog order within each bucket.
        """

        moment = ensure_utc(now) if now is not None else utcnow()
        elements = [CatalogElement.from_dict(entry) for entry in raw_elements]
        tasks = self._plan(elements, moment)
        items: List[NormalizedItem] = []
        if tasks:
            workers = max(1, min(self.settings.max_workers, len(tasks)))
            with ThreadPoolExecutor(max_workers=workers) as executor:
                items = list(executor.map(self._normalize, tasks))
        current = [item for task, item in zip(tasks, items) if task[0] == CURRENT]
        upcoming = [item for task, item in zip(tasks, items) if task[0] == UPCOMING]
        LOGGER.info(
            "Normalized %s current and %s upcoming items from %s elements",
            len(current),
            len(upcoming),
            len(elements),
        )
        return Promotions(current=current, upcoming=upcoming)

    def run(self, *, now: datetime | None = None) -> Promotions:
        raw_elements = epic.fetch_catalog(self.settings, session=self.session)
        return self.classify(raw_elements, now=now)
