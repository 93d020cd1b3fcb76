"""
Catalog loading service: a single fetch of the catalog JSON with a built-in fallback.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from config import CATALOG_FETCH_TIMEOUT, CATALOG_URL, FALLBACK_WARNING
from data_models import CONTENT_TYPES, FUNNEL_STAGES, ContentItem

logger = logging.getLogger(__name__)

# Fallback demo data if the fetch fails
SAMPLE_ITEMS: List[Dict[str, Any]] = [
    {
        "id": 1,
        "slug": "zero-trust-2025",
        "title": "Zero Trust for 2025: Practical Roadmap",
        "summary": "A pragmatic guide to sequencing identity, device posture, and micro-segmentation for mid-market enterprises.",
        "industries": ["Tech", "Finance"],
        "personas": ["CISO", "CIO"],
        "topics": ["Zero Trust", "Identity", "Micro-segmentation"],
        "tags": ["Security", "Architecture"],
        "funnel_stage": "Consideration",
        "release_date": "2025-10-15",
        "version": 2,
        "read_time_min": 11,
        "words": 2450,
        "content_type": "whitepaper",
        "file_url": "https://example.com/zero-trust.pdf",
        "cover_url": "https://picsum.photos/seed/zt/640/360",
    },
    {
        "id": 2,
        "slug": "ai-governance-intro",
        "title": "AI Governance Explained (Short Video)",
        "summary": "A 2-minute explainer on policy, model evals, and provenance.",
        "industries": ["Tech"],
        "personas": ["CTO", "Head of Data"],
        "topics": ["LLM", "Safety", "Provenance"],
        "tags": ["AI", "Video"],
        "funnel_stage": "Awareness",
        "release_date": "2025-08-01",
        "version": 1,
        "duration_sec": 125,
        "content_type": "video",
        "file_url": "https://www.w3schools.com/html/mov_bbb.mp4",
        "cover_url": "https://picsum.photos/seed/ai/640/360",
    },
    {
        "id": 3,
        "slug": "developer-intent-blueprint",
        "title": "Developer Intent Blueprint",
        "summary": "How to use public, verifiable signals to prioritize accounts without renting a DMP.",
        "industries": ["SaaS", "Tech"],
        "personas": ["VP Marketing", "Growth"],
        "topics": ["Developer Intent", "ABM", "Data"],
        "tags": ["Demand Gen", "Signals"],
        "funnel_stage": "Decision",
        "release_date": "2025-09-20",
        "version": 3,
        "read_time_min": 13,
        "words": 3100,
        "content_type": "whitepaper",
        "file_url": "https://example.com/dev-intent.pdf",
        "cover_url": "https://picsum.photos/seed/dev/640/360",
    },
]


@dataclass
class CatalogLoadResult:
    """Outcome of one catalog load"""
    items: List[ContentItem]
    source: Optional[str] = None
    warning: Optional[str] = None
    fallback: bool = False


def extract_records(payload: Any) -> List[Any]:
    """Accept either a bare array or an object exposing an `items` array."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get('items'), list):
        return payload['items']
    return []


def normalize_items(records: List[Any]) -> List[ContentItem]:
    """Normalize raw records into ContentItems, skipping ones that can't be shown"""
    items = []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            logger.warning("Skipping catalog record %d: not an object", index)
            continue
        try:
            item = ContentItem.from_dict(record)
        except ValueError as e:
            logger.warning("Skipping catalog record %r: %s", record.get('id', index), e)
            continue
        if item.content_type not in CONTENT_TYPES or item.funnel_stage not in FUNNEL_STAGES:
            logger.debug("Catalog item %r has a non-standard type or stage", item.id)
        items.append(item)
    return items


def sample_catalog() -> List[ContentItem]:
    return normalize_items(SAMPLE_ITEMS)


class CatalogLoader:
    """Service for fetching the catalog JSON"""

    def __init__(self, timeout: Optional[float] = CATALOG_FETCH_TIMEOUT):
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({'Accept': 'application/json'})

    def load(self, source: Optional[str] = CATALOG_URL) -> CatalogLoadResult:
        """Fetch the catalog once; any failure falls back to the sample catalog.

        There is no retry. The catalog is static content refreshed by reloading.
        """
        if not source:
            return CatalogLoadResult(items=sample_catalog())

        try:
            response = self.session.get(source, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.warning("Catalog load from %s failed: %s", source, e)
            return CatalogLoadResult(
                items=sample_catalog(),
                source=source,
                warning=FALLBACK_WARNING,
                fallback=True,
            )

        items = normalize_items(extract_records(payload))
        logger.info("Loaded %d catalog items from %s", len(items), source)
        return CatalogLoadResult(items=items, source=source)

    def close(self):
        self.session.close()


class CatalogStore:
    """Holds the current catalog for the app.

    A load that finishes after close() is discarded instead of replacing the catalog.
    """

    def __init__(self, loader: Optional[CatalogLoader] = None, source: Optional[str] = CATALOG_URL):
        self.loader = loader or CatalogLoader()
        self.source = source
        self.loading = False
        self.generation = 0
        self._result = CatalogLoadResult(items=[], source=source)
        self._closed = False
        self._lock = threading.Lock()

    @property
    def items(self) -> List[ContentItem]:
        return self._result.items

    @property
    def warning(self) -> Optional[str]:
        return self._result.warning

    @property
    def closed(self) -> bool:
        return self._closed

    def refresh(self) -> bool:
        """Run one load. Returns False if the store was closed before it finished."""
        with self._lock:
            if self._closed:
                return False
            self.loading = True
        return self._finish_load()

    def refresh_if_empty(self) -> bool:
        """Run the first load unless one has finished or is already running.

        The check and the loading flag are set under one lock, so concurrent
        first requests start a single load. Returns True only for the caller
        that ran it.
        """
        with self._lock:
            if self._closed or self.loading or self.generation > 0:
                return False
            self.loading = True
        return self._finish_load()

    def _finish_load(self) -> bool:
        try:
            result = self.loader.load(self.source)
        except BaseException:
            with self._lock:
                self.loading = False
            raise
        # loading and generation change under one lock
        with self._lock:
            self.loading = False
            if self._closed:
                logger.info("Discarding catalog load that finished after close")
                return False
            self._result = result
            self.generation += 1
        return True

    def close(self):
        with self._lock:
            self._closed = True
        self.loader.close()
