"""
Substring search over the catalog and the search → render pipeline.

A record matches when its lower-cased name or description contains the
lower-cased query. The query is not trimmed, so an empty query matches
everything. Catalog order is preserved; nothing is ranked.

Public API:
    filter_records(records, query) → list[Record]
    SearchPipeline(loader, container)
    SearchPipeline.handle_search(query) → bool
"""

import logging
import threading
import time
from collections.abc import Iterable

from catalog.loader import CatalogLoader
from catalog.models import Record
from catalog.render import CardContainer

log = logging.getLogger(__name__)


def matches(record: Record, term: str) -> bool:
    return term in record.name.lower() or term in record.description.lower()


def filter_records(records: Iterable[Record], query: str) -> list[Record]:
    term = query.lower()
    return [r for r in records if matches(r, term)]


class SearchPipeline:
    def __init__(self, loader: CatalogLoader, container: CardContainer):
        self.loader    = loader
        self.container = container

        # Each call takes a ticket; only the newest ticket may render.
        self._latest = 0
        self._lock   = threading.Lock()

    def _issue_ticket(self) -> int:
        with self._lock:
            self._latest += 1
            return self._latest

    def handle_search(self, query: str) -> bool:
        """
        Load (if needed), filter and render for one query.

        Returns True if the container was re-rendered. Returns False, leaving
        the container untouched, when the catalog could not be loaded or a
        newer search was issued while this one was loading.
        """
        ticket = self._issue_ticket()
        t0 = time.perf_counter()

        records = self.loader.ensure_loaded()
        if not records:
            log.warning("q=%r  catalog unavailable, nothing rendered", query)
            return False

        hits = filter_records(records, query)

        with self._lock:
            if ticket != self._latest:
                log.debug("q=%r  superseded by a newer search, discarding", query)
                return False
            self.container.render(hits)

        elapsed = time.perf_counter() - t0
        log.info("q=%r  hits=%d/%d  %.3fs", query, len(hits), len(records), elapsed)
        return True
