"""
Catalog loader.

Fetches the static JSON resource once and caches the parsed records for the
rest of the process. The source is either a local path or an http(s) URL.

Public API:
    CatalogLoader(source, timeout)
    CatalogLoader.ensure_loaded() → Catalog   (never raises; () on failure)
    CatalogLoader.load()          → Catalog   (raises CatalogError)
"""

import json
import logging
import threading
from pathlib import Path
from typing import Any

import requests
from pydantic import ValidationError

from catalog.errors import ResourceLoadError, ResourceParseError
from catalog.models import Catalog, Record

DATA_DIR        = Path(__file__).parent.parent / "data"
DEFAULT_SOURCE  = DATA_DIR / "languages.json"
DEFAULT_TIMEOUT = 10.0  # seconds

log = logging.getLogger(__name__)

SESSION = requests.Session()
SESSION.headers["User-Agent"] = "Language-Catalog-Search/1.0"


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def parse_records(data: Any) -> Catalog:
    """Validate a decoded JSON document as a sequence of records."""
    if not isinstance(data, list):
        raise ResourceParseError(
            f"expected a JSON array of records, got {type(data).__name__}"
        )

    records = []
    for i, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ResourceParseError(f"entry {i} is not an object: {entry!r}")
        try:
            records.append(Record.model_validate(entry))
        except ValidationError as exc:
            raise ResourceParseError(f"entry {i} is invalid: {exc}") from exc
    return tuple(records)


class CatalogLoader:
    def __init__(
        self,
        source: str | Path = DEFAULT_SOURCE,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ):
        self.source  = str(source)
        self.timeout = timeout
        self.session = session or SESSION
        self.fetch_count = 0

        self._records: Catalog = ()
        # Held for the whole fetch so concurrent callers share one load.
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return bool(self._records)

    @property
    def records(self) -> Catalog:
        return self._records

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def ensure_loaded(self) -> Catalog:
        """
        Return the cached catalog, loading it first if it is still empty.

        Load failures are logged and yield an empty catalog; the next call
        tries again.
        """
        if self._records:
            return self._records

        with self._lock:
            if self._records:
                return self._records
            try:
                records = self.load()
            except (ResourceLoadError, ResourceParseError) as exc:
                log.error("Failed to load catalog from %s: %s", self.source, exc)
                return ()

            self._records = records
            if records:
                log.info("Catalog loaded: %d records from %s", len(records), self.source)
            else:
                log.warning("Catalog resource %s is empty.", self.source)
            return self._records

    def load(self) -> Catalog:
        """Fetch and parse the resource. Does not touch the cache."""
        self.fetch_count += 1
        text = self._fetch()
        try:
            data = json.loads(text)
        except (ValueError, RecursionError) as exc:
            raise ResourceParseError(f"invalid JSON: {exc}") from exc
        return parse_records(data)

    def _fetch(self) -> str:
        if is_url(self.source):
            log.info("Fetching catalog from %s…", self.source)
            try:
                resp = self.session.get(self.source, timeout=self.timeout)
                resp.raise_for_status()
            except requests.RequestException as exc:
                raise ResourceLoadError(str(exc)) from exc
            return resp.text

        path = Path(self.source)
        log.info("Reading catalog from %s…", path)
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ResourceLoadError(str(exc)) from exc
        except UnicodeDecodeError as exc:
            raise ResourceParseError(f"not UTF-8 text: {exc}") from exc
