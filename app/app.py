"""
FastAPI application serving the programming-language catalog.

Run as a script to prepare data then serve:
    python app/app.py

Or run as a module if data/languages.json already exists:
    uvicorn app.app:app --reload

Data step (skipped if output already exists):
    Normalise legacy data/data.json → data/languages.json

Endpoints:
    GET /              full page with search box and cards (?q= optional)
    GET /cards?q=      card-container fragment for a query
    GET /records?q=    matching records as JSON
    GET /health        catalog status

Configuration (env or .env):
    CATALOG_SOURCE   path or http(s) URL of the catalog JSON
    CATALOG_TIMEOUT  fetch timeout in seconds
    CARD_LINK_LABEL  text of the link on every card
    LOG_LEVEL        root log level (default INFO)
    HOST, PORT       bind address for `python app/app.py`

Logs each search and wall-clock time to stdout and logs/app.log
(rotating, 5 MB max, 3 backups).
"""

import asyncio
import logging
import logging.handlers
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Query
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field

# Ensure project root is on sys.path when running as a script (python app/app.py)
sys.path.insert(0, str(Path(__file__).parent.parent))

from catalog.loader import DEFAULT_SOURCE, DEFAULT_TIMEOUT, CatalogLoader
from catalog.render import DEFAULT_LINK_LABEL, CardContainer, render_page
from catalog.search import SearchPipeline, filter_records

load_dotenv()

LOG_DIR  = Path(__file__).parent.parent / "logs"
LOG_FILE = LOG_DIR / "app.log"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def _setup_logging() -> None:
    """Send catalog and request logs to stdout and logs/app.log (5 MB x 3 backups)."""
    root = logging.getLogger()
    root.setLevel(LOG_LEVEL)
    if any(isinstance(h, logging.handlers.RotatingFileHandler) for h in root.handlers):
        return  # already configured (module re-imported under uvicorn --reload)

    LOG_DIR.mkdir(exist_ok=True)
    fmt = logging.Formatter("%(asctime)s  %(levelname)s  %(name)s  %(message)s")
    handlers = [
        logging.StreamHandler(sys.stdout),
        logging.handlers.RotatingFileHandler(
            LOG_FILE, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
        ),
    ]
    for handler in handlers:
        handler.setFormatter(fmt)
        root.addHandler(handler)


_setup_logging()
log = logging.getLogger("api")

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

DATA_DIR    = Path(__file__).parent.parent / "data"
LEGACY_FILE = DATA_DIR / "data.json"

CATALOG_SOURCE  = os.getenv("CATALOG_SOURCE", str(DEFAULT_SOURCE))
CATALOG_TIMEOUT = float(os.getenv("CATALOG_TIMEOUT", str(DEFAULT_TIMEOUT)))
LINK_LABEL      = os.getenv("CARD_LINK_LABEL", DEFAULT_LINK_LABEL)


# ---------------------------------------------------------------------------
# Data preparation
# ---------------------------------------------------------------------------

def _ensure_data() -> None:
    """Build data/languages.json from the legacy resource if it is missing."""
    if Path(CATALOG_SOURCE) != DEFAULT_SOURCE:
        log.info("CATALOG_SOURCE=%s — skipping data preparation.", CATALOG_SOURCE)
        return

    if DEFAULT_SOURCE.exists():
        log.info("languages.json exists — skipping.")
    elif LEGACY_FILE.exists():
        log.info("languages.json missing — normalising data.json…")
        from etl.pipeline import run as run_pipeline
        records = run_pipeline(LEGACY_FILE, DEFAULT_SOURCE)
        log.info("  Wrote %d records → %s", len(records), DEFAULT_SOURCE.name)
    else:
        log.warning("No catalog found at %s; searches will render nothing.", DEFAULT_SOURCE)


# ---------------------------------------------------------------------------
# App + lifespan
# ---------------------------------------------------------------------------

_loader = CatalogLoader(CATALOG_SOURCE, timeout=CATALOG_TIMEOUT)


@asynccontextmanager
async def lifespan(_: FastAPI):
    log.info("Loading catalog from %s…", _loader.source)
    records = await asyncio.to_thread(_loader.ensure_loaded)
    if records:
        log.info("  %d records ready.", len(records))
    else:
        log.warning("  Catalog not loaded; will retry on the next search.")

    yield  # server runs here


app = FastAPI(title="Programming Language Catalog", lifespan=lifespan)


def _search(q: str) -> CardContainer:
    container = CardContainer(link_label=LINK_LABEL)
    SearchPipeline(_loader, container).handle_search(q)
    return container


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

class RecordResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str
    creation_info: str = Field(alias="creationInfo")
    link: str


class RecordsResponse(BaseModel):
    query: str
    loaded: bool
    total: int
    records: list[RecordResult]


class HealthResponse(BaseModel):
    status: str
    catalog_loaded: bool
    records: int


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@app.get("/", response_class=HTMLResponse)
def index(q: str = "") -> str:
    return render_page(_search(q), q)


@app.get("/cards", response_class=HTMLResponse)
def cards(q: str = Query("", description="Case-insensitive name/description filter")) -> str:
    return _search(q).to_html()


@app.get("/records", response_model=RecordsResponse, response_model_by_alias=True)
def records(q: str = "") -> RecordsResponse:
    catalog = _loader.ensure_loaded()
    hits = filter_records(catalog, q)
    log.info("records q=%r  hits=%d", q, len(hits))
    return RecordsResponse(
        query=q,
        loaded=bool(catalog),
        total=len(hits),
        records=[RecordResult(**r.to_json()) for r in hits],
    )


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        catalog_loaded=_loader.loaded,
        records=len(_loader.records),
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))


if __name__ == "__main__":
    log.info("=== Programming Language Catalog — starting up ===")
    _ensure_data()
    log.info("=== Launching server on http://%s:%d ===", HOST, PORT)
    uvicorn.run(app, host=HOST, port=PORT)
