"""
ETL pipeline: loads a raw catalog resource, normalises every entry to the
canonical schema, and writes data/languages.json.

Normalisation:
  - legacy keys are renamed: nome → name, descricao → description,
    data_criacao → creationInfo
  - missing/null fields become "", numeric years become strings
  - unknown keys are dropped
  - order and duplicates are kept as-is
"""

import json
import logging
from pathlib import Path
from typing import Any

from catalog.loader import parse_records

DATA_DIR    = Path(__file__).parent.parent / "data"
LEGACY_FILE = DATA_DIR / "data.json"
OUTPUT_FILE = DATA_DIR / "languages.json"

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def load(path: Path) -> Any:
    """Load a JSON document from disk; return [] if the file doesn't exist."""
    if not path.exists():
        return []
    return json.loads(path.read_text(encoding="utf-8"))


def normalize_entries(raw: Any) -> list[dict[str, str]]:
    """Validate raw entries and return them as canonical dicts (raises ResourceParseError)."""
    return [record.to_json() for record in parse_records(raw)]


# ---------------------------------------------------------------------------
# Entry point (importable, not a CLI)
# ---------------------------------------------------------------------------

def run(source: Path = LEGACY_FILE, output: Path = OUTPUT_FILE) -> list[dict[str, str]]:
    """Load the raw file, normalise, save the canonical catalog, return the result."""
    records = normalize_entries(load(source))

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(
        json.dumps(records, indent=2, ensure_ascii=False), encoding="utf-8"
    )
    log.info("Normalised %d records: %s → %s", len(records), source.name, output.name)
    return records


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s  %(message)s")
    run()
