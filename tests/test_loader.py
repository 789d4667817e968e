import json
import threading
import time

import pytest
import requests

from catalog.errors import ResourceLoadError, ResourceParseError
from catalog.loader import CatalogLoader, parse_records
from catalog.models import Record


class FakeResponse:
    def __init__(self, text: str, status_code: int = 200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")


class FakeSession:
    """Stands in for requests.Session; replays responses in order (last one repeats)."""

    def __init__(self, *responses, delay: float = 0.0):
        self.responses = list(responses)
        self.delay = delay
        self.calls: list[tuple[str, float]] = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self.delay:
            time.sleep(self.delay)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item


URL = "https://example.test/languages.json"

SAMPLE = [
    {"name": "Go", "description": "Compiled, concurrent", "creationInfo": "2009", "link": "https://go.dev"},
    {"name": "Rust", "description": "Safe systems", "creationInfo": "2010", "link": "https://rust-lang.org"},
]


@pytest.fixture
def write_catalog(tmp_path):
    def _write(data, name="languages.json"):
        path = tmp_path / name
        path.write_text(data if isinstance(data, str) else json.dumps(data), encoding="utf-8")
        return path
    return _write


class TestRecordSchema:
    """Test record validation and key aliases."""

    def test_canonical_keys(self):
        """Canonical English keys populate the record."""
        r = Record.model_validate(SAMPLE[0])
        assert (r.name, r.description, r.creation_info, r.link) == (
            "Go", "Compiled, concurrent", "2009", "https://go.dev"
        )

    def test_legacy_keys(self):
        """Portuguese keys from the first resource version are accepted."""
        r = Record.model_validate(
            {"nome": "Lua", "descricao": "Linguagem leve", "data_criacao": "1993", "link": "https://lua.org"}
        )
        assert r.name == "Lua"
        assert r.description == "Linguagem leve"
        assert r.creation_info == "1993"

    def test_missing_and_null_fields_become_empty(self):
        """Absent or null fields are rendered as empty text."""
        r = Record.model_validate({"name": "Zig", "link": None})
        assert r.description == ""
        assert r.creation_info == ""
        assert r.link == ""

    def test_numeric_year_becomes_string(self):
        """A bare numeric year is kept as its string form."""
        assert Record.model_validate({"name": "C", "creationInfo": 1972}).creation_info == "1972"

    def test_records_are_immutable(self):
        """Records cannot be modified after loading."""
        r = Record.model_validate(SAMPLE[0])
        with pytest.raises(Exception):
            r.name = "Changed"

    def test_to_json_uses_canonical_keys(self):
        """Serialisation writes creationInfo, not creation_info."""
        r = Record.model_validate({"nome": "Lua", "data_criacao": 1993})
        assert r.to_json() == {"name": "Lua", "description": "", "creationInfo": "1993", "link": ""}


class TestParseRecords:
    """Test shape validation of the decoded document."""

    def test_parses_array_in_order(self):
        """Records come back as a tuple in resource order."""
        records = parse_records(SAMPLE)
        assert isinstance(records, tuple)
        assert [r.name for r in records] == ["Go", "Rust"]

    def test_duplicates_are_kept(self):
        """Duplicate entries are not collapsed."""
        assert len(parse_records([SAMPLE[0], SAMPLE[0]])) == 2

    def test_rejects_non_array(self):
        """A top-level object is not a catalog."""
        with pytest.raises(ResourceParseError):
            parse_records({"languages": SAMPLE})

    def test_rejects_non_object_entry(self):
        """Every entry must be an object."""
        with pytest.raises(ResourceParseError):
            parse_records([SAMPLE[0], "Rust"])

    def test_rejects_invalid_field_type(self):
        """A nested structure where text is expected is a parse error."""
        with pytest.raises(ResourceParseError):
            parse_records([{"name": ["Go"]}])


class TestFileLoading:
    """Test loading from a local file."""

    def test_ensure_loaded_reads_file(self, write_catalog):
        """Records are loaded and cached."""
        loader = CatalogLoader(write_catalog(SAMPLE))
        records = loader.ensure_loaded()
        assert [r.name for r in records] == ["Go", "Rust"]
        assert loader.loaded is True

    def test_cache_prevents_second_fetch(self, write_catalog):
        """Once loaded, the resource is not read again even if it changes."""
        path = write_catalog(SAMPLE)
        loader = CatalogLoader(path)
        first = loader.ensure_loaded()
        path.write_text("[]", encoding="utf-8")

        assert loader.ensure_loaded() is first
        assert loader.fetch_count == 1

    def test_missing_file_is_load_error(self, tmp_path):
        """A missing file raises from load() and is contained by ensure_loaded()."""
        loader = CatalogLoader(tmp_path / "nope.json")
        with pytest.raises(ResourceLoadError):
            loader.load()
        assert loader.ensure_loaded() == ()
        assert loader.loaded is False

    def test_malformed_json_is_parse_error(self, write_catalog, caplog):
        """Invalid JSON is logged and leaves the catalog empty."""
        loader = CatalogLoader(write_catalog("[{not json"))
        with pytest.raises(ResourceParseError):
            loader.load()
        assert loader.ensure_loaded() == ()
        assert "Failed to load catalog" in caplog.text

    def test_deeply_nested_json_is_parse_error(self, write_catalog, caplog):
        """Nesting deep enough to exhaust the decoder is contained like any bad JSON."""
        loader = CatalogLoader(write_catalog("[" * 100000 + "]" * 100000))
        with pytest.raises(ResourceParseError):
            loader.load()
        assert loader.ensure_loaded() == ()
        assert "Failed to load catalog" in caplog.text

    def test_empty_array_stays_unloaded(self, write_catalog):
        """An empty resource is not cached; the next call reads it again."""
        loader = CatalogLoader(write_catalog([]))
        assert loader.ensure_loaded() == ()
        assert loader.ensure_loaded() == ()
        assert loader.fetch_count == 2

    def test_concurrent_callers_share_one_load(self):
        """Overlapping ensure_loaded calls issue a single fetch."""
        session = FakeSession(FakeResponse(json.dumps(SAMPLE)), delay=0.05)
        loader = CatalogLoader(URL, session=session)

        results = []
        threads = [threading.Thread(target=lambda: results.append(loader.ensure_loaded())) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert len(session.calls) == 1
        assert len(results) == 8
        assert all(len(r) == 2 for r in results)


class TestHttpLoading:
    """Test loading from an HTTP endpoint."""

    def test_fetches_url_with_timeout(self):
        """The configured timeout is passed to the request."""
        session = FakeSession(FakeResponse(json.dumps(SAMPLE)))
        loader = CatalogLoader(URL, timeout=2.5, session=session)

        assert [r.name for r in loader.ensure_loaded()] == ["Go", "Rust"]
        assert session.calls == [(URL, 2.5)]

    def test_network_error_then_retry(self, caplog):
        """A network error is logged; the next call fetches again and succeeds."""
        session = FakeSession(
            requests.ConnectionError("connection refused"),
            FakeResponse(json.dumps(SAMPLE)),
        )
        loader = CatalogLoader(URL, session=session)

        assert loader.ensure_loaded() == ()
        assert "connection refused" in caplog.text
        assert len(loader.ensure_loaded()) == 2
        assert len(session.calls) == 2

    def test_timeout_is_load_failure(self):
        """Exceeding the timeout is treated like any other load failure."""
        loader = CatalogLoader(URL, session=FakeSession(requests.Timeout("read timed out")))
        with pytest.raises(ResourceLoadError):
            loader.load()

    def test_http_error_status_is_load_failure(self):
        """Non-success responses are load failures, not parse failures."""
        loader = CatalogLoader(URL, session=FakeSession(FakeResponse("oops", status_code=500)))
        with pytest.raises(ResourceLoadError):
            loader.load()
        assert loader.ensure_loaded() == ()

    def test_html_body_is_parse_failure(self):
        """A 200 response that is not JSON is a parse failure."""
        loader = CatalogLoader(URL, session=FakeSession(FakeResponse("<html></html>")))
        with pytest.raises(ResourceParseError):
            loader.load()
