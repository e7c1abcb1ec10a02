"""Tests for the process-wide taxonomy snapshot and its atomic reload."""

import threading

import pytest

from models.schemas.raw_term import RawTerm
from services import taxonomy_registry
from services.errors import TaxonomyLoadError
from services.normalizer import normalize

REPLACEMENT_TAXONOMY = {
    "version": "test-2",
    "skills": {
        "rust": {"name": "Rust", "category": "language"},
        "go": {"name": "Go", "category": "language", "aliases": ["golang"]},
    },
}


def test_set_and_get(store):
    taxonomy_registry.set_store(store)
    assert taxonomy_registry.get_store() is store


@pytest.mark.bundled
def test_lazy_loads_configured_taxonomy():
    s = taxonomy_registry.get_store()
    assert "java" in s
    assert taxonomy_registry.get_store() is s


def test_reload_publishes_new_snapshot(store):
    taxonomy_registry.set_store(store)
    new = taxonomy_registry.reload(REPLACEMENT_TAXONOMY)
    assert new.version == "test-2"
    assert taxonomy_registry.get_store() is new
    assert "java" not in new


def test_reload_from_file(tmp_path, store):
    taxonomy_registry.set_store(store)
    path = tmp_path / "taxonomy.yaml"
    path.write_text('version: "file-1"\nskills:\n  rust:\n    name: Rust\n')
    assert taxonomy_registry.reload(path).version == "file-1"
    assert taxonomy_registry.get_store().version == "file-1"


def test_failed_reload_keeps_current_snapshot(store):
    taxonomy_registry.set_store(store)
    with pytest.raises(TaxonomyLoadError):
        taxonomy_registry.reload({"skills": {"a": {"name": "A", "parent": "missing"}}})
    assert taxonomy_registry.get_store() is store


def test_captured_snapshot_unaffected_by_reload(store):
    taxonomy_registry.set_store(store)
    captured = taxonomy_registry.get_store()
    taxonomy_registry.reload(REPLACEMENT_TAXONOMY)

    result = normalize(RawTerm(text="Java"), captured)
    assert result.entry_id == "java"
    assert result.method == "exact-alias"
    assert normalize(RawTerm(text="Java"), taxonomy_registry.get_store()).entry_id is None


def test_readers_only_see_complete_snapshots(store):
    taxonomy_registry.set_store(store)
    seen = []
    stop = threading.Event()

    def reader():
        while not stop.is_set():
            s = taxonomy_registry.get_store()
            seen.append((s.version, len(s)))

    threads = [threading.Thread(target=reader) for _ in range(4)]
    for t in threads:
        t.start()
    for _ in range(5):
        taxonomy_registry.reload(REPLACEMENT_TAXONOMY)
        taxonomy_registry.set_store(store)
    stop.set()
    for t in threads:
        t.join()

    assert set(seen) <= {("test-1", 12), ("test-2", 2)}
