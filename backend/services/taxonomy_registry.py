"""Process-wide taxonomy snapshot with atomic reload.

Follows the same pattern as the scorer registry: global singleton, loaded on
first use.  Readers take the current reference once per call and keep using
it; ``reload()`` builds the replacement completely before publishing it, so
no reader ever sees a half-built taxonomy.
"""

import logging
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from config import settings
from models.schemas.taxonomy import TaxonomyDefinition
from services.taxonomy_store import TaxonomyStore, load_definition

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_current: TaxonomyStore | None = None


def _build(definition: TaxonomyDefinition | Mapping[str, Any] | str | Path | None) -> TaxonomyStore:
    if definition is None:
        definition = settings.taxonomy_path
    if isinstance(definition, (str, Path)):
        definition = load_definition(definition)
    return TaxonomyStore.load(
        definition,
        similarity_floor=settings.fuzzy_threshold,
        token_weight=settings.fuzzy_token_weight,
    )


def get_store() -> TaxonomyStore:
    """Return the current snapshot, loading the configured taxonomy on first access."""
    store = _current
    if store is not None:
        return store
    with _lock:
        if _current is None:
            _publish(_build(None))
        return _current


def reload(definition: TaxonomyDefinition | Mapping[str, Any] | str | Path | None = None) -> TaxonomyStore:
    """Build a new snapshot and swap it in atomically.

    A failing definition raises ``TaxonomyLoadError`` and leaves the current
    snapshot in place.
    """
    store = _build(definition)
    with _lock:
        previous = _current
        _publish(store)
    logger.info(
        "Taxonomy reloaded: %s -> %s",
        previous.version if previous is not None else "none",
        store.version,
    )
    return store


def set_store(store: TaxonomyStore) -> None:
    """Publish an already-built snapshot."""
    with _lock:
        _publish(store)


def clear() -> None:
    """Drop the current snapshot. Useful for testing."""
    global _current
    with _lock:
        _current = None


def _publish(store: TaxonomyStore) -> None:
    global _current
    _current = store
