"""Lazy-loading scorer registry.

Follows the same pattern as the taxonomy registry: global singleton, loaded on first use.
"""

import logging

from config import settings
from services.pipeline.base import BaseScorer
from services.taxonomy_store import TaxonomyStore

logger = logging.getLogger(__name__)

_registry: dict[str, BaseScorer] = {}


def create_scorer(name: str, store: TaxonomyStore | None = None) -> BaseScorer:
    """Factory: create a scorer by name with deferred imports.

    A scorer created with ``store`` stays pinned to that snapshot; otherwise
    it reads the registry's current taxonomy on every call.
    """
    if name == "rules":
        from services.pipeline.rule_scorer import RuleBasedScorer
        return RuleBasedScorer(store)
    elif name == "model":
        from services.pipeline.model_scorer import ModelScorer
        return ModelScorer(store)
    else:
        raise ValueError(f"Unknown scorer: {name}")


def get_scorer(name: str | None = None) -> BaseScorer:
    """Get a scorer by name (default: settings.scorer_mode), creating and loading it on first access."""
    name = name or settings.scorer_mode
    if name not in _registry:
        _registry[name] = create_scorer(name)
    scorer = _registry[name]
    scorer.ensure_loaded()
    return scorer


def preload(*names: str) -> None:
    """Pre-load multiple scorers (e.g. at startup)."""
    for name in names:
        get_scorer(name)


def clear() -> None:
    """Unload all scorers. Useful for testing."""
    _registry.clear()
