"""Map raw extracted terms onto canonical taxonomy entries.

Rules, first one that fires wins:
1. exact alias owned by one entry -> exact-alias, confidence 1.0
2. alias owned by several entries -> disambiguate by the term's context
   category, then by entry weight; otherwise ambiguous (never guessed)
3. fuzzy candidate clearing the threshold with enough separation from the
   runner-up -> fuzzy, confidence = similarity
4. otherwise unmatched, confidence 0.0

"No match" is a normal result, not an error.
"""

import logging
from collections.abc import Iterable

from models.schemas.profile import NormalizedSkill
from models.schemas.raw_term import RawTerm
from models.schemas.scoring_config import NormalizerConfig
from models.schemas.taxonomy import TaxonomyEntry
from services.errors import ValidationError
from services.taxonomy_store import AmbiguousAlias, TaxonomyStore
from services.text_normalizer import normalize_text

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = NormalizerConfig()


def normalize(
    term: RawTerm,
    store: TaxonomyStore,
    config: NormalizerConfig | None = None,
) -> NormalizedSkill:
    """Normalize one raw term against a taxonomy snapshot.

    Raises ValidationError only when the term's text is empty.
    """
    config = config or _DEFAULT_CONFIG
    if not term.text or not term.text.strip():
        raise ValidationError("Raw term text is empty")

    key = normalize_text(term.text)
    if not key:
        return _unmatched(term, key)

    hit = store.lookup_exact(key)
    if isinstance(hit, TaxonomyEntry):
        return _matched(term, key, hit, "exact-alias", 1.0)
    if isinstance(hit, AmbiguousAlias):
        chosen = _disambiguate(hit, term.context)
        if chosen is None:
            logger.debug(
                "Ambiguous alias %r (%s) left unmatched",
                key, ", ".join(c.id for c in hit.candidates),
            )
            return _unmatched(term, key, method="ambiguous")
        return _matched(term, key, chosen, "disambiguated", config.disambiguated_confidence)

    # Look slightly below the threshold so a runner-up just under it still
    # counts against the margin.
    floor = max(0.0, config.fuzzy_threshold - config.fuzzy_margin)
    candidates = list(store.lookup_fuzzy(key, config.max_candidates, min_similarity=floor))
    if candidates:
        top, top_sim = candidates[0]
        runner_up = candidates[1][1] if len(candidates) > 1 else 0.0
        if top_sim >= config.fuzzy_threshold and round(top_sim - runner_up, 4) > config.fuzzy_margin:
            return _matched(term, key, top, "fuzzy", top_sim)
        logger.debug(
            "Fuzzy candidate %r for %r rejected (similarity %.4f, runner-up %.4f)",
            top.id, key, top_sim, runner_up,
        )

    return _unmatched(term, key)


def normalize_many(
    terms: Iterable[RawTerm],
    store: TaxonomyStore,
    config: NormalizerConfig | None = None,
) -> list[NormalizedSkill]:
    """Normalize terms in order."""
    return [normalize(t, store, config) for t in terms]


def _disambiguate(hit: AmbiguousAlias, context: str | None) -> TaxonomyEntry | None:
    """Category match first, then the unique highest weight; otherwise None."""
    pool = list(hit.candidates)
    if context:
        wanted = context.strip().lower()
        by_category = [c for c in pool if c.category.lower() == wanted]
        if len(by_category) == 1:
            return by_category[0]
        if by_category:
            pool = by_category

    top_weight = max(c.weight for c in pool)
    heaviest = [c for c in pool if c.weight == top_weight]
    if len(heaviest) == 1:
        return heaviest[0]
    return None


def _matched(
    term: RawTerm, key: str, entry: TaxonomyEntry, method: str, confidence: float
) -> NormalizedSkill:
    return NormalizedSkill(
        entry_id=entry.id,
        name=entry.name,
        category=entry.category,
        method=method,
        confidence=confidence,
        raw_text=term.text,
        normalized_text=key,
        sources=(term.source,),
    )


def _unmatched(term: RawTerm, key: str, method: str = "unmatched") -> NormalizedSkill:
    return NormalizedSkill(
        method=method,
        confidence=0.0,
        raw_text=term.text,
        normalized_text=key,
        sources=(term.source,),
    )
