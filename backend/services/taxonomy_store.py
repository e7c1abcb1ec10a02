"""Skill taxonomy snapshot: canonical entries, alias index and fuzzy similarity index.

A :class:`TaxonomyStore` is built once from a versioned definition and is
read-only afterwards.  It provides:

* O(1) lookup of entries by id (the parent hierarchy is an id relation,
  never nested objects);
* an exact alias index mapping each normalized alias to the entries owning
  it, so ambiguous aliases are visible to callers instead of being resolved
  by definition order;
* a fuzzy index scored with a token-overlap plus edit-distance composite.

Definitions are accepted either as a :class:`TaxonomyDefinition` or as the
plain mapping read from YAML/JSON::

    version: "2024.1"
    skills:
      java:
        name: Java
        category: language
        aliases: [java se, core java]
      spring-boot:
        name: Spring Boot
        category: framework
        parent: java
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from collections.abc import Iterator, Mapping
from functools import cached_property
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np
import pydantic
import yaml
from rapidfuzz import fuzz, process
from rapidfuzz.distance import Levenshtein

from models.schemas.taxonomy import TaxonomyDefinition, TaxonomyEntry
from services.errors import TaxonomyLoadError
from services.text_normalizer import normalize_text

logger = logging.getLogger(__name__)

DEFAULT_SIMILARITY_FLOOR = 0.82
DEFAULT_TOKEN_WEIGHT = 0.5


class AmbiguousAlias:
    """Marker for an alias owned by more than one entry.

    ``candidates`` are ordered by entry id so that any rule applied to them
    is independent of definition order.
    """

    __slots__ = ("alias", "candidates")

    def __init__(self, alias: str, candidates: Tuple[TaxonomyEntry, ...]) -> None:
        self.alias = alias
        self.candidates = candidates

    def __repr__(self) -> str:
        ids = ", ".join(c.id for c in self.candidates)
        return f"AmbiguousAlias(alias={self.alias!r}, candidates=[{ids}])"


class FuzzyMatches:
    """Lazy, finite, restartable sequence of ``(entry, similarity)`` pairs.

    Scores are computed on first iteration and reused; every ``iter()``
    starts again from the best candidate.
    """

    def __init__(
        self,
        store: "TaxonomyStore",
        query: str,
        max_candidates: int,
        min_similarity: float,
    ) -> None:
        self._store = store
        self._query = query
        self._max_candidates = max_candidates
        self._min_similarity = min_similarity

    @cached_property
    def _ranked(self) -> List[Tuple[TaxonomyEntry, float]]:
        return self._store._rank(self._query, self._max_candidates, self._min_similarity)

    def __iter__(self) -> Iterator[Tuple[TaxonomyEntry, float]]:
        return iter(self._ranked)

    def __len__(self) -> int:
        return len(self._ranked)

    def __bool__(self) -> bool:
        return bool(self._ranked)


class TaxonomyStore:
    """Immutable snapshot of a loaded taxonomy."""

    def __init__(
        self,
        entries: Dict[str, TaxonomyEntry],
        *,
        version: str = "unversioned",
        similarity_floor: float = DEFAULT_SIMILARITY_FLOOR,
        token_weight: float = DEFAULT_TOKEN_WEIGHT,
    ) -> None:
        # Entries are kept in id order; fuzzy ties break on this order.
        ordered = {eid: entries[eid] for eid in sorted(entries)}
        self._entries: Mapping[str, TaxonomyEntry] = MappingProxyType(ordered)
        self.version = version
        self.similarity_floor = similarity_floor
        self.token_weight = token_weight

        alias_owners: Dict[str, List[str]] = defaultdict(list)
        children: Dict[str, List[str]] = defaultdict(list)
        for entry in ordered.values():
            for alias in _entry_aliases(entry):
                if entry.id not in alias_owners[alias]:
                    alias_owners[alias].append(entry.id)
            if entry.parent:
                children[entry.parent].append(entry.id)

        self._alias_index: Mapping[str, Tuple[str, ...]] = MappingProxyType(
            {alias: tuple(owners) for alias, owners in alias_owners.items()}
        )
        self._children: Mapping[str, Tuple[str, ...]] = MappingProxyType(
            {pid: tuple(cids) for pid, cids in children.items()}
        )

        # Fuzzy index: one row per (alias, owner) pair.
        position = {eid: i for i, eid in enumerate(ordered)}
        self._entry_ids: Tuple[str, ...] = tuple(ordered)
        self._choices: List[str] = []
        owner_rows: List[int] = []
        for alias in sorted(self._alias_index):
            for owner in self._alias_index[alias]:
                self._choices.append(alias)
                owner_rows.append(position[owner])
        self._owner_idx = np.asarray(owner_rows, dtype=np.intp)

    # -- construction -------------------------------------------------------

    @classmethod
    def load(
        cls,
        definition: Union[TaxonomyDefinition, Mapping[str, Any]],
        *,
        similarity_floor: float = DEFAULT_SIMILARITY_FLOOR,
        token_weight: float = DEFAULT_TOKEN_WEIGHT,
    ) -> "TaxonomyStore":
        """Validate *definition* and build a store.

        Raises
        ------
        TaxonomyLoadError
            On malformed definitions, duplicate or empty identifiers, empty
            canonical names, negative weights, unknown parents or cyclic
            parent chains.
        """
        if not isinstance(definition, TaxonomyDefinition):
            definition = _parse_definition(definition)

        entries: Dict[str, TaxonomyEntry] = {}
        for entry in definition.entries:
            entry_id = entry.id.strip()
            if not entry_id:
                raise TaxonomyLoadError("Taxonomy entry with empty identifier")
            if entry_id in entries:
                raise TaxonomyLoadError(f"Duplicate taxonomy identifier: {entry_id!r}")
            if not entry.name.strip():
                raise TaxonomyLoadError(f"Taxonomy entry {entry_id!r} has an empty canonical name")
            if entry.weight < 0:
                raise TaxonomyLoadError(f"Taxonomy entry {entry_id!r} has a negative weight")
            entries[entry_id] = entry.model_copy(update={
                "id": entry_id,
                "name": entry.name.strip(),
                "parent": (entry.parent or "").strip() or None,
            })

        for entry in entries.values():
            if entry.parent is not None and entry.parent not in entries:
                raise TaxonomyLoadError(
                    f"Taxonomy entry {entry.id!r} references unknown parent {entry.parent!r}"
                )
        _check_acyclic(entries)

        store = cls(
            entries,
            version=definition.version,
            similarity_floor=similarity_floor,
            token_weight=token_weight,
        )
        ambiguous = [a for a, owners in store._alias_index.items() if len(owners) > 1]
        if ambiguous:
            logger.warning(
                "Taxonomy %s has %d ambiguous aliases: %s",
                store.version, len(ambiguous), ", ".join(sorted(ambiguous)[:10]),
            )
        logger.info("Loaded taxonomy %s with %d entries", store.version, len(store))
        return store

    # -- query helpers ------------------------------------------------------

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._entries

    def __getitem__(self, entry_id: str) -> TaxonomyEntry:
        return self._entries[entry_id]

    def get(self, entry_id: str) -> Optional[TaxonomyEntry]:
        return self._entries.get(entry_id)

    def entries(self) -> List[TaxonomyEntry]:
        """All entries in id order."""
        return list(self._entries.values())

    def children(self, entry_id: str) -> Tuple[str, ...]:
        return self._children.get(entry_id, ())

    def ancestors(self, entry_id: str) -> Tuple[str, ...]:
        """Parent chain of *entry_id*, nearest first."""
        chain: List[str] = []
        entry = self._entries.get(entry_id)
        while entry is not None and entry.parent is not None:
            chain.append(entry.parent)
            entry = self._entries.get(entry.parent)
        return tuple(chain)

    def descendants(self, entry_id: str) -> Tuple[str, ...]:
        """All entries below *entry_id*, breadth-first."""
        result: List[str] = []
        queue = list(self.children(entry_id))
        while queue:
            current = queue.pop(0)
            result.append(current)
            queue.extend(self.children(current))
        return tuple(result)

    # -- lookups ------------------------------------------------------------

    def lookup_exact(self, text: str) -> Union[TaxonomyEntry, AmbiguousAlias, None]:
        """Case/whitespace/punctuation-insensitive alias lookup.

        Returns the owning entry, an :class:`AmbiguousAlias` when several
        entries share the alias, or ``None``.
        """
        key = normalize_text(text)
        owners = self._alias_index.get(key)
        if not owners:
            return None
        if len(owners) == 1:
            return self._entries[owners[0]]
        return AmbiguousAlias(key, tuple(self._entries[o] for o in owners))

    def lookup_fuzzy(
        self,
        text: str,
        max_candidates: int = 5,
        min_similarity: Optional[float] = None,
    ) -> FuzzyMatches:
        """Entries ranked by composite similarity, restricted to a floor.

        Similarity of an entry is the best score over its aliases; ranking is
        by similarity descending, then entry id.
        """
        floor = self.similarity_floor if min_similarity is None else min_similarity
        return FuzzyMatches(self, normalize_text(text), max_candidates, floor)

    def similarity(self, a: str, b: str) -> float:
        """Composite similarity of two strings, in [0, 1]."""
        a, b = normalize_text(a), normalize_text(b)
        if not a or not b:
            return 0.0
        token = fuzz.token_set_ratio(a, b) / 100.0
        edit = Levenshtein.normalized_similarity(a, b)
        return round(self.token_weight * token + (1.0 - self.token_weight) * edit, 4)

    def _rank(
        self, query: str, max_candidates: int, min_similarity: float
    ) -> List[Tuple[TaxonomyEntry, float]]:
        if not query or not self._choices or max_candidates <= 0:
            return []

        token = process.cdist(
            [query], self._choices, scorer=fuzz.token_set_ratio, dtype=np.float64
        )[0] / 100.0
        edit = process.cdist(
            [query], self._choices, scorer=Levenshtein.normalized_similarity, dtype=np.float64
        )[0]
        composite = np.round(self.token_weight * token + (1.0 - self.token_weight) * edit, 4)

        best = np.zeros(len(self._entry_ids), dtype=np.float64)
        np.maximum.at(best, self._owner_idx, composite)

        # Primary key: similarity descending; secondary: entry id (array order).
        order = np.lexsort((np.arange(len(best)), -best))
        ranked: List[Tuple[TaxonomyEntry, float]] = []
        for i in order:
            score = float(best[i])
            if score < min_similarity:
                break
            ranked.append((self._entries[self._entry_ids[i]], score))
            if len(ranked) >= max_candidates:
                break
        return ranked


# ---------------------------------------------------------------------------
# Definition loading
# ---------------------------------------------------------------------------


def load_definition(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a taxonomy definition document from YAML or JSON."""
    filepath = Path(path)
    if not filepath.exists():
        raise TaxonomyLoadError(f"Taxonomy file not found: {filepath}")

    suffix = filepath.suffix.lower()
    try:
        with open(filepath, "r", encoding="utf-8") as fh:
            if suffix in (".yaml", ".yml"):
                data = yaml.safe_load(fh)
            elif suffix == ".json":
                data = json.load(fh)
            else:
                raise TaxonomyLoadError(
                    f"Unsupported taxonomy file extension {suffix!r}. Expected .yaml, .yml or .json."
                )
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise TaxonomyLoadError(f"Could not parse taxonomy file {filepath}: {e}") from e

    if not isinstance(data, dict):
        raise TaxonomyLoadError(f"Taxonomy file {filepath} must contain a mapping at the top level")
    return data


def load_store(
    path: Union[str, Path],
    *,
    similarity_floor: float = DEFAULT_SIMILARITY_FLOOR,
    token_weight: float = DEFAULT_TOKEN_WEIGHT,
) -> TaxonomyStore:
    """Read and validate a taxonomy file in one step."""
    return TaxonomyStore.load(
        load_definition(path),
        similarity_floor=similarity_floor,
        token_weight=token_weight,
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _parse_definition(data: Mapping[str, Any]) -> TaxonomyDefinition:
    """Accept ``skills`` as an id-keyed mapping or as a list of records."""
    if not isinstance(data, Mapping):
        raise TaxonomyLoadError(f"Taxonomy definition must be a mapping, got {type(data).__name__}")

    raw_skills = data.get("skills", data.get("entries", []))
    records: List[Dict[str, Any]] = []
    if isinstance(raw_skills, Mapping):
        for skill_id, body in raw_skills.items():
            if body is None:
                body = {}
            if not isinstance(body, Mapping):
                raise TaxonomyLoadError(f"Taxonomy entry {skill_id!r} must be a mapping")
            records.append({**body, "id": str(skill_id)})
    elif isinstance(raw_skills, list):
        records = [dict(r) if isinstance(r, Mapping) else r for r in raw_skills]
    else:
        raise TaxonomyLoadError("Taxonomy 'skills' must be a mapping or a list")

    for rec in records:
        if isinstance(rec, dict) and isinstance(rec.get("aliases"), str):
            rec["aliases"] = [a.strip() for a in rec["aliases"].split(",") if a.strip()]

    try:
        return TaxonomyDefinition(
            version=str(data.get("version", "unversioned")),
            entries=records,
        )
    except pydantic.ValidationError as e:
        raise TaxonomyLoadError(f"Malformed taxonomy definition: {e}") from e


def _entry_aliases(entry: TaxonomyEntry) -> List[str]:
    """Normalized aliases of an entry, canonical name first, duplicates dropped."""
    seen: List[str] = []
    for raw in (entry.name, *entry.aliases):
        alias = normalize_text(raw)
        if alias and alias not in seen:
            seen.append(alias)
    return seen


def _check_acyclic(entries: Mapping[str, TaxonomyEntry]) -> None:
    """Fail on any cyclic parent chain (self-parenting included)."""
    resolved: set = set()
    for start in entries:
        path: List[str] = []
        on_path: set = set()
        current: Optional[str] = start
        while current is not None and current not in resolved:
            if current in on_path:
                cycle = path[path.index(current):] + [current]
                raise TaxonomyLoadError(f"Cyclic parent chain: {' -> '.join(cycle)}")
            path.append(current)
            on_path.add(current)
            current = entries[current].parent
        resolved.update(path)
