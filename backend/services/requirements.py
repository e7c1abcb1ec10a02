"""Build and validate JobRequirement records.

Requirements arrive either as a structured payload (ids and weights) or as
free-text skill names from an upstream job-description extractor.  Both
paths end in :func:`validate_requirement`, which every scorer also runs at
call entry.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import pydantic

from models.schemas.job_requirement import DesiredSkill, JobRequirement, SkillExperienceRequirement
from models.schemas.raw_term import RawTerm, SourceLocation
from models.schemas.scoring_config import NormalizerConfig
from services.errors import ValidationError
from services.normalizer import normalize
from services.taxonomy_registry import get_store
from services.taxonomy_store import TaxonomyStore

logger = logging.getLogger(__name__)


def validate_requirement(requirement: JobRequirement, store: TaxonomyStore) -> None:
    """Reject duplicates and unknown taxonomy ids before any scoring work."""
    required = list(requirement.required)
    desired = [d.skill_id for d in requirement.desired]

    dup_required = _duplicates(required)
    if dup_required:
        raise ValidationError(f"Duplicate required skills: {', '.join(dup_required)}")
    dup_desired = _duplicates(desired)
    if dup_desired:
        raise ValidationError(f"Duplicate desired skills: {', '.join(dup_desired)}")
    both = [s for s in required if s in set(desired)]
    if both:
        raise ValidationError(f"Skills listed as both required and desired: {', '.join(both)}")
    dup_minimums = _duplicates([m.skill_id for m in requirement.min_skill_years])
    if dup_minimums:
        raise ValidationError(f"Duplicate skill experience minimums: {', '.join(dup_minimums)}")

    referenced = required + desired + [m.skill_id for m in requirement.min_skill_years]
    unknown = [s for s in dict.fromkeys(referenced) if s not in store]
    if unknown:
        raise ValidationError(
            f"Unknown taxonomy ids in requirement (taxonomy {store.version}): {', '.join(unknown)}"
        )


def parse_requirement(payload: Mapping[str, Any], store: TaxonomyStore | None = None) -> JobRequirement:
    """Parse a structured requirement payload.

    ``desired`` may be ``[{"docker": 0.5}]``, ``[{"skill_id": "docker",
    "weight": 0.5}]``, ``["docker"]`` or ``{"docker": 0.5}``;
    ``min_skill_years`` may be ``{"java": 2}`` or a list of records.
    """
    if not isinstance(payload, Mapping):
        raise ValidationError(f"Requirement payload must be a mapping, got {type(payload).__name__}")
    store = store or get_store()
    required = payload.get("required") or ()
    if isinstance(required, str):
        required = (required,)

    try:
        requirement = JobRequirement(
            requirement_id=str(payload.get("requirement_id", payload.get("id", "")) or ""),
            title=str(payload.get("title", "") or ""),
            required=tuple(required),
            desired=tuple(_desired_records(payload.get("desired") or ())),
            min_total_years=payload.get("min_total_years"),
            min_skill_years=tuple(_minimum_records(payload.get("min_skill_years") or ())),
        )
    except (pydantic.ValidationError, TypeError, AttributeError) as e:
        raise ValidationError(f"Malformed requirement payload: {e}") from e

    validate_requirement(requirement, store)
    return requirement


def requirement_from_terms(
    required_terms: Sequence[str],
    desired_terms: Mapping[str, float] | Sequence[str] = (),
    *,
    store: TaxonomyStore | None = None,
    normalizer_config: NormalizerConfig | None = None,
    requirement_id: str = "",
    title: str = "",
    min_total_years: float | None = None,
) -> JobRequirement:
    """Resolve free-text skill names to taxonomy ids.

    Terms that stay unmatched are a configuration problem and raise
    ValidationError, as do terms that resolve to the same skill twice or to a
    skill listed as both required and desired.
    """
    store = store or get_store()
    if not isinstance(desired_terms, Mapping):
        desired_terms = {t: 1.0 for t in desired_terms}

    unmatched: list[str] = []

    def resolve(text: str, section: str) -> str | None:
        try:
            result = normalize(RawTerm(text=text, source=SourceLocation(section=section)), store, normalizer_config)
        except ValidationError:
            unmatched.append(repr(text))
            return None
        if result.entry_id is None:
            unmatched.append(text)
        return result.entry_id

    required: list[str] = []
    for text in required_terms:
        sid = resolve(text, "required")
        if sid is not None:
            required.append(sid)

    desired: list[DesiredSkill] = []
    for text, weight in desired_terms.items():
        sid = resolve(text, "desired")
        if sid is not None:
            desired.append(DesiredSkill(skill_id=sid, weight=weight))

    if unmatched:
        raise ValidationError(f"Requirement terms not found in taxonomy: {', '.join(unmatched)}")

    requirement = JobRequirement(
        requirement_id=requirement_id,
        title=title,
        required=tuple(required),
        desired=tuple(desired),
        min_total_years=min_total_years,
    )
    validate_requirement(requirement, store)
    return requirement


def _desired_records(raw: Any) -> list[DesiredSkill]:
    if isinstance(raw, Mapping):
        return [DesiredSkill(skill_id=k, weight=v) for k, v in raw.items()]
    records: list[DesiredSkill] = []
    for item in raw:
        if isinstance(item, str):
            records.append(DesiredSkill(skill_id=item))
        elif isinstance(item, Mapping) and "skill_id" in item:
            records.append(DesiredSkill(**item))
        elif isinstance(item, Mapping) and len(item) == 1:
            (skill_id, weight), = item.items()
            records.append(DesiredSkill(skill_id=skill_id, weight=weight))
        else:
            raise ValidationError(f"Unrecognized desired skill entry: {item!r}")
    return records


def _minimum_records(raw: Any) -> list[SkillExperienceRequirement]:
    if isinstance(raw, Mapping):
        return [SkillExperienceRequirement(skill_id=k, min_years=v) for k, v in raw.items()]
    return [SkillExperienceRequirement(**item) for item in raw]


def _duplicates(items: Sequence[str]) -> list[str]:
    seen: set[str] = set()
    dups: list[str] = []
    for item in items:
        if item in seen and item not in dups:
            dups.append(item)
        seen.add(item)
    return dups
