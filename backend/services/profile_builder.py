"""Assemble a normalized CandidateProfile from raw extraction output.

Skills are normalized in order and deduplicated by taxonomy id; experience
periods are parsed but "present" stays symbolic so the same profile can be
scored at different analysis times.
"""

import hashlib
import json
import logging
import re
from collections.abc import Sequence

from models.schemas.profile import (
    CandidateProfile,
    EducationEntry,
    ExperienceEntry,
    NormalizedSkill,
)
from models.schemas.raw_term import RawEducation, RawExperience, RawTerm, SourceLocation
from models.schemas.scoring_config import NormalizerConfig
from services.errors import ValidationError
from services.normalizer import normalize
from services.periods import PeriodParseError, is_present, parse_period
from services.taxonomy_registry import get_store
from services.taxonomy_store import TaxonomyStore

logger = logging.getLogger(__name__)

SKILL_KIND = "skill"

# ---------------------------------------------------------------------------
# Education level detection
# ---------------------------------------------------------------------------

# Highest level first.  Each spelling must stand alone, so "ma" inside
# "Diploma" or "ms" inside "Systems" does not count.
EDUCATION_LEVELS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("phd", (r"ph\.?\s?d", r"d\.?\s?phil", r"doctor(?:ate|al)?")),
    ("masters", (
        r"m\.?s\.?", r"m\.?sc", r"m\.?\s?eng", r"m\.?e\.?", r"m\.?tech", r"mba",
        r"m\.?a\.?", r"master(?:'?s)?",
    )),
    ("bachelors", (
        r"b\.?s\.?", r"b\.?sc", r"b\.?\s?eng", r"b\.?e\.?", r"b\.?tech", r"b\.?a\.?",
        r"bachelor(?:'?s)?",
    )),
    ("associate", (r"a\.s\.?", r"a\.a\.?", r"associate(?:'?s)?")),
)

_LEVEL_MATCHERS = [
    (level, re.compile(rf"(?<!\w)(?:{'|'.join(spellings)})(?!\w)", re.IGNORECASE))
    for level, spellings in EDUCATION_LEVELS
]
LEVEL_RANK = {level: len(EDUCATION_LEVELS) - i for i, (level, _) in enumerate(EDUCATION_LEVELS)}


def education_level(degree: str) -> str:
    """Highest degree level named in *degree*, or '' if none is recognized."""
    return next((level for level, matcher in _LEVEL_MATCHERS if matcher.search(degree or "")), "")


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


def build_profile(
    raw_terms: Sequence[RawTerm],
    raw_experience: Sequence[RawExperience] = (),
    raw_education: Sequence[RawEducation] = (),
    *,
    store: TaxonomyStore | None = None,
    normalizer_config: NormalizerConfig | None = None,
    profile_id: str | None = None,
) -> CandidateProfile:
    """Build an immutable profile. Uses the current taxonomy snapshot unless one is given."""
    store = store or get_store()

    normalized: list[NormalizedSkill] = []
    for term in raw_terms:
        if term.kind != SKILL_KIND:
            continue
        try:
            normalized.append(normalize(term, store, normalizer_config))
        except ValidationError:
            logger.warning("Skipping empty skill term at %s", term.source.section or "unknown source")

    experience = [
        entry
        for i, raw in enumerate(raw_experience)
        if (entry := _build_experience(i, raw, store, normalizer_config)) is not None
    ]
    education = [
        EducationEntry(
            institution=raw.institution,
            degree=raw.degree,
            field=raw.field,
            graduation_year=raw.graduation_year,
            level=education_level(raw.degree),
        )
        for raw in raw_education
    ]
    levels = {e.level for e in education if e.level}
    highest = max(levels, key=LEVEL_RANK.__getitem__, default="")

    return CandidateProfile(
        profile_id=profile_id or _profile_hash(raw_terms, raw_experience, raw_education),
        skills=tuple(dedupe_skills(normalized)),
        experience=tuple(experience),
        education=tuple(education),
        highest_education=highest,
        taxonomy_version=store.version,
    )


def dedupe_skills(skills: Sequence[NormalizedSkill]) -> list[NormalizedSkill]:
    """Collapse skills resolving to the same entry.

    The survivor sits at the first occurrence's position, carries the
    highest-confidence occurrence (earliest on ties) and the sources of all
    occurrences.  Unmatched skills pass through untouched.
    """
    groups: dict[str, list[NormalizedSkill]] = {}
    order: list[str | NormalizedSkill] = []
    for skill in skills:
        if skill.entry_id is None:
            order.append(skill)
            continue
        if skill.entry_id not in groups:
            groups[skill.entry_id] = []
            order.append(skill.entry_id)
        groups[skill.entry_id].append(skill)

    result: list[NormalizedSkill] = []
    for item in order:
        if isinstance(item, NormalizedSkill):
            result.append(item)
            continue
        group = groups[item]
        best = group[0]
        for candidate in group[1:]:
            if candidate.confidence > best.confidence:
                best = candidate
        sources: list[SourceLocation] = []
        for s in group:
            for src in s.sources:
                if src not in sources:
                    sources.append(src)
        result.append(best.model_copy(update={"sources": tuple(sources)}))
    return result


def _build_experience(
    index: int,
    raw: RawExperience,
    store: TaxonomyStore,
    normalizer_config: NormalizerConfig | None,
) -> ExperienceEntry | None:
    try:
        start = parse_period(raw.start)
        end = None if is_present(raw.end) else parse_period(raw.end)
    except PeriodParseError as e:
        logger.warning("Skipping experience entry %d (%s): %s", index, raw.title or raw.company, e)
        return None
    if end is not None and end.index < start.index:
        logger.warning("Skipping experience entry %d (%s): ends before it starts", index, raw.title or raw.company)
        return None

    skill_ids: list[str] = []
    section = f"experience[{index}]"
    for text in raw.skills:
        if not text or not text.strip():
            continue
        result = normalize(RawTerm(text=text, source=SourceLocation(section=section)), store, normalizer_config)
        if result.entry_id is not None and result.entry_id not in skill_ids:
            skill_ids.append(result.entry_id)

    return ExperienceEntry(
        title=raw.title,
        company=raw.company,
        start=start,
        end=end,
        skill_ids=tuple(skill_ids),
        description=raw.description,
    )


def _profile_hash(
    raw_terms: Sequence[RawTerm],
    raw_experience: Sequence[RawExperience],
    raw_education: Sequence[RawEducation],
) -> str:
    """Deterministic id derived from the raw inputs."""
    payload = json.dumps(
        {
            "terms": [t.model_dump(mode="json") for t in raw_terms],
            "experience": [e.model_dump(mode="json") for e in raw_experience],
            "education": [e.model_dump(mode="json") for e in raw_education],
        },
        sort_keys=True,
    )
    return "profile-" + hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]
