"""Pipeline orchestrator: wires profile building and scoring together.

Flow:
    raw terms + raw experience/education
      └─ build_profile()                  → CandidateProfile
              ↓
         scorer.score(profile, requirement, config, analysis_time)  → MatchResult

Batch scoring treats every (profile, requirement) pair independently; the
results carry both ids so they can be attributed back to their inputs.
"""

import asyncio
import logging
from collections.abc import Iterable, Sequence
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict

from config import settings
from models.schemas.job_requirement import JobRequirement
from models.schemas.match_result import MatchResult
from models.schemas.profile import CandidateProfile
from models.schemas.raw_term import RawEducation, RawExperience, RawTerm
from models.schemas.scoring_config import ScoringConfig
from services.pipeline.base import BaseScorer
from services.pipeline.scorer_registry import create_scorer, get_scorer
from services.profile_builder import build_profile
from services.taxonomy_registry import get_store
from services.taxonomy_store import TaxonomyStore

logger = logging.getLogger(__name__)


class ScoredPair(BaseModel):
    """A batch result attributable to its originating (profile, requirement) pair."""
    model_config = ConfigDict(frozen=True)

    profile_id: str
    requirement_id: str
    result: MatchResult


def score(
    profile: CandidateProfile,
    requirement: JobRequirement,
    analysis_time: date | datetime,
    config: ScoringConfig | None = None,
    scorer: BaseScorer | str | None = None,
) -> MatchResult:
    """Score with the configured scorer (settings.scorer_mode) unless one is given."""
    if not isinstance(scorer, BaseScorer):
        scorer = get_scorer(scorer)
    return scorer.score(profile, requirement, config or settings.scoring_config(), analysis_time)


def analyze(
    raw_terms: Sequence[RawTerm],
    raw_experience: Sequence[RawExperience],
    raw_education: Sequence[RawEducation],
    requirement: JobRequirement,
    analysis_time: date | datetime,
    *,
    store: TaxonomyStore | None = None,
    config: ScoringConfig | None = None,
    scorer: BaseScorer | str | None = None,
) -> tuple[CandidateProfile, MatchResult]:
    """Build a profile from raw extraction output and score it in one call.

    Both steps use the same taxonomy snapshot.
    """
    store = store or get_store()
    profile = build_profile(
        raw_terms,
        raw_experience,
        raw_education,
        store=store,
        normalizer_config=settings.normalizer_config(),
    )
    if not isinstance(scorer, BaseScorer):
        scorer = _pinned(scorer, store)
    return profile, score(profile, requirement, analysis_time, config, scorer)


async def score_batch(
    pairs: Iterable[tuple[CandidateProfile, JobRequirement]],
    analysis_time: date | datetime,
    *,
    config: ScoringConfig | None = None,
    scorer: BaseScorer | str | None = None,
) -> list[ScoredPair]:
    """Score independent pairs concurrently in worker threads.

    Results come back in input order. A validation error in any pair
    propagates to the caller.
    """
    config = config or settings.scoring_config()
    if not isinstance(scorer, BaseScorer):
        scorer = _pinned(scorer, get_store())
    pairs = list(pairs)
    logger.info("Scoring batch of %d pairs with %s scorer", len(pairs), scorer.scorer_name)

    results = await asyncio.gather(*(
        asyncio.to_thread(scorer.score, profile, requirement, config, analysis_time)
        for profile, requirement in pairs
    ))
    return [
        ScoredPair(profile_id=profile.profile_id, requirement_id=requirement.requirement_id, result=result)
        for (profile, requirement), result in zip(pairs, results)
    ]


def rank_candidates(
    profiles: Sequence[CandidateProfile],
    requirement: JobRequirement,
    analysis_time: date | datetime,
    *,
    config: ScoringConfig | None = None,
    scorer: BaseScorer | str | None = None,
) -> list[MatchResult]:
    """Score many profiles against one requirement, best first (ties by profile id)."""
    config = config or settings.scoring_config()
    if not isinstance(scorer, BaseScorer):
        scorer = _pinned(scorer, get_store())
    results = [scorer.score(p, requirement, config, analysis_time) for p in profiles]
    return sorted(results, key=lambda r: (-r.overall_score, r.profile_id))


def _pinned(name: str | None, store: TaxonomyStore) -> BaseScorer:
    """A scorer of the requested kind bound to one snapshot for the whole call."""
    scorer = create_scorer(name or settings.scorer_mode, store)
    scorer.ensure_loaded()
    return scorer
