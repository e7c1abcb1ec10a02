"""Rule-based scorer: deterministic, auditable multi-factor fit score.

Factors, each in [0, 1] before weighting:
    skill_coverage       required credit, scaled by weighted desired credit; 1.0 with no required skills
    experience_adequacy  total and skill-specific years vs. minimums, saturating at 1
    recency              credited skills decayed when only stale experience mentions them

The overall score is capped by required-skill coverage, so a candidate
missing a mandatory skill cannot outrank the share of required skills they
hold.  Missing required skills are also flagged explicitly.
"""

import logging
from datetime import datetime

import numpy as np

from models.schemas.job_requirement import JobRequirement
from models.schemas.match_result import FactorScores, MatchResult, SkillExperience, SkillMatch
from models.schemas.profile import CandidateProfile, ExperienceEntry, NormalizedSkill
from models.schemas.scoring_config import ScoringConfig
from services.periods import union_months, years_since_end
from services.pipeline.base import BaseScorer
from services.taxonomy_store import TaxonomyStore

logger = logging.getLogger(__name__)


class RuleBasedScorer(BaseScorer):
    scorer_name = "rules"

    def load(self) -> None:
        # Nothing to load; the rules are pure code.
        return None

    def _score(
        self,
        profile: CandidateProfile,
        requirement: JobRequirement,
        config: ScoringConfig,
        analysis_time: datetime,
        store: TaxonomyStore,
    ) -> MatchResult:
        have: dict[str, NormalizedSkill] = {}
        for skill in profile.skills:
            if skill.entry_id is not None and skill.entry_id in store:
                have.setdefault(skill.entry_id, skill)

        # ancestor id -> held skills implying it, in profile order
        implied_by: dict[str, list[str]] = {}
        for sid in have:
            for ancestor in store.ancestors(sid):
                implied_by.setdefault(ancestor, []).append(sid)

        def evaluate(skill_id: str, required: bool, weight: float) -> SkillMatch:
            descendants_held = implied_by.get(skill_id, [])
            if skill_id in have:
                match_type, via, credit = "direct", None, 1.0
                confidence = have[skill_id].confidence
                evidence = [skill_id, *descendants_held]
            elif descendants_held and config.implied_credit > 0:
                match_type, via, credit = "implied", descendants_held[0], config.implied_credit
                confidence = have[via].confidence
                evidence = descendants_held
            else:
                return SkillMatch(
                    skill_id=skill_id,
                    name=store[skill_id].name,
                    required=required,
                    weight=weight,
                )
            recency = max(
                _recency_multiplier(sid, profile.experience, analysis_time, config) for sid in evidence
            )
            return SkillMatch(
                skill_id=skill_id,
                name=store[skill_id].name,
                required=required,
                weight=weight,
                matched=True,
                match_type=match_type,
                via=via,
                confidence=confidence,
                credit=credit,
                recency=recency,
            )

        required_matches = [evaluate(sid, True, 1.0) for sid in requirement.required]
        desired_matches = [evaluate(d.skill_id, False, d.weight) for d in requirement.desired]

        # --- skill coverage ---
        if required_matches:
            req_credit = sum(m.credit for m in required_matches) / len(required_matches)
            required_matches = [
                m.model_copy(update={"contribution": round(m.credit / len(required_matches), 4)})
                for m in required_matches
            ]
        else:
            req_credit = 1.0

        coverage = req_credit
        if desired_matches:
            desired_total = sum(m.weight for m in desired_matches)
            desired_credit = sum(m.weight * m.credit for m in desired_matches) / desired_total
            desired_matches = [
                m.model_copy(update={"contribution": round(m.weight * m.credit / desired_total, 4)})
                for m in desired_matches
            ]
            if required_matches:
                coverage = req_credit * ((1.0 - config.desired_share) + config.desired_share * desired_credit)

        # --- experience adequacy ---
        total_years = union_months(profile.experience, analysis_time) / 12.0
        components: list[float] = []
        min_total = requirement.min_total_years or 0.0
        components.append(1.0 if min_total <= 0 else min(1.0, total_years / min_total))

        skill_experience: list[SkillExperience] = []
        for minimum in requirement.min_skill_years:
            ids = {minimum.skill_id, *store.descendants(minimum.skill_id)}
            entries = [e for e in profile.experience if ids.intersection(e.skill_ids)]
            years = union_months(entries, analysis_time) / 12.0
            adequacy = 1.0 if minimum.min_years <= 0 else min(1.0, years / minimum.min_years)
            components.append(adequacy)
            skill_experience.append(SkillExperience(
                skill_id=minimum.skill_id,
                years=round(years, 2),
                min_years=minimum.min_years,
                adequacy=round(adequacy, 4),
            ))
        experience = float(np.mean(components))

        # --- recency ---
        # With no required skills both coverage and recency are 1.0.
        all_matches = required_matches + desired_matches
        if required_matches:
            total_weight = sum(m.weight for m in all_matches)
            recency = sum(m.weight * m.credit * m.recency for m in all_matches) / total_weight
        else:
            recency = 1.0

        # --- overall ---
        weighted = 100.0 * (
            config.coverage_weight * coverage
            + config.experience_weight * experience
            + config.recency_weight * recency
        )
        cap = 100.0 * req_credit if config.cap_on_missing_required else 100.0
        capped = weighted > cap + 1e-9
        overall = round(max(0.0, min(100.0, weighted, cap)), 1)

        missing_required = [m for m in required_matches if not m.matched]
        if missing_required:
            logger.debug(
                "Profile %s misses required skills for %s: %s",
                profile.profile_id, requirement.requirement_id or "requirement",
                ", ".join(m.skill_id for m in missing_required),
            )

        return MatchResult(
            overall_score=overall,
            factors=FactorScores(
                skill_coverage=round(coverage, 4),
                experience_adequacy=round(experience, 4),
                recency=round(recency, 4),
            ),
            weights=FactorScores(
                skill_coverage=config.coverage_weight,
                experience_adequacy=config.experience_weight,
                recency=config.recency_weight,
            ),
            matched_required=tuple(m for m in required_matches if m.matched),
            missing_required=tuple(missing_required),
            matched_desired=tuple(m for m in desired_matches if m.matched),
            missing_desired=tuple(m for m in desired_matches if not m.matched),
            hard_missing_required=bool(missing_required),
            capped=capped,
            total_experience_years=round(total_years, 2),
            skill_experience=tuple(skill_experience),
            scorer=self.scorer_name,
            taxonomy_version=store.version,
            analysis_time=analysis_time,
            profile_id=profile.profile_id,
            requirement_id=requirement.requirement_id,
        )


def _recency_multiplier(
    skill_id: str,
    experience: tuple[ExperienceEntry, ...],
    analysis_time: datetime,
    config: ScoringConfig,
) -> float:
    """1.0 unless every experience entry mentioning the skill ended outside the window.

    Beyond the window the multiplier halves every ``recency_half_life_years``.
    """
    mentioning = [e for e in experience if skill_id in e.skill_ids]
    if not mentioning:
        return 1.0
    staleness = min(years_since_end(e, analysis_time) for e in mentioning)
    beyond = staleness - config.recency_window_years
    if beyond <= 0:
        return 1.0
    return round(0.5 ** (beyond / config.recency_half_life_years), 4)
