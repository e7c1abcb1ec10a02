"""Model-backed scorer: LightGBM regressor over the rule-based factors.

Produces the same MatchResult shape as the rule-based scorer; only the
overall score comes from the model.  Match lists, factors and flags are the
rule-based ones, so a recruiter still sees exactly which required skills are
missing.

Falls back to the rule-based scorer if the model artifact or library is not
available.
"""

import logging
from datetime import datetime
from pathlib import Path

import numpy as np

from config import settings
from models.schemas.job_requirement import JobRequirement
from models.schemas.match_result import MatchResult
from models.schemas.profile import CandidateProfile
from models.schemas.scoring_config import ScoringConfig
from services.pipeline.base import BaseScorer
from services.pipeline.rule_scorer import RuleBasedScorer
from services.taxonomy_store import TaxonomyStore

logger = logging.getLogger(__name__)

FEATURE_NAMES = [
    "skill_coverage",
    "experience_adequacy",
    "recency",
    "required_coverage",
    "desired_coverage",
    "n_missing_required",
    "n_missing_desired",
    "total_experience_years",
]


class ModelScorer(BaseScorer):
    scorer_name = "model"

    def __init__(self, store: TaxonomyStore | None = None, model_dir: str | Path | None = None) -> None:
        super().__init__(store)
        self._model_dir = Path(model_dir or settings.scorer_model_dir)
        self._model = None
        self._use_fallback = False
        self._rules = RuleBasedScorer(store)

    def load(self) -> None:
        model_path = self._model_dir / "model.txt"
        if model_path.exists():
            try:
                import lightgbm as lgb
                self._model = lgb.Booster(model_file=str(model_path))
                logger.info("Scorer model loaded from %s", model_path)
                return
            except Exception as e:
                logger.warning("Failed to load scorer model: %s", e)

        logger.info("Scorer model not found, using rule-based scoring")
        self._use_fallback = True

    def _score(
        self,
        profile: CandidateProfile,
        requirement: JobRequirement,
        config: ScoringConfig,
        analysis_time: datetime,
        store: TaxonomyStore,
    ) -> MatchResult:
        base = self._rules._score(profile, requirement, config, analysis_time, store)
        if self._use_fallback:
            return base

        features = extract_features(base, requirement)
        feature_vec = np.array([[features[name] for name in FEATURE_NAMES]])
        prediction = float(np.ravel(self._model.predict(feature_vec))[0])
        overall = round(max(0.0, min(100.0, prediction)), 1)
        return base.model_copy(update={"overall_score": overall, "scorer": self.scorer_name})


def extract_features(result: MatchResult, requirement: JobRequirement) -> dict[str, float]:
    """Feature vector derived from a rule-based result."""
    n_required = len(requirement.required)
    required_credit = sum(m.credit for m in result.matched_required)
    desired_total = sum(d.weight for d in requirement.desired)
    desired_credit = sum(m.weight * m.credit for m in result.matched_desired)
    return {
        "skill_coverage": result.factors.skill_coverage,
        "experience_adequacy": result.factors.experience_adequacy,
        "recency": result.factors.recency,
        "required_coverage": required_credit / n_required if n_required else 1.0,
        "desired_coverage": desired_credit / desired_total if desired_total else 1.0,
        "n_missing_required": float(len(result.missing_required)),
        "n_missing_desired": float(len(result.missing_desired)),
        "total_experience_years": result.total_experience_years,
    }
