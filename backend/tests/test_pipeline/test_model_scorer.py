"""Tests for the model-backed scorer and its rule-based fallback."""

from datetime import datetime

import numpy as np
import pytest

from models.schemas.job_requirement import DesiredSkill, JobRequirement
from models.schemas.profile import CandidateProfile, NormalizedSkill
from models.schemas.scoring_config import ScoringConfig
from services.errors import ValidationError
from services.pipeline.model_scorer import FEATURE_NAMES, ModelScorer, extract_features
from services.pipeline.rule_scorer import RuleBasedScorer

ANALYSIS = datetime(2024, 6, 1)
CONFIG = ScoringConfig()
REQUIREMENT = JobRequirement(
    requirement_id="job-1",
    required=("java", "sql"),
    desired=(DesiredSkill(skill_id="docker", weight=0.5), DesiredSkill(skill_id="kubernetes")),
)
CANDIDATE = CandidateProfile(
    profile_id="cand-1",
    skills=tuple(
        NormalizedSkill(entry_id=s, name=s, method="exact-alias", confidence=1.0, raw_text=s)
        for s in ("java", "docker")
    ),
)


class FakeBooster:
    def __init__(self, value):
        self.value = value
        self.calls = []

    def predict(self, features):
        self.calls.append(features)
        return np.array([self.value])


class TestFallback:
    def test_missing_artifact_uses_rules(self, store, tmp_path):
        svc = ModelScorer(store, model_dir=tmp_path)
        result = svc.score(CANDIDATE, REQUIREMENT, CONFIG, ANALYSIS)
        expected = RuleBasedScorer(store).score(CANDIDATE, REQUIREMENT, CONFIG, ANALYSIS)
        assert svc.is_loaded
        assert svc._use_fallback
        assert result == expected

    def test_still_validates(self, store, tmp_path):
        svc = ModelScorer(store, model_dir=tmp_path)
        with pytest.raises(ValidationError):
            svc.score(CANDIDATE, JobRequirement(required=("cobol",)), CONFIG, ANALYSIS)


class TestModelScore:
    def setup_method(self):
        self.booster = FakeBooster(72.34)

    def _scorer(self, store, booster):
        svc = ModelScorer(store)
        svc._model = booster
        svc._loaded = True
        return svc

    def test_only_overall_score_changes(self, store):
        svc = self._scorer(store, self.booster)
        result = svc.score(CANDIDATE, REQUIREMENT, CONFIG, ANALYSIS)
        rules = RuleBasedScorer(store).score(CANDIDATE, REQUIREMENT, CONFIG, ANALYSIS)

        assert result.overall_score == pytest.approx(72.3)
        assert result.scorer == "model"
        assert result.factors == rules.factors
        assert result.missing_required == rules.missing_required
        assert result.hard_missing_required

        (features,) = self.booster.calls
        assert features.shape == (1, len(FEATURE_NAMES))

    def test_prediction_clamped(self, store):
        svc = self._scorer(store, FakeBooster(130.0))
        assert svc.score(CANDIDATE, REQUIREMENT, CONFIG, ANALYSIS).overall_score == 100.0


class TestFeatures:
    def test_feature_values(self, store):
        rules = RuleBasedScorer(store).score(CANDIDATE, REQUIREMENT, CONFIG, ANALYSIS)
        features = extract_features(rules, REQUIREMENT)

        assert list(features) == FEATURE_NAMES
        assert features["required_coverage"] == pytest.approx(0.5)
        assert features["desired_coverage"] == pytest.approx(0.5 / 1.5)
        assert features["n_missing_required"] == 1.0
        assert features["n_missing_desired"] == 1.0

    def test_empty_requirement(self, store):
        rules = RuleBasedScorer(store).score(CANDIDATE, JobRequirement(), CONFIG, ANALYSIS)
        features = extract_features(rules, JobRequirement())
        assert features["required_coverage"] == 1.0
        assert features["desired_coverage"] == 1.0
