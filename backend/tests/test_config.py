"""Tests for settings and the derived normalizer/scoring configs."""

from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from config import DEFAULT_TAXONOMY_PATH, Settings
from models.schemas.scoring_config import NormalizerConfig, ScoringConfig


def test_defaults():
    s = Settings(_env_file=None)
    assert Path(s.taxonomy_path) == DEFAULT_TAXONOMY_PATH
    assert s.scorer_mode == "rules"

    scoring = s.scoring_config()
    assert (scoring.coverage_weight, scoring.experience_weight, scoring.recency_weight) == (0.6, 0.3, 0.1)
    assert scoring.cap_on_missing_required

    normalizer = s.normalizer_config()
    assert normalizer.fuzzy_threshold == 0.82
    assert normalizer.fuzzy_margin == 0.05


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("FUZZY_THRESHOLD", "0.9")
    monkeypatch.setenv("COVERAGE_WEIGHT", "0.5")
    monkeypatch.setenv("EXPERIENCE_WEIGHT", "0.4")
    monkeypatch.setenv("SCORER_MODE", "model")
    s = Settings(_env_file=None)
    assert s.normalizer_config().fuzzy_threshold == 0.9
    assert s.scoring_config().coverage_weight == 0.5
    assert s.scorer_mode == "model"


def test_weights_must_sum_to_one():
    with pytest.raises(PydanticValidationError, match="sum to 1"):
        ScoringConfig(coverage_weight=0.5, experience_weight=0.3, recency_weight=0.1)


def test_half_life_positive():
    with pytest.raises(PydanticValidationError):
        ScoringConfig(recency_half_life_years=0)


def test_normalizer_needs_a_runner_up_candidate():
    with pytest.raises(PydanticValidationError):
        NormalizerConfig(max_candidates=1)


def test_candidate_limit_from_environment(monkeypatch):
    monkeypatch.setenv("FUZZY_MAX_CANDIDATES", "8")
    assert Settings(_env_file=None).normalizer_config().max_candidates == 8


def test_only_consumed_settings_are_declared():
    assert "debug" not in Settings.model_fields
