"""Tunable thresholds and weights for normalization and scoring."""

import math

from pydantic import BaseModel, ConfigDict, Field, model_validator


class NormalizerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    fuzzy_threshold: float = Field(default=0.82, ge=0.0, le=1.0)
    fuzzy_margin: float = Field(default=0.05, ge=0.0, le=1.0)
    max_candidates: int = Field(default=5, ge=2)
    disambiguated_confidence: float = Field(default=0.9, ge=0.0, le=1.0)


class ScoringConfig(BaseModel):
    """Factor weights and policy knobs for the rule-based scorer.

    The three factor weights must sum to 1.
    """
    model_config = ConfigDict(frozen=True)

    coverage_weight: float = Field(default=0.6, ge=0.0, le=1.0)
    experience_weight: float = Field(default=0.3, ge=0.0, le=1.0)
    recency_weight: float = Field(default=0.1, ge=0.0, le=1.0)

    desired_share: float = Field(default=0.25, ge=0.0, le=1.0)
    implied_credit: float = Field(default=0.5, ge=0.0, le=1.0)
    cap_on_missing_required: bool = True

    recency_window_years: float = Field(default=5.0, ge=0.0)
    recency_half_life_years: float = Field(default=2.0, gt=0.0)

    @model_validator(mode="after")
    def _weights_sum_to_one(self) -> "ScoringConfig":
        total = self.coverage_weight + self.experience_weight + self.recency_weight
        if not math.isclose(total, 1.0, abs_tol=1e-6):
            raise ValueError(f"factor weights must sum to 1, got {total:.4f}")
        return self
