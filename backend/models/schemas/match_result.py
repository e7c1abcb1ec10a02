"""Scorer output: overall fit score with an auditable per-factor breakdown."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict


class SkillMatch(BaseModel):
    """How one requirement skill was satisfied (or not) by the profile."""
    model_config = ConfigDict(frozen=True)

    skill_id: str
    name: str = ""
    required: bool = False
    weight: float = 1.0
    matched: bool = False
    match_type: Literal["direct", "implied", "none"] = "none"
    via: str | None = None  # candidate skill id behind an implied match
    confidence: float = 0.0  # normalization confidence of the evidencing skill
    credit: float = 0.0  # 1.0 direct, implied_credit for implied, 0.0 missing
    recency: float = 0.0  # recency multiplier applied to the credit
    contribution: float = 0.0  # share of the required or desired credit pool


class FactorScores(BaseModel):
    """Per-factor values, each in [0, 1]."""
    model_config = ConfigDict(frozen=True)

    skill_coverage: float = 0.0
    experience_adequacy: float = 0.0
    recency: float = 0.0


class SkillExperience(BaseModel):
    model_config = ConfigDict(frozen=True)

    skill_id: str
    years: float = 0.0
    min_years: float = 0.0
    adequacy: float = 0.0


class MatchResult(BaseModel):
    """Deterministic result of scoring one profile against one requirement."""
    model_config = ConfigDict(frozen=True)

    overall_score: float = 0.0  # 0-100
    factors: FactorScores = FactorScores()
    weights: FactorScores = FactorScores()
    matched_required: tuple[SkillMatch, ...] = ()
    missing_required: tuple[SkillMatch, ...] = ()
    matched_desired: tuple[SkillMatch, ...] = ()
    missing_desired: tuple[SkillMatch, ...] = ()
    hard_missing_required: bool = False
    capped: bool = False  # overall was limited by required-skill coverage
    total_experience_years: float = 0.0
    skill_experience: tuple[SkillExperience, ...] = ()
    scorer: str = "rules"
    taxonomy_version: str = ""
    analysis_time: datetime | None = None
    profile_id: str = ""
    requirement_id: str = ""
