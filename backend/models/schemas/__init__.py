"""Pydantic contracts shared by the taxonomy, normalizer, profile builder and scorers."""

from models.schemas.job_requirement import DesiredSkill, JobRequirement, SkillExperienceRequirement
from models.schemas.match_result import FactorScores, MatchResult, SkillExperience, SkillMatch
from models.schemas.profile import (
    CandidateProfile,
    EducationEntry,
    ExperienceEntry,
    NormalizedSkill,
    YearMonth,
)
from models.schemas.raw_term import RawEducation, RawExperience, RawTerm, SourceLocation
from models.schemas.scoring_config import NormalizerConfig, ScoringConfig
from models.schemas.taxonomy import TaxonomyDefinition, TaxonomyEntry

__all__ = [
    "CandidateProfile",
    "DesiredSkill",
    "EducationEntry",
    "ExperienceEntry",
    "FactorScores",
    "JobRequirement",
    "MatchResult",
    "NormalizedSkill",
    "NormalizerConfig",
    "RawEducation",
    "RawExperience",
    "RawTerm",
    "ScoringConfig",
    "SkillExperience",
    "SkillExperienceRequirement",
    "SkillMatch",
    "SourceLocation",
    "TaxonomyDefinition",
    "TaxonomyEntry",
    "YearMonth",
]
