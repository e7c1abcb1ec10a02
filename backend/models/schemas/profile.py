"""Normalized candidate profile: canonical skills, experience spans and education."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from models.schemas.raw_term import SourceLocation

MatchMethod = Literal["exact-alias", "disambiguated", "fuzzy", "ambiguous", "unmatched"]


class NormalizedSkill(BaseModel):
    """Result of normalizing one raw term against a taxonomy snapshot."""
    model_config = ConfigDict(frozen=True)

    entry_id: str | None = None  # None means unmatched
    name: str = ""
    category: str = ""
    method: MatchMethod = "unmatched"
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    raw_text: str
    normalized_text: str = ""
    sources: tuple[SourceLocation, ...] = ()

    @property
    def is_matched(self) -> bool:
        return self.entry_id is not None


class YearMonth(BaseModel):
    """A calendar month. Experience periods have month granularity."""
    model_config = ConfigDict(frozen=True)

    year: int = Field(ge=1, le=9999)
    month: int = Field(default=1, ge=1, le=12)

    @property
    def index(self) -> int:
        """Months since year 0, so differences are month counts."""
        return self.year * 12 + (self.month - 1)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


class ExperienceEntry(BaseModel):
    """A work experience span. ``end=None`` means present/current.

    Duration is derived at scoring time against an explicit analysis time,
    so one profile can be scored repeatedly.
    """
    model_config = ConfigDict(frozen=True)

    title: str = ""
    company: str = ""
    start: YearMonth
    end: YearMonth | None = None
    skill_ids: tuple[str, ...] = ()
    description: str = ""

    @property
    def is_current(self) -> bool:
        return self.end is None


class EducationEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    institution: str = ""
    degree: str = ""
    field: str = ""
    graduation_year: str = ""
    level: str = ""  # phd, masters, bachelors, associate, or ""


class CandidateProfile(BaseModel):
    """Immutable normalized profile, built once per resume."""
    model_config = ConfigDict(frozen=True)

    profile_id: str
    skills: tuple[NormalizedSkill, ...] = ()
    experience: tuple[ExperienceEntry, ...] = ()
    education: tuple[EducationEntry, ...] = ()
    highest_education: str = ""
    taxonomy_version: str = ""

    def matched_skill_ids(self) -> tuple[str, ...]:
        """Taxonomy ids of matched skills, in profile order."""
        return tuple(s.entry_id for s in self.skills if s.entry_id is not None)

    def skill(self, entry_id: str) -> NormalizedSkill | None:
        for s in self.skills:
            if s.entry_id == entry_id:
                return s
        return None
