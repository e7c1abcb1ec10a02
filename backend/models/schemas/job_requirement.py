"""A job description reduced to taxonomy skill ids and experience minimums."""

from pydantic import BaseModel, ConfigDict, Field


class DesiredSkill(BaseModel):
    model_config = ConfigDict(frozen=True)

    skill_id: str
    weight: float = Field(default=1.0, gt=0.0)


class SkillExperienceRequirement(BaseModel):
    model_config = ConfigDict(frozen=True)

    skill_id: str
    min_years: float = Field(ge=0.0)


class JobRequirement(BaseModel):
    """Required skills are mandatory; desired skills earn weighted partial credit.

    Skill order is preserved and drives the order of match lists in results.
    """
    model_config = ConfigDict(frozen=True)

    requirement_id: str = ""
    title: str = ""
    required: tuple[str, ...] = ()
    desired: tuple[DesiredSkill, ...] = ()
    min_total_years: float | None = Field(default=None, ge=0.0)
    min_skill_years: tuple[SkillExperienceRequirement, ...] = ()

    @property
    def has_skills(self) -> bool:
        return bool(self.required or self.desired)
