"""Extraction-layer inputs: raw terms, experience and education tuples."""

from pydantic import BaseModel, ConfigDict, Field


class SourceLocation(BaseModel):
    """Where a raw term was found in the resume, for traceability."""
    model_config = ConfigDict(frozen=True)

    section: str = ""  # e.g. skills, experience[0], summary
    line: int | None = None
    start: int | None = None
    end: int | None = None


class RawTerm(BaseModel):
    """An extracted, un-normalized candidate attribute."""
    model_config = ConfigDict(frozen=True)

    text: str
    kind: str = "skill"  # skill, title, degree, certification, ...
    source: SourceLocation = SourceLocation()
    extractor_confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    context: str | None = None  # inferred category kind, used to disambiguate aliases


class RawExperience(BaseModel):
    """A single work experience tuple as produced by the extraction layer."""
    title: str = ""
    company: str = ""
    start: str = ""  # "Jan 2019", "2019-03", "2019"
    end: str = ""  # same formats, or "Present" / "Current" / empty
    description: str = ""
    skills: list[str] = []


class RawEducation(BaseModel):
    """A single education tuple as produced by the extraction layer."""
    institution: str = ""
    degree: str = ""
    field: str = ""
    graduation_year: str = ""
