"""Taxonomy definition records: canonical skill entries and their versioned document."""

from pydantic import BaseModel, ConfigDict, Field


class TaxonomyEntry(BaseModel):
    """A canonical skill in the controlled taxonomy.

    ``parent`` refers to another entry by id (e.g. spring-boot -> java);
    the hierarchy is never modelled as nested objects.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    category: str = ""  # language, framework, database, cloud, tool, soft-skill, ...
    aliases: tuple[str, ...] = ()
    parent: str | None = None
    weight: float = 1.0  # default importance, used by alias disambiguation


class TaxonomyDefinition(BaseModel):
    """A versioned taxonomy document as read from YAML/JSON."""
    version: str = "unversioned"
    entries: list[TaxonomyEntry] = Field(default_factory=list)
