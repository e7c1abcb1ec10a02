"""Typed errors so callers can tell "fix your input" from "system misconfigured"."""


class SkillFitError(Exception):
    """Base class for errors raised by the normalization and scoring core."""


class ValidationError(SkillFitError, ValueError):
    """Raised for invalid caller input: empty raw text, malformed or unknown requirement ids."""


class TaxonomyLoadError(SkillFitError):
    """Raised when a taxonomy definition is malformed. The service must not start with it."""
