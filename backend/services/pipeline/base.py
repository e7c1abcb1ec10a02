"""Abstract base class for all scorer strategies."""

from abc import ABC, abstractmethod
from datetime import date, datetime
import logging

from models.schemas.job_requirement import JobRequirement
from models.schemas.match_result import MatchResult
from models.schemas.profile import CandidateProfile
from models.schemas.scoring_config import ScoringConfig
from services.requirements import validate_requirement
from services.taxonomy_registry import get_store
from services.taxonomy_store import TaxonomyStore

logger = logging.getLogger(__name__)


class BaseScorer(ABC):
    """Base class for scoring strategies sharing one ``score()`` contract.

    Subclasses must implement:
        - scorer_name: identifier used in scorer_registry
        - load(): load any artifacts into memory
        - _score(...): produce a MatchResult for a validated requirement
    """

    scorer_name: str = ""
    _loaded: bool = False

    def __init__(self, store: TaxonomyStore | None = None) -> None:
        self._store = store

    @property
    def store(self) -> TaxonomyStore:
        """The pinned snapshot, or the registry's current one."""
        return self._store if self._store is not None else get_store()

    @abstractmethod
    def load(self) -> None:
        """Load artifacts. Called once by scorer_registry."""

    @abstractmethod
    def _score(
        self,
        profile: CandidateProfile,
        requirement: JobRequirement,
        config: ScoringConfig,
        analysis_time: datetime,
        store: TaxonomyStore,
    ) -> MatchResult:
        """Score a requirement that already passed validation."""

    def score(
        self,
        profile: CandidateProfile,
        requirement: JobRequirement,
        config: ScoringConfig,
        analysis_time: date | datetime,
    ) -> MatchResult:
        """Validate the requirement, then score the profile against it.

        The taxonomy snapshot is captured once so the whole call sees one
        consistent taxonomy even if a reload happens meanwhile.
        """
        store = self.store
        validate_requirement(requirement, store)
        self.ensure_loaded()
        if not isinstance(analysis_time, datetime):
            analysis_time = datetime(analysis_time.year, analysis_time.month, analysis_time.day)
        return self._score(profile, requirement, config, analysis_time, store)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def ensure_loaded(self) -> None:
        """Load scorer artifacts if not already loaded."""
        if not self._loaded:
            logger.info("Loading scorer: %s", self.scorer_name)
            self.load()
            self._loaded = True
            logger.info("Scorer loaded: %s", self.scorer_name)
