"""Tests for the pipeline orchestrator."""

from datetime import datetime

import pytest

from models.schemas.job_requirement import DesiredSkill, JobRequirement
from models.schemas.raw_term import RawEducation, RawExperience, RawTerm, SourceLocation
from services import taxonomy_registry
from services.errors import ValidationError
from services.pipeline.orchestrator import ScoredPair, analyze, rank_candidates, score, score_batch
from services.profile_builder import build_profile

ANALYSIS = datetime(2024, 6, 1)

REQUIREMENT = JobRequirement(
    requirement_id="backend-java",
    title="Backend Engineer",
    required=("java", "sql"),
    desired=(DesiredSkill(skill_id="docker", weight=0.5),),
    min_total_years=2,
)


def terms(*texts):
    return [RawTerm(text=t, source=SourceLocation(section="skills")) for t in texts]


@pytest.fixture
def profiles(store):
    return {
        "strong": build_profile(terms("Java", "SQL", "Docker"), store=store, profile_id="cand-b"),
        "partial": build_profile(terms("Java", "Python"), store=store, profile_id="cand-a"),
        "tied": build_profile(terms("java se", "sql", "docker"), store=store, profile_id="cand-a2"),
    }


class TestAnalyze:
    def test_end_to_end(self, store):
        profile, result = analyze(
            terms("Java ", "Python", "Cobol"),
            [RawExperience(title="Engineer", company="Acme", start="Jun 2021", end="Present", skills=["Java"])],
            [RawEducation(degree="B.S. Computer Science", institution="State University")],
            REQUIREMENT,
            ANALYSIS,
            store=store,
        )
        assert profile.matched_skill_ids() == ("java", "python")
        assert profile.highest_education == "bachelors"
        assert result.profile_id == profile.profile_id
        assert result.hard_missing_required
        assert [m.skill_id for m in result.missing_required] == ["sql"]
        assert result.overall_score == pytest.approx(50.0)

    def test_uses_registry_snapshot(self, store):
        taxonomy_registry.set_store(store)
        profile, result = analyze(terms("Java", "SQL"), [], [], JobRequirement(required=("java", "sql")), ANALYSIS)
        assert result.taxonomy_version == "test-1"
        assert not result.hard_missing_required


class TestScore:
    def test_default_scorer(self, store, profiles):
        taxonomy_registry.set_store(store)
        result = score(profiles["strong"], REQUIREMENT, ANALYSIS)
        assert result.scorer == "rules"
        assert result.overall_score == pytest.approx(70.0)

    def test_invalid_requirement(self, store, profiles):
        taxonomy_registry.set_store(store)
        with pytest.raises(ValidationError):
            score(profiles["strong"], JobRequirement(required=("java", "java")), ANALYSIS)


class TestScoreBatch:
    @pytest.mark.asyncio
    async def test_results_keep_input_order(self, store, profiles):
        taxonomy_registry.set_store(store)
        other = JobRequirement(requirement_id="python-dev", required=("python",))
        pairs = [
            (profiles["partial"], REQUIREMENT),
            (profiles["strong"], other),
            (profiles["partial"], other),
        ]
        results = await score_batch(pairs, ANALYSIS)

        assert all(isinstance(r, ScoredPair) for r in results)
        assert [(r.profile_id, r.requirement_id) for r in results] == [
            ("cand-a", "backend-java"),
            ("cand-b", "python-dev"),
            ("cand-a", "python-dev"),
        ]
        assert results[0].result.hard_missing_required
        assert results[1].result.hard_missing_required
        assert not results[2].result.hard_missing_required

    @pytest.mark.asyncio
    async def test_empty_batch(self, store):
        taxonomy_registry.set_store(store)
        assert await score_batch([], ANALYSIS) == []

    @pytest.mark.asyncio
    async def test_validation_error_propagates(self, store, profiles):
        taxonomy_registry.set_store(store)
        bad = JobRequirement(requirement_id="bad", required=("cobol",))
        with pytest.raises(ValidationError):
            await score_batch([(profiles["strong"], bad)], ANALYSIS)


class TestRankCandidates:
    def test_best_first_ties_by_profile_id(self, store, profiles):
        taxonomy_registry.set_store(store)
        ranked = rank_candidates(list(profiles.values()), REQUIREMENT, ANALYSIS)
        assert [r.profile_id for r in ranked] == ["cand-a2", "cand-b", "cand-a"]
        assert ranked[0].overall_score == ranked[1].overall_score
