"""Tests for building and validating job requirements."""

import pytest

from models.schemas.job_requirement import DesiredSkill, JobRequirement, SkillExperienceRequirement
from services.errors import ValidationError
from services.requirements import parse_requirement, requirement_from_terms, validate_requirement


class TestValidate:
    def test_valid(self, store):
        validate_requirement(
            JobRequirement(required=("java", "sql"), desired=(DesiredSkill(skill_id="docker", weight=0.5),)),
            store,
        )

    def test_empty_requirement_is_valid(self, store):
        validate_requirement(JobRequirement(), store)

    def test_duplicate_required(self, store):
        with pytest.raises(ValidationError, match="Duplicate required"):
            validate_requirement(JobRequirement(required=("java", "java")), store)

    def test_duplicate_desired(self, store):
        req = JobRequirement(desired=(DesiredSkill(skill_id="docker"), DesiredSkill(skill_id="docker")))
        with pytest.raises(ValidationError, match="Duplicate desired"):
            validate_requirement(req, store)

    def test_required_and_desired(self, store):
        req = JobRequirement(required=("java",), desired=(DesiredSkill(skill_id="java"),))
        with pytest.raises(ValidationError, match="both required and desired"):
            validate_requirement(req, store)

    def test_unknown_id(self, store):
        with pytest.raises(ValidationError, match="cobol"):
            validate_requirement(JobRequirement(required=("java", "cobol")), store)

    def test_unknown_skill_minimum(self, store):
        req = JobRequirement(min_skill_years=(SkillExperienceRequirement(skill_id="cobol", min_years=2),))
        with pytest.raises(ValidationError, match="Unknown"):
            validate_requirement(req, store)


class TestParse:
    def test_single_key_desired_records(self, store):
        req = parse_requirement(
            {"requirement_id": "job-1", "required": ["java", "sql"], "desired": [{"docker": 0.5}], "min_total_years": 2},
            store,
        )
        assert req.requirement_id == "job-1"
        assert req.required == ("java", "sql")
        assert req.desired == (DesiredSkill(skill_id="docker", weight=0.5),)
        assert req.min_total_years == 2

    @pytest.mark.parametrize("desired", [
        {"docker": 0.5, "kubernetes": 1.0},
        [{"skill_id": "docker", "weight": 0.5}, {"skill_id": "kubernetes"}],
    ])
    def test_desired_shapes(self, store, desired):
        req = parse_requirement({"desired": desired}, store)
        assert [(d.skill_id, d.weight) for d in req.desired] == [("docker", 0.5), ("kubernetes", 1.0)]

    def test_plain_desired_ids(self, store):
        req = parse_requirement({"desired": ["docker"]}, store)
        assert req.desired == (DesiredSkill(skill_id="docker", weight=1.0),)

    def test_single_required_string(self, store):
        assert parse_requirement({"required": "java"}, store).required == ("java",)

    def test_skill_minimums(self, store):
        req = parse_requirement({"required": ["java"], "min_skill_years": {"java": 3}}, store)
        assert req.min_skill_years == (SkillExperienceRequirement(skill_id="java", min_years=3),)

        req = parse_requirement(
            {"required": ["java"], "min_skill_years": [{"skill_id": "java", "min_years": 3}]}, store
        )
        assert req.min_skill_years[0].min_years == 3

    def test_uses_registry_snapshot(self, store):
        from services import taxonomy_registry
        taxonomy_registry.set_store(store)
        assert parse_requirement({"required": ["java"]}).required == ("java",)

    @pytest.mark.parametrize("payload", [
        {"desired": [{"docker": -1}]},
        {"min_total_years": -2},
        {"min_skill_years": [{"skill_id": "java"}]},
        {"desired": [42]},
        {"required": 5},
    ])
    def test_malformed(self, store, payload):
        with pytest.raises(ValidationError):
            parse_requirement(payload, store)

    def test_not_a_mapping(self, store):
        with pytest.raises(ValidationError, match="mapping"):
            parse_requirement(["java"], store)

    def test_unknown_id(self, store):
        with pytest.raises(ValidationError, match="Unknown"):
            parse_requirement({"required": ["cobol"]}, store)


class TestFromTerms:
    def test_resolves_free_text(self, store):
        req = requirement_from_terms(
            ["Java", "Postgres"],
            {"Docker": 0.5, "K8s": 0.25},
            store=store,
            requirement_id="job-7",
            min_total_years=3,
        )
        assert req.required == ("java", "postgresql")
        assert [(d.skill_id, d.weight) for d in req.desired] == [("docker", 0.5), ("kubernetes", 0.25)]
        assert req.requirement_id == "job-7"
        assert req.min_total_years == 3

    def test_desired_list_defaults_weight(self, store):
        req = requirement_from_terms(["python"], ["Docker"], store=store)
        assert req.desired == (DesiredSkill(skill_id="docker", weight=1.0),)

    def test_unmatched_terms_raise(self, store):
        with pytest.raises(ValidationError, match="Cobol"):
            requirement_from_terms(["Java", "Cobol"], store=store)

    def test_required_and_desired_resolving_to_one_skill_raise(self, store):
        with pytest.raises(ValidationError, match="both required and desired"):
            requirement_from_terms(["java"], {"Java SE": 0.5}, store=store)

    def test_required_terms_resolving_to_one_skill_raise(self, store):
        with pytest.raises(ValidationError, match="Duplicate required"):
            requirement_from_terms(["Java", "java se"], store=store)

    def test_desired_terms_resolving_to_one_skill_raise(self, store):
        with pytest.raises(ValidationError, match="Duplicate desired"):
            requirement_from_terms(["python"], {"K8s": 0.5, "kubernetes": 1.0}, store=store)
