"""Shared test configuration, fixtures and pytest markers."""

import pytest

from services import taxonomy_registry
from services.pipeline import scorer_registry
from services.taxonomy_store import TaxonomyStore

SAMPLE_TAXONOMY = {
    "version": "test-1",
    "skills": {
        "java": {"name": "Java", "category": "language", "aliases": ["java se", "core java"]},
        "js": {"name": "JavaScript", "category": "language", "aliases": ["js"]},
        "python": {"name": "Python", "category": "language", "aliases": ["python3"]},
        "sql": {"name": "SQL", "category": "language"},
        "spring-boot": {
            "name": "Spring Boot", "category": "framework",
            "aliases": ["spring", "springboot"], "parent": "java",
        },
        "django": {"name": "Django", "category": "framework", "parent": "python"},
        "postgresql": {
            "name": "PostgreSQL", "category": "database",
            "aliases": ["postgres"], "parent": "sql",
        },
        "docker": {"name": "Docker", "category": "devops"},
        "kubernetes": {"name": "Kubernetes", "category": "devops", "aliases": ["k8s"]},
        "swift": {"name": "Swift", "category": "language"},
        "openstack-swift": {
            "name": "OpenStack Swift", "category": "cloud",
            "aliases": ["swift"], "weight": 0.5,
        },
        "communication": {
            "name": "Communication", "category": "soft-skill",
            "aliases": ["communication skills"],
        },
    },
}


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "bundled: exercises the taxonomy file shipped with the package"
    )


@pytest.fixture
def store() -> TaxonomyStore:
    return TaxonomyStore.load(SAMPLE_TAXONOMY)


@pytest.fixture(autouse=True)
def _reset_registries():
    """Drop the process-wide taxonomy and scorers between tests."""
    taxonomy_registry.clear()
    scorer_registry.clear()
    yield
    taxonomy_registry.clear()
    scorer_registry.clear()
