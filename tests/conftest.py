"""Shared test fixtures."""

import pytest

import glt.settings as settings_module
from glt.models import GitlabIssue, GitlabProject
from glt.repositories.gitlab import GitlabRepository

GITLAB_URL = "https://gitlab.example.com"

PROJECT_NODE = {
    "id": 7,
    "name": "quickvm",
    "name_with_namespace": "jdoss / quickvm",
    "path_with_namespace": "jdoss/quickvm",
    "description": "Tiny VMs",
    "web_url": f"{GITLAB_URL}/jdoss/quickvm",
}

ISSUE_NODE = {
    "id": 1042,
    "iid": 42,
    "project_id": 7,
    "title": "Fix null check",
    "description": "Null pointer in logout handler.",
    "state": "opened",
    "created_at": "2024-03-01T10:00:00.000Z",
    "updated_at": "2024-03-02T11:30:00.000Z",
    "labels": ["bug"],
    "author": {"id": 1, "username": "jdoss", "name": "Joe Doss"},
    "assignee": None,
    "web_url": f"{GITLAB_URL}/jdoss/quickvm/issues/42",
}


@pytest.fixture(autouse=True)
def reset_lru_cache():
    """Clear the lru_cache before each test."""
    settings_module._load_toml.cache_clear()
    yield
    settings_module._load_toml.cache_clear()


@pytest.fixture
def project() -> GitlabProject:
    return GitlabProject(**PROJECT_NODE)


@pytest.fixture
def issue() -> GitlabIssue:
    return GitlabIssue(**ISSUE_NODE)


@pytest.fixture
def repository():
    repo = GitlabRepository(url=GITLAB_URL, password="glpat-test")
    yield repo
    repo.close()


@pytest.fixture
def project_node() -> dict:
    return dict(PROJECT_NODE)


@pytest.fixture
def issue_node() -> dict:
    return dict(ISSUE_NODE)
