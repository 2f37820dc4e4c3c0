"""Tests for glt.models."""

from datetime import datetime, timezone

import pytest

from glt.models import UNSPECIFIED_PROJECT, GitlabIssue, GitlabProject, is_unspecified


def test_project_frozen(project: GitlabProject) -> None:
    with pytest.raises(Exception):  # ValidationError or TypeError depending on pydantic version
        project.name = "changed"  # type: ignore[misc]


def test_project_ignores_unknown_fields(project_node: dict) -> None:
    project = GitlabProject(**project_node, star_count=3, archived=False)
    assert project.id == 7
    assert not hasattr(project, "star_count")


def test_project_minimal() -> None:
    project = GitlabProject(id=1, name="x")
    assert project.web_url is None
    assert project.path_with_namespace is None


def test_unspecified_project() -> None:
    assert UNSPECIFIED_PROJECT.id == -1
    assert is_unspecified(UNSPECIFIED_PROJECT)
    assert is_unspecified(None)
    assert is_unspecified(GitlabProject(id=-1, name="anything"))
    assert not is_unspecified(GitlabProject(id=0, name="zero"))


def test_issue_parses_dates(issue: GitlabIssue) -> None:
    assert issue.created_at == datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)
    assert issue.updated_at is not None
    assert issue.author is not None
    assert issue.author.username == "jdoss"
    assert issue.assignee is None


def test_issue_defaults() -> None:
    issue = GitlabIssue(id=1, iid=1, project_id=2, title="T", state="opened")
    assert issue.description is None
    assert issue.labels == []
    assert issue.web_url is None
    assert not issue.is_closed


def test_issue_closed(issue_node: dict) -> None:
    assert GitlabIssue(**{**issue_node, "state": "closed"}).is_closed
    assert not GitlabIssue(**{**issue_node, "state": "reopened"}).is_closed
