"""Tests for the JSON response deserializers."""

import httpx
import pytest
from pydantic import ValidationError

from glt.models import GitlabIssue, GitlabProject
from glt.repositories.base import RepositoryError
from glt.repositories.response import deserialize_many, deserialize_one

_REQUEST = httpx.Request("GET", "https://gitlab.example.com/api/v3/projects")


def _response(status_code: int = 200, **kwargs) -> httpx.Response:
    return httpx.Response(status_code, request=_REQUEST, **kwargs)


class TestDeserializeMany:
    def test_decodes_array(self, project_node: dict) -> None:
        projects = deserialize_many(_response(json=[project_node, {"id": 8, "name": "other"}]), GitlabProject)
        assert [p.id for p in projects] == [7, 8]
        assert all(isinstance(p, GitlabProject) for p in projects)

    def test_empty_array(self) -> None:
        assert deserialize_many(_response(json=[]), GitlabIssue) == []

    def test_object_instead_of_array_raises(self, project_node: dict) -> None:
        with pytest.raises(ValidationError):
            deserialize_many(_response(json=project_node), GitlabProject)


class TestDeserializeOne:
    def test_decodes_object(self, issue_node: dict) -> None:
        issue = deserialize_one(_response(json=issue_node), GitlabIssue)
        assert isinstance(issue, GitlabIssue)
        assert issue.iid == 42

    def test_null_body(self) -> None:
        assert deserialize_one(_response(content=b"null"), GitlabProject) is None


class TestStatusHandling:
    def test_401_raises_with_hint(self) -> None:
        with pytest.raises(RepositoryError, match="glt init"):
            deserialize_many(_response(401, json={"message": "401 Unauthorized"}), GitlabProject)

    def test_404_raises_http_status_error(self) -> None:
        with pytest.raises(httpx.HTTPStatusError):
            deserialize_one(_response(404, json={"message": "404 Not found"}), GitlabProject)
