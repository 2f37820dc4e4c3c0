"""GitLab REST models, decoded straight from API JSON. Unknown fields are ignored."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class GitlabUser(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    name: str | None = None


class GitlabProject(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    name_with_namespace: str | None = None
    path_with_namespace: str | None = None
    description: str | None = None
    web_url: str | None = None


# id -1 means "search across all projects"
UNSPECIFIED_PROJECT = GitlabProject(id=-1, name="-- from all projects --")


def is_unspecified(project: GitlabProject | None) -> bool:
    return project is None or project.id == UNSPECIFIED_PROJECT.id


class GitlabIssue(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int  # global ID
    iid: int  # project-local ID, what the web UI shows as #N
    project_id: int
    title: str
    description: str | None = None
    state: str  # "opened" | "reopened" | "closed"
    created_at: datetime | None = None
    updated_at: datetime | None = None
    labels: list[str] = []
    author: GitlabUser | None = None
    assignee: GitlabUser | None = None
    web_url: str | None = None

    @property
    def is_closed(self) -> bool:
        return self.state == "closed"
