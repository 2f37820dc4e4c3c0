"""GitLab REST API v3 repository."""

import logging
import re
import threading
from datetime import datetime

import httpx

from glt.models import UNSPECIFIED_PROJECT, GitlabIssue, GitlabProject, is_unspecified
from glt.repositories.base import (
    DEFAULT_TIMEOUT,
    CancellableConnection,
    ConnectionCancelledError,
    ConnectionTestError,
    RequestInterceptor,
    Task,
    TaskRepository,
)
from glt.repositories.response import deserialize_many, deserialize_one
from glt.settings import GltSettings

logger = logging.getLogger(__name__)

REST_API_PATH_PREFIX = "/api/v3/"
ID_PATTERN = re.compile(r"\d+", re.ASCII)


class GitlabTask(Task):
    def __init__(self, repository: "GitlabRepository", issue: GitlabIssue) -> None:
        self._repository = repository
        self._issue = issue

    @property
    def issue(self) -> GitlabIssue:
        return self._issue

    @property
    def id(self) -> str:
        return str(self._issue.id)

    @property
    def summary(self) -> str:
        return self._issue.title

    @property
    def description(self) -> str | None:
        return self._issue.description

    @property
    def state(self) -> str:
        return self._issue.state

    @property
    def created(self) -> datetime | None:
        return self._issue.created_at

    @property
    def updated(self) -> datetime | None:
        return self._issue.updated_at

    @property
    def is_closed(self) -> bool:
        return self._issue.is_closed

    @property
    def presentable_id(self) -> str:
        return f"#{self._issue.iid}"

    @property
    def issue_url(self) -> str | None:
        if self._issue.web_url:
            return self._issue.web_url
        # Older servers omit web_url on issues; fall back to the owning project.
        for project in self._repository.get_projects():
            if project.id == self._issue.project_id and project.web_url:
                return f"{project.web_url}/issues/{self._issue.iid}"
        return None

    @property
    def repository(self) -> "GitlabRepository":
        return self._repository


class _IssuesConnection(CancellableConnection):
    """GETs the issues endpoint on a worker thread so cancel() can stop the wait mid-flight."""

    def __init__(self, repository: "GitlabRepository") -> None:
        self._url = repository.issues_url
        self._client = repository.create_http_client()
        self._cancelled = False
        self._finished = threading.Event()

    def _send(self, outcome: dict) -> None:
        try:
            with self._client.stream("GET", self._url) as response:
                outcome["status"], outcome["reason"] = response.status_code, response.reason_phrase
        except Exception as exc:
            outcome["error"] = exc
        finally:
            self._finished.set()

    def test(self) -> None:
        if self._cancelled:
            raise ConnectionCancelledError("Connection test cancelled")
        logger.debug(f"Testing connection: GET {self._url}")
        outcome: dict = {}
        worker = threading.Thread(target=self._send, args=(outcome,), name="glt-connection-test", daemon=True)
        worker.start()
        try:
            self._finished.wait()
        finally:
            self._client.close()
        if self._cancelled:
            raise ConnectionCancelledError("Connection test cancelled")

        error = outcome.get("error")
        if isinstance(error, httpx.HTTPError):
            raise ConnectionTestError(f"Cannot connect to {self._url}: {error}") from error
        if error is not None:
            raise error
        if outcome["status"] != httpx.codes.OK:
            raise ConnectionTestError(f"HTTP error {outcome['status']}: {outcome['reason']}")

    def cancel(self) -> None:
        self._cancelled = True
        self._finished.set()
        self._client.close()


class GitlabRepository(TaskRepository):
    def __init__(
        self,
        url: str = "",
        password: str = "",
        timeout: float = DEFAULT_TIMEOUT,
        current_project: GitlabProject | None = None,
    ) -> None:
        super().__init__(url=url, password=password, timeout=timeout)
        self._current_project: GitlabProject | None = None
        self._projects: list[GitlabProject] | None = None
        self.current_project = current_project

    @classmethod
    def from_settings(cls, settings: GltSettings) -> "GitlabRepository":
        project = None
        if settings.project_id is not None:
            # Placeholder until projects are discovered and the real one is swapped in.
            project = GitlabProject(id=settings.project_id, name=f"#{settings.project_id}")
        return cls(
            url=settings.url,
            password=settings.token.get_secret_value() if settings.token else "",
            timeout=settings.timeout,
            current_project=project,
        )

    def to_config(self) -> dict:
        config: dict = {"url": self.url, "token": self.password, "timeout": self.timeout}
        if not is_unspecified(self._current_project):
            config["project_id"] = self._current_project.id  # type: ignore[union-attr]
        return config

    def clone(self) -> "GitlabRepository":
        return GitlabRepository(
            url=self.url,
            password=self.password,
            timeout=self.timeout,
            current_project=self._current_project,
        )

    def __eq__(self, other: object) -> bool:
        result = super().__eq__(other)
        if result is not True:
            return result
        return self._current_project == other._current_project  # type: ignore[attr-defined]

    # -- configuration ------------------------------------------------------

    @property
    def rest_api_path_prefix(self) -> str:
        return REST_API_PATH_PREFIX

    def is_configured(self) -> bool:
        return super().is_configured() and bool(self.password)

    def create_request_interceptor(self) -> RequestInterceptor:
        def add_private_token(request: httpx.Request) -> None:
            request.headers["PRIVATE-TOKEN"] = self.password

        return add_private_token

    @property
    def current_project(self) -> GitlabProject | None:
        return self._current_project

    @current_project.setter
    def current_project(self, project: GitlabProject | None) -> None:
        if project is not None and project.id == UNSPECIFIED_PROJECT.id:
            project = UNSPECIFIED_PROJECT
        self._current_project = project

    @property
    def presentable_name(self) -> str:
        name = self.url
        if not is_unspecified(self._current_project):
            name += f"/{self._current_project.name}"  # type: ignore[union-attr]
        return name

    @property
    def issues_url(self) -> str:
        if not is_unspecified(self._current_project):
            return self.get_rest_api_url("projects", self._current_project.id, "issues")  # type: ignore[union-attr]
        return self.get_rest_api_url("issues")

    # -- projects -----------------------------------------------------------

    def fetch_projects(self) -> tuple[GitlabProject, ...]:
        """Always request the project list from the server and cache it."""
        logger.debug(f"Fetching projects from {self.url}")
        response = self.http_client.get(self.get_rest_api_url("projects"))
        self._projects = deserialize_many(response, GitlabProject)
        logger.info(f"Discovered {len(self._projects)} project(s) on {self.url}")
        self._refresh_current_project()
        return tuple(self._projects)

    def fetch_project(self, project_id: int) -> GitlabProject | None:
        response = self.http_client.get(self.get_rest_api_url("project", project_id))
        return deserialize_one(response, GitlabProject)

    def get_projects(self) -> tuple[GitlabProject, ...]:
        """Cached projects, fetching them on first use. Failures yield an empty tuple."""
        try:
            self._ensure_projects_discovered()
        except Exception as exc:
            logger.warning(f"Could not fetch projects from {self.url}: {exc}")
            return ()
        return tuple(self._projects)  # type: ignore[arg-type]

    def set_projects(self, projects: list[GitlabProject]) -> None:
        self._projects = list(projects)
        self._refresh_current_project()

    def _ensure_projects_discovered(self) -> None:
        if self._projects is None:
            self.fetch_projects()

    def _refresh_current_project(self) -> None:
        if is_unspecified(self._current_project):
            return
        for project in self._projects or ():
            if project.id == self._current_project.id:  # type: ignore[union-attr]
                self._current_project = project
                return

    # -- issues -------------------------------------------------------------

    def fetch_issues(self, page_number: int, page_size: int, only_opened: bool = False) -> list[GitlabIssue]:
        self._ensure_projects_discovered()
        params: dict[str, str | int] = {"page": page_number, "per_page": page_size}
        if only_opened:
            params["state"] = "opened"
        logger.debug(f"Fetching issues: GET {self.issues_url} {params}")
        response = self.http_client.get(self.issues_url, params=params)
        return deserialize_many(response, GitlabIssue)

    def fetch_issue(self, issue_id: int) -> GitlabIssue | None:
        self._ensure_projects_discovered()
        response = self.http_client.get(self.get_rest_api_url("issues", issue_id))
        return deserialize_one(response, GitlabIssue)

    def get_issues(self, query: str | None, offset: int, limit: int, with_closed: bool) -> list[Task]:
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")
        issues = self.fetch_issues(offset // limit + 1, limit, only_opened=not with_closed)
        return [GitlabTask(self, issue) for issue in issues]

    def find_task(self, task_id: str) -> Task | None:
        # GitLab can only look an issue up by project ID + iid, never by global ID.
        return None

    def extract_id(self, task_name: str) -> str | None:
        return task_name if ID_PATTERN.fullmatch(task_name) else None

    def create_cancellable_connection(self) -> CancellableConnection:
        return _IssuesConnection(self)
