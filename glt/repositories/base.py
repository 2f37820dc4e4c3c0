"""Abstract base classes for task repositories and the tasks they produce."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime

import httpx

DEFAULT_TIMEOUT = 30.0

RequestInterceptor = Callable[[httpx.Request], None]


class RepositoryError(RuntimeError):
    pass


class ConnectionTestError(RepositoryError):
    """The server could not be reached or answered with a non-OK status."""


class ConnectionCancelledError(RepositoryError):
    pass


class Task(ABC):
    """A unit of trackable work, as the host displays it."""

    @property
    @abstractmethod
    def id(self) -> str: ...

    @property
    @abstractmethod
    def summary(self) -> str: ...

    @property
    @abstractmethod
    def description(self) -> str | None: ...

    @property
    @abstractmethod
    def state(self) -> str: ...

    @property
    @abstractmethod
    def created(self) -> datetime | None: ...

    @property
    @abstractmethod
    def updated(self) -> datetime | None: ...

    @property
    @abstractmethod
    def is_closed(self) -> bool: ...

    @property
    @abstractmethod
    def issue_url(self) -> str | None: ...

    @property
    @abstractmethod
    def repository(self) -> "TaskRepository": ...

    @property
    def presentable_id(self) -> str:
        return self.id

    @property
    def presentable_name(self) -> str:
        return f"{self.presentable_id}: {self.summary}"

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.presentable_name!r}>"


class CancellableConnection(ABC):
    """A connection check that can be aborted from another thread."""

    @abstractmethod
    def test(self) -> None:
        """Raise if the repository is unreachable."""

    @abstractmethod
    def cancel(self) -> None: ...

    def call(self) -> Exception | None:
        """Run the check, returning the failure instead of raising it."""
        try:
            self.test()
        except Exception as exc:
            return exc
        return None


class TaskRepository(ABC):
    """Connection settings plus the operations a host needs from an issue tracker.

    Owns one lazily created httpx client. Subclasses attach authentication by
    returning a callable from create_request_interceptor(); it runs as an httpx
    request event hook on every outgoing request.
    """

    def __init__(self, url: str = "", password: str = "", timeout: float = DEFAULT_TIMEOUT) -> None:
        self.url = url
        self.password = password
        self.timeout = timeout
        self._http_client: httpx.Client | None = None

    @property
    @abstractmethod
    def rest_api_path_prefix(self) -> str: ...

    def get_rest_api_url(self, *parts: object) -> str:
        return self.url.rstrip("/") + self.rest_api_path_prefix + "/".join(str(p) for p in parts)

    def is_configured(self) -> bool:
        return bool(self.url)

    def create_request_interceptor(self) -> RequestInterceptor | None:
        return None

    def create_http_client(self) -> httpx.Client:
        hooks: dict[str, list] = {"request": [], "response": []}
        interceptor = self.create_request_interceptor()
        if interceptor is not None:
            hooks["request"].append(interceptor)
        return httpx.Client(timeout=self.timeout, event_hooks=hooks)

    @property
    def http_client(self) -> httpx.Client:
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = self.create_http_client()
        return self._http_client

    def close(self) -> None:
        if self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    @property
    @abstractmethod
    def presentable_name(self) -> str: ...

    @abstractmethod
    def get_issues(self, query: str | None, offset: int, limit: int, with_closed: bool) -> list[Task]: ...

    @abstractmethod
    def find_task(self, task_id: str) -> Task | None: ...

    @abstractmethod
    def extract_id(self, task_name: str) -> str | None: ...

    @abstractmethod
    def create_cancellable_connection(self) -> CancellableConnection | None: ...

    @abstractmethod
    def clone(self) -> "TaskRepository": ...

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return (self.url, self.password) == (other.url, other.password)  # type: ignore[attr-defined]

    __hash__ = None  # type: ignore[assignment]
