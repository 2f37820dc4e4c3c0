"""Turn httpx responses into typed pydantic objects."""

from typing import TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter

from glt.repositories.base import RepositoryError

M = TypeVar("M", bound=BaseModel)


def check_response(response: httpx.Response) -> None:
    if response.status_code == 401:
        raise RepositoryError("GitLab API returned 401. Run glt init to update the token for the active profile.")
    response.raise_for_status()


def deserialize_one(response: httpx.Response, model: type[M]) -> M | None:
    """Decode a single JSON object. A ``null`` body decodes to None."""
    check_response(response)
    return TypeAdapter(model | None).validate_json(response.content)


def deserialize_many(response: httpx.Response, model: type[M]) -> list[M]:
    """Decode a JSON array of objects."""
    check_response(response)
    return TypeAdapter(list[model]).validate_json(response.content)  # type: ignore[valid-type]
