from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as ModelValidationError

from .errors import NetworkFailure, ServerError
from .models import Category, CategoryInput, Task, TaskInput

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8080/api"

ModelT = TypeVar("ModelT", bound=BaseModel)


def _json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        # JSONDecodeError, or UnicodeDecodeError for a body that is not UTF-8.
        raise ServerError(response.status_code, f"Invalid JSON from {response.request.url}") from exc


def _parse(model: type[ModelT], payload: Any) -> ModelT:
    try:
        return model.model_validate(payload)
    except ModelValidationError as exc:
        raise ServerError(200, f"Malformed {model.__name__} in response: {exc.error_count()} errors") from exc


class TodoApiClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> TodoApiClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> httpx.Response:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s params=%s", method, url, params)
        try:
            response = await self.client.request(method, url, params=params, json=body)
        except httpx.RequestError as exc:
            raise NetworkFailure(f"Could not reach {url}: {exc}") from exc
        if not response.is_success:
            raise ServerError(response.status_code, response.text)
        return response

    async def _get_list(self, path: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        response = await self._request("GET", path, params=params)
        payload = _json(response)
        # An empty collection may arrive as JSON null.
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise ServerError(response.status_code, f"Expected a list from {path}")
        return payload

    async def get_tasks(self, search: str = "") -> list[Task]:
        params = {"search": search} if search else None
        return [_parse(Task, item) for item in await self._get_list("/tasks", params=params)]

    async def create_task(self, data: TaskInput) -> Task:
        response = await self._request("POST", "/tasks", body=data.model_dump(mode="json", exclude_none=True))
        return _parse(Task, _json(response))

    async def update_task(self, task_id: int, data: TaskInput) -> Task:
        response = await self._request(
            "PUT", f"/tasks/{task_id}", body=data.model_dump(mode="json", exclude_none=True)
        )
        return _parse(Task, _json(response))

    async def toggle_task(self, task_id: int) -> Task:
        response = await self._request("PUT", f"/tasks/{task_id}/toggle")
        return _parse(Task, _json(response))

    async def delete_task(self, task_id: int) -> None:
        await self._request("DELETE", f"/tasks/{task_id}")

    async def get_categories(self) -> list[Category]:
        return [_parse(Category, item) for item in await self._get_list("/categories")]

    async def create_category(self, data: CategoryInput) -> Category:
        response = await self._request("POST", "/categories", body=data.model_dump(mode="json"))
        return _parse(Category, _json(response))

    async def update_category(self, category_id: int, data: CategoryInput) -> Category:
        response = await self._request("PUT", f"/categories/{category_id}", body=data.model_dump(mode="json"))
        return _parse(Category, _json(response))

    async def delete_category(self, category_id: int) -> None:
        await self._request("DELETE", f"/categories/{category_id}")
