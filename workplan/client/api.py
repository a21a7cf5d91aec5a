"""
HTTP client for the WorkPlan REST API.
"""

import logging
from typing import List, Optional

import requests
from pydantic import ValidationError

from workplan.core.config import settings
from workplan.client.errors import ApiError, TaskNotFoundError
from workplan.schemas.task import ReorderItem, ReorderRequest, TaskResponse

logger = logging.getLogger(__name__)


class TaskApi:
    """Thin wrapper over the /tasks routes.

    Any object with a requests-style ``request(method, url, json=, timeout=)``
    can serve as ``session``.
    """

    def __init__(self, base_url: Optional[str] = None, session=None, timeout: Optional[float] = None):
        self.base_url = (base_url or settings.API_URL).rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT

    def _request(self, method: str, path: str, json=None):
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, json=json, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise ApiError(f"{method} {path} failed: {e}") from e

        if response.status_code >= 400:
            raise ApiError(
                f"{method} {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.warning(f"{method} {url} returned a non-JSON body")
            raise ApiError(f"{method} {path} returned a non-JSON body", status_code=response.status_code) from e

    def list_tasks(self) -> List[TaskResponse]:
        data = self._request("GET", "/tasks")
        try:
            return [TaskResponse.model_validate(item) for item in data or []]
        except ValidationError as e:
            raise ApiError(f"Malformed task list from server: {e}") from e

    @staticmethod
    def _task(data) -> TaskResponse:
        try:
            return TaskResponse.model_validate(data)
        except ValidationError as e:
            raise ApiError(f"Malformed task from server: {e}") from e

    def create_task(
        self,
        title: str,
        description: Optional[str] = None,
        followup: Optional[str] = None,
        column_id: Optional[str] = None,
    ) -> TaskResponse:
        body = {"title": title, "description": description, "followup": followup, "column_id": column_id}
        data = self._request("POST", "/tasks", json={k: v for k, v in body.items() if v is not None})
        return self._task(data)

    def update_task(self, task_id: int, **fields) -> TaskResponse:
        try:
            data = self._request("PUT", f"/tasks/{task_id}", json=fields)
        except ApiError as e:
            if e.status_code == 404:
                raise TaskNotFoundError(task_id) from e
            raise
        return self._task(data)

    def delete_task(self, task_id: int) -> None:
        try:
            self._request("DELETE", f"/tasks/{task_id}")
        except ApiError as e:
            if e.status_code == 404:
                raise TaskNotFoundError(task_id) from e
            raise

    def reorder(self, items: List[ReorderItem]) -> None:
        if not items:
            return
        request = ReorderRequest(tasks=list(items))
        self._request("POST", "/tasks/reorder", json=request.model_dump())

    def clear_tasks(self) -> int:
        data = self._request("DELETE", "/tasks")
        return (data or {}).get("deleted") or 0
