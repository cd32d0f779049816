# comply/client/api.py
"""
HTTP client for the task API, used by the interactive sync client.
"""

import logging
from typing import List, Optional

import requests

from comply.config.settings import AppConfig
from comply.schemas import TaskCreate, TaskCreatedOut, TaskOut, TaskUpdate

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """A task API call failed; ``detail`` is the message to show inline"""

    def __init__(self, status_code: Optional[int], detail: str):
        super().__init__(f"{status_code}: {detail}" if status_code else detail)
        self.status_code = status_code
        self.detail = detail


class TaskApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or AppConfig.CLIENT["api_base_url"]).rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout if timeout is not None else AppConfig.CLIENT["request_timeout"]

    def _request(self, method: str, path: str, **kwargs):
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise ApiError(None, f"Could not reach task API: {e}") from e

        if response.status_code >= 400:
            try:
                detail = response.json().get("detail", response.text)
            except ValueError:
                detail = response.text
            raise ApiError(response.status_code, str(detail))
        return response.json()

    def list_tasks(self, created_by: Optional[str] = None) -> List[TaskOut]:
        params = {"created_by": created_by} if created_by else None
        data = self._request("GET", "/tasks/", params=params)
        return [TaskOut.model_validate(item) for item in data]

    def get_task(self, task_id: str) -> TaskOut:
        return TaskOut.model_validate(self._request("GET", f"/tasks/{task_id}"))

    def create_task(self, payload: TaskCreate) -> TaskCreatedOut:
        body = payload.model_dump(mode="json", by_alias=True, exclude_unset=True)
        return TaskCreatedOut.model_validate(self._request("POST", "/tasks/", json=body))

    def update_task(self, task_id: str, payload: TaskUpdate) -> TaskOut:
        body = payload.model_dump(mode="json", by_alias=True, exclude_unset=True)
        return TaskOut.model_validate(self._request("PUT", f"/tasks/{task_id}", json=body))

    def delete_task(self, task_id: str) -> None:
        self._request("DELETE", f"/tasks/{task_id}")
