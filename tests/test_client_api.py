# tests/test_client_api.py

import pytest
import requests

from comply.client.api import ApiError, TaskApiClient
from comply.schemas import TaskUpdate


class StubResponse:
    def __init__(self, status_code, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


class StubSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def request(self, method, url, timeout=None, **kwargs):
        self.calls.append((method, url, timeout, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


def test_update_sends_camel_case_partial_body():
    session = StubSession(StubResponse(409, {"detail": "Task abc was modified concurrently"}))
    client = TaskApiClient("http://api.local/", session=session, timeout=3)

    with pytest.raises(ApiError) as excinfo:
        client.update_task("abc", TaskUpdate(notes="Reviewed", version=2))

    method, url, timeout, kwargs = session.calls[0]
    assert (method, url, timeout) == ("PUT", "http://api.local/tasks/abc", 3)
    assert kwargs["json"] == {"notes": "Reviewed", "version": 2}
    assert excinfo.value.status_code == 409
    assert "modified concurrently" in excinfo.value.detail


def test_connection_error_becomes_api_error():
    session = StubSession(error=requests.ConnectionError("connection refused"))
    client = TaskApiClient("http://api.local", session=session)

    with pytest.raises(ApiError) as excinfo:
        client.list_tasks(created_by="owner@company.com")

    assert excinfo.value.status_code is None
    assert session.calls[0][3]["params"] == {"created_by": "owner@company.com"}


def test_non_json_error_body():
    session = StubSession(StubResponse(502, text="Bad Gateway"))
    client = TaskApiClient("http://api.local", session=session)

    with pytest.raises(ApiError) as excinfo:
        client.delete_task("abc")

    assert excinfo.value.detail == "Bad Gateway"
