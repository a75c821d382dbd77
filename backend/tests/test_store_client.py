import json
import threading

import pytest
import requests

from tracker.core.errors import StoreError
from tracker.services.store_client import StoreClient, eq, lt, not_null


class StubResponse:
    def __init__(self, status_code: int = 200, payload=None, text: str | None = None) -> None:
        self.status_code = status_code
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text
        self.content = text.encode("utf-8")

    def json(self):
        return json.loads(self.text)


class StubSession:
    def __init__(self, response: StubResponse | None = None, error: Exception | None = None) -> None:
        self.headers: dict = {}
        self.response = response or StubResponse(payload=[])
        self.error = error
        self.calls: list[dict] = []

    def request(self, method, url, params=None, json=None, timeout=None):  # type: ignore[override]
        self.calls.append(
            {"method": method, "url": url, "params": params, "json": json, "timeout": timeout}
        )
        if self.error is not None:
            raise self.error
        return self.response


def make_client(session: StubSession) -> StoreClient:
    return StoreClient(
        base_url="https://example.supabase.co/",
        api_key="secret",
        table="jobs",
        timeout=3.0,
        session=session,
    )


def test_client_sends_credentials_on_every_request():
    session = StubSession()
    make_client(session)

    assert session.headers["apikey"] == "secret"
    assert session.headers["Authorization"] == "Bearer secret"
    assert session.headers["Prefer"] == "return=representation"


def test_find_encodes_filters_and_order():
    session = StubSession(StubResponse(payload=[{"job_id": "J1"}]))
    client = make_client(session)

    rows = client.find([eq("job_id", "J1")], order="created_at.desc")

    assert rows == [{"job_id": "J1"}]
    call = session.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == "https://example.supabase.co/rest/v1/jobs"
    assert call["params"] == [("job_id", "eq.J1"), ("order", "created_at.desc")]
    assert call["timeout"] == 3.0


def test_delete_supports_two_predicates_on_the_same_column():
    session = StubSession(StubResponse(status_code=204, text=""))
    client = make_client(session)

    client.delete([lt("expires_at", "2024-01-01T00:00:00+00:00"), not_null("expires_at")])

    assert session.calls[0]["method"] == "DELETE"
    assert session.calls[0]["params"] == [
        ("expires_at", "lt.2024-01-01T00:00:00+00:00"),
        ("expires_at", "not.is.null"),
    ]


def test_insert_returns_stored_representation():
    session = StubSession(StubResponse(status_code=201, payload=[{"job_id": "J1", "name": "x"}]))
    client = make_client(session)

    stored = client.insert({"job_id": "J1"})

    assert stored == {"job_id": "J1", "name": "x"}
    assert session.calls[0]["json"] == {"job_id": "J1"}


def test_insert_falls_back_to_submitted_row_on_empty_body():
    session = StubSession(StubResponse(status_code=201, text=""))
    client = make_client(session)

    assert client.insert({"job_id": "J1"}) == {"job_id": "J1"}


def test_patch_sends_partial_row_with_filter():
    session = StubSession(StubResponse(payload=[]))
    client = make_client(session)

    client.patch([eq("job_id", "J1")], {"name": "renamed"})

    call = session.calls[0]
    assert call["method"] == "PATCH"
    assert call["params"] == [("job_id", "eq.J1")]
    assert call["json"] == {"name": "renamed"}


def test_error_status_raises_store_error_with_raw_body():
    body = '{"message":"permission denied"}'
    session = StubSession(StubResponse(status_code=401, text=body))
    client = make_client(session)

    with pytest.raises(StoreError) as excinfo:
        client.find()

    assert excinfo.value.status == 401
    assert excinfo.value.body == body


@pytest.mark.parametrize(
    "error",
    [requests.exceptions.Timeout("slow"), requests.exceptions.ConnectionError("down")],
)
def test_transport_failures_become_store_errors(error):
    client = make_client(StubSession(error=error))

    with pytest.raises(StoreError) as excinfo:
        client.delete([eq("job_id", "J1")])

    assert excinfo.value.status is None


def test_find_returns_empty_list_for_empty_body():
    client = make_client(StubSession(StubResponse(status_code=200, text="")))

    assert client.find() == []


def test_each_thread_gets_its_own_session_with_credentials():
    client = StoreClient(base_url="https://example.supabase.co", api_key="secret")
    seen = {}

    def grab():
        seen["worker"] = client.session

    worker = threading.Thread(target=grab)
    worker.start()
    worker.join()

    main_session = client.session
    assert client.session is main_session
    assert seen["worker"] is not main_session
    for session in (main_session, seen["worker"]):
        assert isinstance(session, requests.Session)
        assert session.headers["apikey"] == "secret"
        assert session.headers["Authorization"] == "Bearer secret"
