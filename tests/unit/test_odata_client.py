import io
import json

import pytest
import requests

from graphshell.core.odata import (
    ApiError,
    AuthContext,
    CancellationToken,
    CancelledError,
    InvalidArgumentError,
    NotAuthenticatedError,
    QueryOptions,
    RequestSpec,
    TransportError,
    UnsupportedContentTypeError,
    join_url,
)


# ============================================================================
# URL joining
# ============================================================================

@pytest.mark.parametrize(
    "base, path, expected",
    [
        ("https://graph.test/beta", "users", "https://graph.test/beta/users"),
        ("https://graph.test/beta/", "/users", "https://graph.test/beta/users"),
        ("https://graph.test/beta", "https://other.test/x?$skiptoken=a%2Fb", "https://other.test/x?$skiptoken=a%2Fb"),
    ],
)
def test_join_url_uses_single_slash(base, path, expected):
    assert join_url(base, path) == expected


# ============================================================================
# RequestSpec
# ============================================================================

def test_request_spec_normalizes_method_and_headers():
    spec = RequestSpec("patch", "users/1", headers={"X-Test": "a"})
    assert spec.method == "PATCH"
    assert dict(spec.headers) == {"X-Test": ("a",)}


def test_request_spec_is_immutable():
    spec = RequestSpec("GET", "users")
    with pytest.raises(Exception):
        spec.method = "POST"
    with pytest.raises(TypeError):
        spec.headers["X"] = ("y",)


@pytest.mark.parametrize("method", ["HEAD", "", None])
def test_request_spec_rejects_unknown_methods(method):
    with pytest.raises(InvalidArgumentError):
        RequestSpec(method, "users")


# ============================================================================
# Execution
# ============================================================================

def test_execute_attaches_bearer_token(executor, auth, transport):
    transport.queue({"id": "1"})
    status, body = executor.execute(RequestSpec("GET", "users/1"), auth)

    assert status == 200
    assert json.loads(body) == {"id": "1"}
    call = transport.calls[0]
    assert call.method == "GET"
    assert call.url == "https://graph.test/beta/users/1"
    assert call.headers["Authorization"] == "Bearer test-token"


def test_execute_reads_token_at_call_time(executor, transport):
    tokens = iter(["first", "second"])
    auth = AuthContext(lambda: next(tokens))
    transport.queue("{}")
    transport.queue("{}")

    executor.execute(RequestSpec("GET", "me"), auth)
    executor.execute(RequestSpec("GET", "me"), auth)

    assert [c.headers["Authorization"] for c in transport.calls] == ["Bearer first", "Bearer second"]


def test_execute_without_token_fails_before_network(executor, transport):
    with pytest.raises(NotAuthenticatedError):
        executor.execute(RequestSpec("GET", "me"), AuthContext(lambda: None))
    assert transport.calls == []


def test_execute_builds_query_and_prefer_header(executor, auth, transport):
    transport.queue("{}")
    options = QueryOptions(filter="id eq '1'", top=5, max_page_size=2)
    executor.execute(RequestSpec("GET", "users", options, {"ConsistencyLevel": "eventual"}), auth)

    call = transport.calls[0]
    assert call.url == "https://graph.test/beta/users?$filter=id%20eq%20%271%27&$top=5"
    assert call.headers["Prefer"] == "odata.maxpagesize=2"
    assert call.headers["ConsistencyLevel"] == "eventual"


def test_negative_top_rejected_before_network(executor, auth, transport):
    with pytest.raises(InvalidArgumentError):
        executor.execute(RequestSpec("GET", "users", QueryOptions(top=-1)), auth)
    assert transport.calls == []


def test_next_page_spec_sends_link_verbatim(executor, auth, transport):
    link = "https://graph.test/beta/users?$skiptoken=X%2FY%3D&$top=5"
    transport.queue("{}")
    executor.execute(RequestSpec.next_page(link), auth)

    call = transport.calls[0]
    assert call.url == link
    assert set(call.headers) == {"Authorization"}


def test_structured_body_sent_as_json(executor, auth, transport):
    transport.queue({"id": "new"}, status_code=201)
    executor.execute(RequestSpec("POST", "applications", body={"displayName": "Bing"}), auth)

    call = transport.calls[0]
    assert json.loads(call.data) == {"displayName": "Bing"}
    assert call.headers["Content-Type"] == "application/json"


def test_caller_content_type_is_kept(executor, auth, transport):
    transport.queue("{}")
    headers = {"Content-Type": "application/merge-patch+json"}
    executor.execute(RequestSpec("PATCH", "users/1", headers=headers, body={"a": 1}), auth)
    assert transport.calls[0].headers["Content-Type"] == "application/merge-patch+json"


def test_prebuilt_body_passed_through(executor, auth, transport):
    stream = io.BytesIO(b"raw-bytes")
    transport.queue("")
    executor.execute(RequestSpec("PUT", "drive/root/content", body=stream), auth)
    assert transport.calls[0].data is stream
    assert "Content-Type" not in transport.calls[0].headers


def test_unsupported_body_rejected_before_network(executor, auth, transport):
    with pytest.raises(UnsupportedContentTypeError):
        executor.execute(RequestSpec("POST", "users", body=12), auth)
    assert transport.calls == []


def test_http_error_preserves_body(executor, auth, transport):
    body = '{"error":{"message":"not found"}}'
    transport.queue(body, status_code=404)

    with pytest.raises(ApiError) as excinfo:
        executor.execute(RequestSpec("GET", "users/missing"), auth)

    assert excinfo.value.status_code == 404
    assert excinfo.value.body_text == body
    assert excinfo.value.endpoint == "https://graph.test/beta/users/missing"


def test_transport_failure_is_not_retried(executor, auth, transport):
    transport.queue(requests.ConnectionError("connection reset"))

    with pytest.raises(TransportError):
        executor.execute(RequestSpec("GET", "users"), auth)
    assert len(transport.calls) == 1


def test_configured_timeout_is_used(environment, executor, auth, transport):
    environment.update(request_timeout=12)
    transport.queue("{}")
    executor.execute(RequestSpec("GET", "me"), auth)
    assert transport.calls[0].timeout == 12


def test_no_timeout_by_default(executor, auth, transport):
    transport.queue("{}")
    executor.execute(RequestSpec("GET", "me"), auth)
    assert transport.calls[0].timeout is None


# ============================================================================
# Cancellation
# ============================================================================

def test_cancelled_token_stops_before_sending(executor, auth, transport):
    token = CancellationToken()
    token.cancel()

    with pytest.raises(CancelledError):
        executor.execute(RequestSpec("GET", "users"), auth, token)
    assert transport.calls == []


def test_deadline_bounds_transport_timeout(executor, auth, transport):
    transport.queue("{}")
    executor.execute(RequestSpec("GET", "users"), auth, CancellationToken(timeout=30))
    assert 0 < transport.calls[0].timeout <= 30


def test_timeout_after_cancel_reports_cancelled(executor, auth, monkeypatch):
    token = CancellationToken()

    def _slow_request(method, url, **kwargs):
        token.cancel()
        raise requests.Timeout("read timed out")

    monkeypatch.setattr(requests, "request", _slow_request)

    with pytest.raises(CancelledError):
        executor.execute(RequestSpec("GET", "users"), auth, token)


def test_timeout_without_cancel_is_transport_error(executor, auth, transport):
    transport.queue(requests.Timeout("read timed out"))
    with pytest.raises(TransportError):
        executor.execute(RequestSpec("GET", "users"), auth, CancellationToken())


def test_exhausted_deadline_stops_before_sending(executor, auth, transport, monkeypatch):
    token = CancellationToken(timeout=30)
    monkeypatch.setattr(token, "remaining", lambda: 0.0)

    with pytest.raises(CancelledError):
        executor.execute(RequestSpec("GET", "users"), auth, token)
    assert transport.calls == []


def test_cancel_after_response_keeps_result(executor, auth, transport, monkeypatch):
    token = CancellationToken()
    stub_request = requests.request

    def _request_then_cancel(method, url, **kwargs):
        resp = stub_request(method, url, **kwargs)
        token.cancel()
        return resp

    transport.queue({"id": "42"}, status_code=201)
    monkeypatch.setattr(requests, "request", _request_then_cancel)

    raw = executor.execute(RequestSpec("POST", "users", body={"displayName": "A"}), auth, token)
    assert raw.status_code == 201
    assert json.loads(raw.body_text) == {"id": "42"}
    assert token.cancelled
    assert len(transport.calls) == 1
