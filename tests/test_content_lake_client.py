"""Tests for the HTTP repository client and change stream parsing."""

import json

import httpx
import pytest

pytestmark = pytest.mark.unit

from contentgate.exceptions import ConfigurationError, ConflictError, RepositoryError
from contentgate.storage import get_client, reset_clients
from contentgate.storage.client import ContentLakeClient
from contentgate.storage.listener import parse_events


class Recorder:
    """MockTransport handler that records requests and replays canned responses."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def make_client(*responses, **kwargs):
    recorder = Recorder(responses)
    client = ContentLakeClient(
        project_id="abc123",
        dataset="staging",
        token="secret",
        api_version="2024-05-23",
        transport=httpx.MockTransport(recorder),
        **kwargs,
    )
    return client, recorder


class TestClientConfiguration:
    """Test client construction."""

    def test_requires_project(self, monkeypatch):
        monkeypatch.delenv("SANITY_PROJECT_ID", raising=False)
        with pytest.raises(ConfigurationError, match="SANITY_PROJECT_ID"):
            ContentLakeClient()

    def test_base_url_and_auth(self):
        client, recorder = make_client(httpx.Response(200, json={"result": []}))
        client.fetch("*[]")

        request = recorder.requests[0]
        assert request.url.host == "abc123.api.sanity.io"
        assert request.url.path == "/v2024-05-23/data/query/staging"
        assert request.headers["Authorization"] == "Bearer secret"

    def test_get_client_is_cached_per_target(self, monkeypatch):
        monkeypatch.setenv("SANITY_PROJECT_ID", "default-project")

        first = get_client()
        assert get_client() is first
        other = get_client("other", "production")
        assert other is not first
        assert other.project_id == "other"
        assert first.project_id == "default-project"
        reset_clients()
        assert get_client() is not first


class TestReads:
    """Test query and document reads."""

    def test_fetch_encodes_params(self):
        client, recorder = make_client(httpx.Response(200, json={"result": [{"_id": "a"}]}))

        result = client.fetch("*[_type == $type]", {"type": "post", "limit": 5})

        assert result == [{"_id": "a"}]
        params = recorder.requests[0].url.params
        assert params["query"] == "*[_type == $type]"
        assert params["$type"] == '"post"'
        assert params["$limit"] == "5"
        assert params["perspective"] == "raw"

    def test_get_document(self):
        client, recorder = make_client(
            httpx.Response(200, json={"documents": [{"_id": "post-1", "_type": "post"}]})
        )
        assert client.get_document("post-1")["_type"] == "post"
        assert recorder.requests[0].url.path.endswith("/data/doc/staging/post-1")

    def test_get_missing_document_is_none(self):
        client, _ = make_client(
            httpx.Response(200, json={"documents": []}),
            httpx.Response(404, json={"error": {"description": "not found"}}),
        )
        assert client.get_document("post-1") is None
        assert client.get_document("post-2") is None

    def test_get_documents_joins_ids(self):
        client, recorder = make_client(
            httpx.Response(200, json={"documents": [{"_id": "a"}, None, {"_id": "c"}]})
        )
        documents = client.get_documents(["a", "b", "c"])

        assert [doc["_id"] for doc in documents] == ["a", "c"]
        assert recorder.requests[0].url.path.endswith("/data/doc/staging/a,b,c")


class TestWrites:
    """Test mutation and action requests."""

    def test_transaction_commit(self):
        client, recorder = make_client(
            httpx.Response(200, json={"transactionId": "t1", "results": [{"id": "a"}]})
        )

        transaction = client.transaction()
        transaction.create({"_id": "a", "_type": "post"})
        transaction.patch(client.patch("b").set({"x": 1}).inc({"n": 1}))
        result = transaction.commit()

        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.params["returnIds"] == "true"
        assert request.url.params["visibility"] == "sync"
        assert json.loads(request.content) == {
            "mutations": [
                {"create": {"_id": "a", "_type": "post"}},
                {"patch": {"id": "b", "set": {"x": 1}, "inc": {"n": 1}}},
            ]
        }
        assert result["transactionId"] == "t1"

    def test_patch_commit_with_revision(self):
        client, recorder = make_client(httpx.Response(200, json={"results": []}))

        client.patch("a").if_revision_id("r1").unset(["x"]).unset(["y"]).commit(visibility="async")

        body = json.loads(recorder.requests[0].content)
        assert body == {"mutations": [{"patch": {"id": "a", "ifRevisionID": "r1", "unset": ["x", "y"]}}]}
        assert recorder.requests[0].url.params["visibility"] == "async"

    def test_perform_actions(self):
        client, recorder = make_client(httpx.Response(200, json={"transactionId": "t2"}))

        client.perform_actions([{"actionType": "sanity.action.release.publish", "releaseId": "r"}])

        request = recorder.requests[0]
        assert request.url.path.endswith("/data/actions/staging")
        assert json.loads(request.content) == {
            "actions": [{"actionType": "sanity.action.release.publish", "releaseId": "r"}]
        }


class TestErrors:
    """Test mapping of HTTP failures."""

    def test_http_error_becomes_repository_error(self):
        client, _ = make_client(
            httpx.Response(400, json={"error": {"description": "Mutation failed: bad patch"}})
        )
        with pytest.raises(RepositoryError) as exc_info:
            client.mutate([{"create": {"_type": "post"}}])

        assert exc_info.value.status_code == 400
        assert "Mutation failed: bad patch" in str(exc_info.value)

    def test_conflict(self):
        client, _ = make_client(httpx.Response(409, json={"error": "Conflict", "message": "exists"}))
        with pytest.raises(ConflictError, match="exists"):
            client.perform_actions([{"actionType": "sanity.action.release.create"}])

    def test_transport_error(self):
        client, _ = make_client(httpx.ConnectError("connection refused"))
        with pytest.raises(RepositoryError, match="connection refused") as exc_info:
            client.fetch("*[]")
        assert isinstance(exc_info.value.original_error, httpx.ConnectError)

    def test_with_context_keeps_class_and_status(self):
        error = ConflictError("409 Conflict", status_code=409)
        wrapped = error.with_context("Failed to publish release")

        assert isinstance(wrapped, ConflictError)
        assert str(wrapped) == "Failed to publish release: 409 Conflict"
        assert wrapped.status_code == 409
        assert wrapped.original_error is error


class TestChangeStream:
    """Test server-sent event parsing and streaming."""

    def test_parse_events(self):
        lines = [
            "event: welcome",
            'data: {"listenerName": "L1"}',
            "",
            ": keepalive",
            "",
            "event: mutation",
            'data: {"documentId": "post-1",',
            'data:  "transition": "update"}',
            "",
            "data: not json",
        ]
        events = list(parse_events(lines))

        assert events == [
            {"type": "welcome", "listenerName": "L1"},
            {"type": "mutation", "documentId": "post-1", "transition": "update"},
            {"type": "message", "data": "not json"},
        ]

    def test_listen_streams_events(self):
        body = 'event: mutation\ndata: {"documentId": "a"}\n\n'
        client, recorder = make_client(
            httpx.Response(200, text=body, headers={"Content-Type": "text/event-stream"})
        )

        stream = client.listen("*[_type == $t]", {"t": "post"})
        events = list(stream)

        assert events == [{"type": "mutation", "documentId": "a"}]
        params = recorder.requests[0].url.params
        assert params["$t"] == '"post"'
        assert recorder.requests[0].url.path.endswith("/data/listen/staging")

    def test_listen_error(self):
        client, _ = make_client(httpx.Response(401, text="unauthorized"))
        with pytest.raises(RepositoryError):
            list(client.listen("*[]"))
