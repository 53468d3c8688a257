"""Shared pytest fixtures and test utilities for Content-Gate tests."""

import copy
import itertools
from typing import Any, Callable, Optional

import pytest

from contentgate.config import get_settings
from contentgate.exceptions import ConflictError, RepositoryError
from contentgate.identity import RELEASES_PREFIX, normalize_release_id
from contentgate.services.document_service import DocumentService
from contentgate.services.mutation_service import MutationService
from contentgate.services.portable_text_service import PortableTextService
from contentgate.services.release_service import (
    ALL_RELEASES_QUERY,
    RELEASE_DOCUMENTS_QUERY,
    RELEASE_QUERY,
    ReleaseService,
)
from contentgate.services.subscriptions import reset_subscription_registry
from contentgate.storage import reset_clients
from contentgate.storage.transaction import Patch, Transaction

RELEASE_STATES_BY_ACTION = {
    "sanity.action.release.publish": "published",
    "sanity.action.release.schedule": "scheduled",
    "sanity.action.release.unschedule": "active",
    "sanity.action.release.archive": "archived",
    "sanity.action.release.unarchive": "active",
    "sanity.action.release.delete": "deleted",
}


class FakeStream:
    """Change stream replaying a fixed list of events."""

    def __init__(self, events: list[dict[str, Any]]):
        self.events = events
        self.closed = False

    def __iter__(self):
        for event in self.events:
            if self.closed:
                return
            yield event

    def close(self) -> None:
        self.closed = True


class FakeContentLake:
    """
    In-memory stand-in for the repository client.

    Records every read, query, commit and dispatched action, and applies the
    simple mutation and action semantics the services rely on.
    """

    def __init__(self):
        self.documents: dict[str, dict[str, Any]] = {}
        self.reads: list[str] = []
        self.fetches: list[tuple[str, dict[str, Any]]] = []
        self.commits: list[tuple[list[dict[str, Any]], str]] = []
        self.actions: list[list[dict[str, Any]]] = []
        self.listeners: list[FakeStream] = []
        self.stream_events: list[dict[str, Any]] = []
        self.query_result: Any = None
        self.fail_with: Optional[Exception] = None
        self.read_hook: Optional[Callable[[str], None]] = None
        self._revisions = itertools.count(1)

    # Seeding helpers

    def put(self, document: dict[str, Any]) -> dict[str, Any]:
        document = dict(document)
        document.setdefault("_rev", self._next_revision())
        self.documents[document["_id"]] = document
        return document

    def _next_revision(self) -> str:
        return f"rev-{next(self._revisions)}"

    # Client surface

    def fetch(self, query: str, params: dict[str, Any] | None = None) -> Any:
        params = params or {}
        self.fetches.append((query, params))
        if query == RELEASE_DOCUMENTS_QUERY:
            prefix = params["pattern"].rstrip("*")
            return [
                {"_id": doc["_id"], "_type": doc.get("_type"), "title": doc.get("title")}
                for doc_id, doc in sorted(self.documents.items())
                if doc_id.startswith(prefix)
            ]
        if query == ALL_RELEASES_QUERY:
            return [
                copy.deepcopy(doc)
                for doc_id, doc in sorted(self.documents.items())
                if doc_id.startswith(RELEASES_PREFIX)
            ]
        if query == RELEASE_QUERY:
            return copy.deepcopy(self.documents.get(params["id"]))
        return self.query_result

    def get_document(self, document_id: str) -> Optional[dict[str, Any]]:
        self.reads.append(document_id)
        if self.read_hook is not None:
            self.read_hook(document_id)
        document = self.documents.get(document_id)
        return copy.deepcopy(document) if document is not None else None

    def get_documents(self, document_ids: list[str]) -> list[dict[str, Any]]:
        return [doc for doc in (self.get_document(i) for i in document_ids) if doc is not None]

    def patch(self, selection: Any) -> Patch:
        return Patch(selection, client=self)

    def transaction(self) -> Transaction:
        return Transaction(client=self)

    def mutate(self, mutations: list[dict[str, Any]], visibility: str = "sync") -> dict[str, Any]:
        if self.fail_with is not None:
            raise self.fail_with
        self.commits.append((copy.deepcopy(mutations), visibility))

        staged = copy.deepcopy(self.documents)
        results = []
        for mutation in mutations:
            (kind, body), = mutation.items()
            results.append(self._apply_mutation(staged, kind, body))
        self.documents = staged
        return {"transactionId": f"txn-{len(self.commits)}", "results": results}

    def perform_actions(self, actions: list[dict[str, Any]]) -> dict[str, Any]:
        if self.fail_with is not None:
            raise self.fail_with
        self.actions.append(copy.deepcopy(actions))
        for action in actions:
            self._apply_action(action)
        return {"transactionId": f"action-{len(self.actions)}"}

    def listen(self, query: str, params: dict[str, Any] | None = None) -> FakeStream:
        stream = FakeStream(list(self.stream_events))
        self.listeners.append(stream)
        return stream

    # Semantics

    def _apply_mutation(self, staged: dict[str, Any], kind: str, body: dict[str, Any]) -> dict[str, Any]:
        if kind in ("create", "createOrReplace", "createIfNotExists"):
            document = dict(body)
            document.setdefault("_id", f"generated-{len(staged) + 1}")
            exists = document["_id"] in staged
            if kind == "create" and exists:
                raise ConflictError(f"Document {document['_id']} already exists", status_code=409)
            if kind == "createIfNotExists" and exists:
                return {"id": document["_id"], "operation": "none"}
            document["_rev"] = self._next_revision()
            staged[document["_id"]] = document
            return {"id": document["_id"], "operation": "create"}

        if kind == "delete":
            staged.pop(body.get("id"), None)
            return {"id": body.get("id"), "operation": "delete"}

        if kind == "patch":
            document_id = body.get("id")
            document = staged.get(document_id)
            if document is None:
                raise RepositoryError(f"Document {document_id} not found", status_code=404)
            if body.get("ifRevisionID") and body["ifRevisionID"] != document.get("_rev"):
                raise ConflictError(f"Revision mismatch for {document_id}", status_code=409)
            for path, value in body.get("set", {}).items():
                document[path] = value
            for path in body.get("unset", []):
                document.pop(path, None)
            for path, amount in body.get("inc", {}).items():
                document[path] = document.get(path, 0) + amount
            document["_rev"] = self._next_revision()
            return {"id": document_id, "operation": "update"}

        raise RepositoryError(f"Unsupported mutation {kind}")

    def _apply_action(self, action: dict[str, Any]) -> None:
        action_type = action["actionType"]
        if action_type == "sanity.action.release.create":
            release_id = normalize_release_id(action["releaseId"])
            doc_id = f"{RELEASES_PREFIX}{release_id}"
            if doc_id in self.documents:
                raise ConflictError(f"Release {release_id} already exists", status_code=409)
            self.put({
                "_id": doc_id,
                "_type": "system.release",
                "name": release_id,
                "state": "active",
                "metadata": action["metadata"],
            })
        elif action_type == "sanity.action.document.version.create":
            self.put(action["attributes"])
        elif action_type == "sanity.action.document.version.discard":
            self.documents.pop(action["versionId"], None)
        elif action_type in RELEASE_STATES_BY_ACTION:
            release = self.documents[f"{RELEASES_PREFIX}{action['releaseId']}"]
            release["state"] = RELEASE_STATES_BY_ACTION[action_type]

    def action_types(self) -> list[str]:
        return [action["actionType"] for batch in self.actions for action in batch]


@pytest.fixture(autouse=True)
def clean_globals():
    """Reset cached settings, clients and subscriptions around every test."""
    get_settings.cache_clear()
    yield
    reset_subscription_registry()
    reset_clients()
    get_settings.cache_clear()


@pytest.fixture
def lake() -> FakeContentLake:
    """Create an empty in-memory repository."""
    return FakeContentLake()


@pytest.fixture
def mutation_service(lake):
    return MutationService(lake)


@pytest.fixture
def document_service(lake):
    return DocumentService(lake)


@pytest.fixture
def release_service(lake):
    return ReleaseService(lake, document_limit=50, api_version="2024-05-23")


@pytest.fixture
def portable_text_service(lake):
    return PortableTextService(lake, strict=True)


@pytest.fixture
def published_post(lake):
    """A published document with a title and a two-block body."""
    return lake.put({
        "_id": "post-42",
        "_type": "post",
        "title": "Hello",
        "body": [
            {"_type": "block", "_key": "a", "children": [{"_type": "span", "text": "First"}]},
            {"_type": "block", "_key": "b", "children": [{"_type": "span", "text": "Second"}]},
        ],
    })
