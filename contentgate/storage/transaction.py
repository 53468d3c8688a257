"""Patch and transaction builders producing repository mutation payloads."""

from typing import Any, Optional, Protocol, Union

Selection = Union[str, dict[str, Any]]

# Builder operation name -> mutation wire key
_WIRE_KEYS = {
    "set": "set",
    "set_if_missing": "setIfMissing",
    "unset": "unset",
    "inc": "inc",
    "dec": "dec",
    "insert": "insert",
    "diff_match_patch": "diffMatchPatch",
}


class MutationSink(Protocol):
    def mutate(
        self, mutations: list[dict[str, Any]], visibility: str = "sync"
    ) -> dict[str, Any]: ...


def _selection_body(selection: Selection) -> dict[str, Any]:
    if isinstance(selection, str):
        return {"id": selection}
    body: dict[str, Any] = {"query": selection["query"]}
    if selection.get("params"):
        body["params"] = selection["params"]
    return body


class Patch:
    """
    Accumulates patch operations for one document id or query selection.

    Operations are recorded in call order in ``operations`` and merged into a
    single patch body by ``serialize()``.
    """

    def __init__(self, selection: Selection, client: Optional[MutationSink] = None):
        self.selection = selection
        self.client = client
        self.operations: list[tuple[str, Any]] = []
        self.revision_id: Optional[str] = None

    def if_revision_id(self, revision_id: str) -> "Patch":
        """Only apply the patch if the document is still at ``revision_id``."""
        self.revision_id = revision_id
        return self

    def set(self, attributes: dict[str, Any]) -> "Patch":
        return self._record("set", dict(attributes))

    def set_if_missing(self, attributes: dict[str, Any]) -> "Patch":
        return self._record("set_if_missing", dict(attributes))

    def unset(self, paths: list[str]) -> "Patch":
        return self._record("unset", list(paths))

    def inc(self, attributes: dict[str, float]) -> "Patch":
        return self._record("inc", dict(attributes))

    def dec(self, attributes: dict[str, float]) -> "Patch":
        return self._record("dec", dict(attributes))

    def insert(self, position: str, at: str, items: list[Any]) -> "Patch":
        return self._record("insert", {position: at, "items": list(items)})

    def diff_match_patch(self, attributes: dict[str, str]) -> "Patch":
        return self._record("diff_match_patch", dict(attributes))

    @property
    def operation_names(self) -> list[str]:
        return [name for name, _ in self.operations]

    def serialize(self) -> dict[str, Any]:
        body = _selection_body(self.selection)
        if self.revision_id:
            body["ifRevisionID"] = self.revision_id
        for name, value in self.operations:
            key = _WIRE_KEYS[name]
            if name == "unset":
                body.setdefault(key, []).extend(value)
            elif name == "insert":
                body[key] = value
            else:
                body.setdefault(key, {}).update(value)
        return body

    def commit(self, visibility: str = "sync") -> dict[str, Any]:
        if self.client is None:
            raise RuntimeError("Patch is not bound to a client")
        return self.client.mutate([{"patch": self.serialize()}], visibility=visibility)

    def _record(self, name: str, value: Any) -> "Patch":
        self.operations.append((name, value))
        return self

    def __repr__(self) -> str:
        return f"<Patch(selection={self.selection!r}, operations={self.operation_names!r})>"


class Transaction:
    """An ordered batch of mutations committed atomically."""

    def __init__(self, client: Optional[MutationSink] = None):
        self.client = client
        self.mutations: list[dict[str, Any]] = []

    def create(self, document: dict[str, Any]) -> "Transaction":
        return self._add({"create": document})

    def create_or_replace(self, document: dict[str, Any]) -> "Transaction":
        return self._add({"createOrReplace": document})

    def create_if_not_exists(self, document: dict[str, Any]) -> "Transaction":
        return self._add({"createIfNotExists": document})

    def delete(self, selection: Selection) -> "Transaction":
        return self._add({"delete": _selection_body(selection)})

    def patch(self, patch: Patch) -> "Transaction":
        return self._add({"patch": patch.serialize()})

    def serialize(self) -> list[dict[str, Any]]:
        return list(self.mutations)

    def commit(self, visibility: str = "sync") -> dict[str, Any]:
        if self.client is None:
            raise RuntimeError("Transaction is not bound to a client")
        return self.client.mutate(self.serialize(), visibility=visibility)

    def _add(self, mutation: dict[str, Any]) -> "Transaction":
        self.mutations.append(mutation)
        return self

    def __len__(self) -> int:
        return len(self.mutations)
