"""HTTP client for the content repository (query, document, mutate, actions, listen)."""

import json
import logging
from typing import Any, Optional

import httpx

from contentgate.config import get_settings
from contentgate.exceptions import ConfigurationError, ConflictError, RepositoryError
from contentgate.storage.listener import ChangeStream
from contentgate.storage.transaction import Patch, Selection, Transaction

logger = logging.getLogger(__name__)

HTTP_NOT_FOUND = 404
HTTP_CONFLICT = 409


def _error_detail(response: httpx.Response) -> str:
    """Extract the most useful error description from a failed response."""
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            return error.get("description") or error.get("message") or json.dumps(error)
        if isinstance(error, str):
            return body.get("message") or error
        if body.get("message"):
            return body["message"]
    return json.dumps(body)


class ContentLakeClient:
    """
    Client bound to one project and dataset.

    Every failure is raised as ``RepositoryError`` (``ConflictError`` for HTTP
    409). No retries are attempted.
    """

    def __init__(
        self,
        project_id: str | None = None,
        dataset: str | None = None,
        token: str | None = None,
        api_version: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            project_id: Project ID. If None, reads from settings.
            dataset: Dataset name. If None, reads from settings.
            token: API token. If None, reads from settings.
            api_version: Dated API version. If None, reads from settings.
            timeout: Request timeout in seconds. If None, reads from settings.
            transport: Optional httpx transport (used by tests)

        Raises:
            ConfigurationError: If no project ID is configured
        """
        settings = get_settings()
        self.project_id = project_id or settings.sanity_project_id
        self.dataset = dataset or settings.sanity_dataset
        if not self.project_id:
            raise ConfigurationError(
                "A project ID is required. Provide project_id or set SANITY_PROJECT_ID."
            )

        token = token if token is not None else settings.sanity_api_token
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.http = httpx.Client(
            base_url=settings.project_url(self.project_id, api_version),
            headers=headers,
            timeout=timeout or settings.http_timeout,
            transport=transport,
        )

    def fetch(self, query: str, params: dict[str, Any] | None = None) -> Any:
        """Run a query and return its ``result``."""
        query_params: dict[str, Any] = {"query": query, "perspective": "raw"}
        for name, value in (params or {}).items():
            query_params[f"${name}"] = json.dumps(value)
        body = self._request("GET", f"/data/query/{self.dataset}", params=query_params)
        return body.get("result")

    def get_document(self, document_id: str) -> Optional[dict[str, Any]]:
        """Get a document by exact id, or None when it doesn't exist."""
        documents = self.get_documents([document_id])
        return documents[0] if documents else None

    def get_documents(self, document_ids: list[str]) -> list[dict[str, Any]]:
        """Get the documents that exist among ``document_ids``."""
        if not document_ids:
            return []
        try:
            body = self._request(
                "GET", f"/data/doc/{self.dataset}/{','.join(document_ids)}"
            )
        except RepositoryError as e:
            if e.status_code == HTTP_NOT_FOUND:
                return []
            raise
        return [doc for doc in body.get("documents", []) if doc]

    def patch(self, selection: Selection) -> Patch:
        return Patch(selection, client=self)

    def transaction(self) -> Transaction:
        return Transaction(client=self)

    def mutate(
        self, mutations: list[dict[str, Any]], visibility: str = "sync"
    ) -> dict[str, Any]:
        """Commit mutations atomically."""
        logger.info(f"Committing {len(mutations)} mutation(s) to {self.dataset}")
        return self._request(
            "POST",
            f"/data/mutate/{self.dataset}",
            params={"returnIds": "true", "visibility": visibility},
            json={"mutations": mutations},
        )

    def perform_actions(self, actions: list[dict[str, Any]]) -> dict[str, Any]:
        """Send action payloads to the actions endpoint."""
        return self._request(
            "POST", f"/data/actions/{self.dataset}", json={"actions": actions}
        )

    def listen(self, query: str, params: dict[str, Any] | None = None) -> ChangeStream:
        """Open a change stream for documents matching ``query``."""
        listen_params: dict[str, Any] = {"query": query, "includeResult": "true"}
        for name, value in (params or {}).items():
            listen_params[f"${name}"] = json.dumps(value)
        return ChangeStream(self.http, f"/data/listen/{self.dataset}", listen_params)

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "ContentLakeClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = self.http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise RepositoryError(f"Request to {path} failed: {e}", original_error=e) from e

        if response.is_error:
            detail = _error_detail(response)
            message = f"{response.status_code} {response.reason_phrase} - {detail}"
            error_class = ConflictError if response.status_code == HTTP_CONFLICT else RepositoryError
            if response.status_code != HTTP_NOT_FOUND:
                logger.error(f"{method} {path} returned {message}")
            raise error_class(message, status_code=response.status_code)

        return response.json()

    def __repr__(self) -> str:
        return f"<ContentLakeClient(project_id={self.project_id!r}, dataset={self.dataset!r})>"
