"""Storage layer for Content-Gate: repository client and action dispatcher."""

from contentgate.storage.actions import ActionDispatcher
from contentgate.storage.client import ContentLakeClient
from contentgate.storage.transaction import Patch, Transaction

# Clients by (project_id, dataset)
_clients: dict[tuple[str | None, str | None], ContentLakeClient] = {}


def get_client(project_id: str | None = None, dataset: str | None = None) -> ContentLakeClient:
    """
    Get or create the shared client for a project and dataset.

    Args:
        project_id: Project ID. If None, uses the configured default.
        dataset: Dataset name. If None, uses the configured default.

    Returns:
        ContentLakeClient instance
    """
    key = (project_id, dataset)
    if key not in _clients:
        _clients[key] = ContentLakeClient(project_id=project_id, dataset=dataset)
    return _clients[key]


def reset_clients() -> None:
    """Close and forget every shared client (useful for testing)."""
    for client in _clients.values():
        client.close()
    _clients.clear()


__all__ = [
    "ActionDispatcher",
    "ContentLakeClient",
    "Patch",
    "Transaction",
    "get_client",
    "reset_clients",
]
