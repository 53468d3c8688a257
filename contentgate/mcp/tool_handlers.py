"""MCP tool handlers for executing tool operations."""

import logging
from typing import Any, Callable

from mcp import McpError
from mcp.types import ErrorData, TextContent

from contentgate.exceptions import (
    ConfigurationError,
    ConflictError,
    LimitExceededError,
    NotFoundError,
    RepositoryError,
    ValidationError,
)
from contentgate.mcp.serializers import text_result
from contentgate.mcp.tool_schemas import get_tool_schemas
from contentgate.models.result import OperationResult
from contentgate.services.document_service import DocumentService
from contentgate.services.mutation_service import MutationService
from contentgate.services.portable_text_service import PortableTextService
from contentgate.services.release_service import ReleaseService
from contentgate.services.subscriptions import get_subscription_registry

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str | None, str | None], Any]


def _client(arguments: dict[str, Any], clients: ClientFactory) -> Any:
    return clients(arguments.get("project_id"), arguments.get("dataset"))


# Document handlers
async def handle_query_documents(arguments: dict[str, Any], clients: ClientFactory) -> list[TextContent]:
    """Handle query_documents tool."""
    service = DocumentService(_client(arguments, clients))
    result = service.query_documents(arguments["query"], arguments.get("params"))
    count = len(result) if isinstance(result, list) else None
    return text_result(
        OperationResult(
            message="Query executed" if count is None else f"Query returned {count} result(s)",
            data={"count": count} if count is not None else {},
            result=result,
        )
    )


async def handle_get_document(arguments: dict[str, Any], clients: ClientFactory) -> list[TextContent]:
    """Handle get_document tool."""
    service = DocumentService(_client(arguments, clients))
    document = service.get_document(arguments["document_id"])
    return text_result(
        OperationResult(
            message=f"Retrieved document {arguments['document_id']}",
            data={"document": document},
        )
    )


async def handle_get_documents(arguments: dict[str, Any], clients: ClientFactory) -> list[TextContent]:
    """Handle get_documents tool."""
    service = DocumentService(_client(arguments, clients))
    documents = service.get_documents(arguments["document_ids"])
    return text_result(
        OperationResult(
            message=f"Retrieved {len(documents)} document(s)",
            data={"count": len(documents), "documents": documents},
        )
    )


async def handle_create_document(arguments: dict[str, Any], clients: ClientFactory) -> list[TextContent]:
    """Handle create_document tool."""
    service = DocumentService(_client(arguments, clients))
    return text_result(
        service.create_document(arguments["document"], if_exists=arguments.get("if_exists", "fail"))
    )


async def handle_edit_document(arguments: dict[str, Any], clients: ClientFactory) -> list[TextContent]:
    """Handle edit_document tool."""
    service = DocumentService(_client(arguments, clients))
    return text_result(service.edit_document(arguments["document_id"], arguments["patch"]))


async def handle_replace_draft_document(arguments: dict[str, Any], clients: ClientFactory) -> list[TextContent]:
    """Handle replace_draft_document tool."""
    service = DocumentService(_client(arguments, clients))
    return text_result(service.replace_draft_document(arguments["document"]))


async def handle_delete_document(arguments: dict[str, Any], clients: ClientFactory) -> list[TextContent]:
    """Handle delete_document tool."""
    service = DocumentService(_client(arguments, clients))
    return text_result(
        service.delete_document(
            arguments["document_id"],
            include_drafts=arguments.get("include_drafts"),
            purge=arguments.get("purge", False),
        )
    )


async def handle_publish_document(arguments: dict[str, Any], clients: ClientFactory) -> list[TextContent]:
    """Handle publish_document tool."""
    service = DocumentService(_client(arguments, clients))
    return text_result(service.publish_document(arguments["document_id"]))


async def handle_unpublish_document(arguments: dict[str, Any], clients: ClientFactory) -> list[TextContent]:
    """Handle unpublish_document tool."""
    service = DocumentService(_client(arguments, clients))
    return text_result(service.unpublish_document(arguments["document_id"]))


# Mutation handlers
async def handle_modify_documents(arguments: dict[str, Any], clients: ClientFactory) -> list[TextContent]:
    """Handle modify_documents tool."""
    service = MutationService(_client(arguments, clients))
    return text_result(service.modify_documents(arguments["mutations"]))


async def handle_modify_portable_text_field(
    arguments: dict[str, Any], clients: ClientFactory
) -> list[TextContent]:
    """Handle modify_portable_text_field tool."""
    service = PortableTextService(_client(arguments, clients))
    return text_result(
        service.modify_field(
            document_id=arguments["document_id"],
            field_path=arguments["field_path"],
            operations=arguments["operations"],
            if_revision_id=arguments.get("if_revision_id"),
        )
    )


# Release handlers
async def handle_create_release(arguments: dict[str, Any], clients: ClientFactory) -> list[TextContent]:
    """Handle create_release tool."""
    service = ReleaseService(_client(arguments, clients))
    return text_result(
        service.create_release(
            release_id=arguments["release_id"],
            title=arguments.get("title"),
            description=arguments.get("description"),
            release_type=arguments.get("release_type"),
            intended_publish_at=arguments.get("intended_publish_at"),
        )
    )


async def handle_get_release(arguments: dict[str, Any], clients: ClientFactory) -> list[TextContent]:
    """Handle get_release tool."""
    service = ReleaseService(_client(arguments, clients))
    release = service.get_release(arguments["release_id"])
    return text_result(
        OperationResult(message=f"Retrieved release {release.id}", data={"release": release})
    )


async def handle_list_releases(arguments: dict[str, Any], clients: ClientFactory) -> list[TextContent]:
    """Handle list_releases tool."""
    service = ReleaseService(_client(arguments, clients))
    releases = service.list_releases(include_all=arguments.get("include_all", False))
    return text_result(
        OperationResult(
            message=f"Found {len(releases)} release(s)",
            data={"count": len(releases), "releases": releases},
        )
    )


async def handle_update_release(arguments: dict[str, Any], clients: ClientFactory) -> list[TextContent]:
    """Handle update_release tool."""
    service = ReleaseService(_client(arguments, clients))
    return text_result(
        service.update_release(
            release_id=arguments["release_id"],
            title=arguments.get("title"),
            description=arguments.get("description"),
            release_type=arguments.get("release_type"),
            intended_publish_at=arguments.get("intended_publish_at"),
        )
    )


async def handle_add_document_to_release(arguments: dict[str, Any], clients: ClientFactory) -> list[TextContent]:
    """Handle add_document_to_release tool."""
    service = ReleaseService(_client(arguments, clients))
    return text_result(
        service.add_document_to_release(
            arguments["release_id"], arguments["document_id"], content=arguments.get("content")
        )
    )


async def handle_remove_document_from_release(
    arguments: dict[str, Any], clients: ClientFactory
) -> list[TextContent]:
    """Handle remove_document_from_release tool."""
    service = ReleaseService(_client(arguments, clients))
    return text_result(
        service.remove_document_from_release(
            arguments["release_id"], arguments["document_id"], purge=arguments.get("purge", False)
        )
    )


async def handle_unpublish_document_with_release(
    arguments: dict[str, Any], clients: ClientFactory
) -> list[TextContent]:
    """Handle unpublish_document_with_release tool."""
    service = ReleaseService(_client(arguments, clients))
    return text_result(service.unpublish_document_with_release(arguments["version_id"]))


async def handle_list_release_documents(arguments: dict[str, Any], clients: ClientFactory) -> list[TextContent]:
    """Handle list_release_documents tool."""
    service = ReleaseService(_client(arguments, clients))
    listing = service.list_release_documents(arguments["release_id"])
    return text_result(
        OperationResult(
            message=f"Release {listing.release_id} contains {listing.document_count} document(s)",
            data=listing.to_dict(),
        )
    )


async def handle_publish_release(arguments: dict[str, Any], clients: ClientFactory) -> list[TextContent]:
    """Handle publish_release tool."""
    service = ReleaseService(_client(arguments, clients))
    return text_result(service.publish_release(arguments["release_id"]))


async def handle_schedule_release(arguments: dict[str, Any], clients: ClientFactory) -> list[TextContent]:
    """Handle schedule_release tool."""
    service = ReleaseService(_client(arguments, clients))
    return text_result(service.schedule_release(arguments["release_id"], arguments["publish_at"]))


async def handle_unschedule_release(arguments: dict[str, Any], clients: ClientFactory) -> list[TextContent]:
    """Handle unschedule_release tool."""
    service = ReleaseService(_client(arguments, clients))
    return text_result(service.unschedule_release(arguments["release_id"]))


async def handle_archive_release(arguments: dict[str, Any], clients: ClientFactory) -> list[TextContent]:
    """Handle archive_release tool."""
    service = ReleaseService(_client(arguments, clients))
    return text_result(service.archive_release(arguments["release_id"]))


async def handle_unarchive_release(arguments: dict[str, Any], clients: ClientFactory) -> list[TextContent]:
    """Handle unarchive_release tool."""
    service = ReleaseService(_client(arguments, clients))
    return text_result(service.unarchive_release(arguments["release_id"]))


async def handle_delete_release(arguments: dict[str, Any], clients: ClientFactory) -> list[TextContent]:
    """Handle delete_release tool."""
    service = ReleaseService(_client(arguments, clients))
    return text_result(service.delete_release(arguments["release_id"]))


# Subscription handlers
async def handle_subscribe_to_updates(arguments: dict[str, Any], clients: ClientFactory) -> list[TextContent]:
    """Handle subscribe_to_updates tool."""
    registry = get_subscription_registry()
    subscription = registry.subscribe(
        _client(arguments, clients), arguments["query"], arguments.get("params")
    )
    return text_result(
        OperationResult(
            message=f"Subscribed to updates for query: {subscription.query}",
            data={"subscriptionId": subscription.id},
        )
    )


async def handle_unsubscribe_from_updates(
    arguments: dict[str, Any], clients: ClientFactory
) -> list[TextContent]:
    """Handle unsubscribe_from_updates tool."""
    subscription_id = arguments["subscription_id"]
    if not get_subscription_registry().unsubscribe(subscription_id):
        raise NotFoundError("Subscription", subscription_id)
    return text_result(
        OperationResult(
            message=f"Unsubscribed {subscription_id}",
            data={"subscriptionId": subscription_id},
        )
    )


async def handle_list_subscriptions(arguments: dict[str, Any], clients: ClientFactory) -> list[TextContent]:
    """Handle list_subscriptions tool."""
    registry = get_subscription_registry()
    registry.evict_idle()
    subscriptions = registry.list()
    return text_result(
        OperationResult(
            message=f"{len(subscriptions)} active subscription(s)",
            data={"count": len(subscriptions), "subscriptions": subscriptions},
        )
    )


# Tool handler registry
TOOL_HANDLERS: dict[str, Callable] = {
    "query_documents": handle_query_documents,
    "get_document": handle_get_document,
    "get_documents": handle_get_documents,
    "create_document": handle_create_document,
    "edit_document": handle_edit_document,
    "replace_draft_document": handle_replace_draft_document,
    "delete_document": handle_delete_document,
    "publish_document": handle_publish_document,
    "unpublish_document": handle_unpublish_document,
    "modify_documents": handle_modify_documents,
    "modify_portable_text_field": handle_modify_portable_text_field,
    "create_release": handle_create_release,
    "get_release": handle_get_release,
    "list_releases": handle_list_releases,
    "update_release": handle_update_release,
    "add_document_to_release": handle_add_document_to_release,
    "remove_document_from_release": handle_remove_document_from_release,
    "unpublish_document_with_release": handle_unpublish_document_with_release,
    "list_release_documents": handle_list_release_documents,
    "publish_release": handle_publish_release,
    "schedule_release": handle_schedule_release,
    "unschedule_release": handle_unschedule_release,
    "archive_release": handle_archive_release,
    "unarchive_release": handle_unarchive_release,
    "delete_release": handle_delete_release,
    "subscribe_to_updates": handle_subscribe_to_updates,
    "unsubscribe_from_updates": handle_unsubscribe_from_updates,
    "list_subscriptions": handle_list_subscriptions,
}


async def call_tool_handler(
    tool_name: str, arguments: dict[str, Any], clients: ClientFactory
) -> list[TextContent]:
    """
    Call the appropriate tool handler.

    Args:
        tool_name: Name of the tool to call
        arguments: Tool arguments
        clients: Factory returning a repository client for (project_id, dataset)

    Returns:
        List of TextContent with tool execution result

    Raises:
        McpError: If tool name is unknown or handler raises an error
    """
    if tool_name not in TOOL_HANDLERS:
        raise McpError(
            ErrorData(
                code=-32601,  # Method not found
                message=f"Unknown tool: {tool_name}",
            )
        )

    missing = [
        name
        for name in get_tool_schemas()[tool_name]["inputSchema"]["required"]
        if name not in arguments
    ]
    if missing:
        raise McpError(
            ErrorData(
                code=-32602,  # Invalid params
                message=f"Validation error: missing required argument(s): {', '.join(missing)}",
            )
        )

    handler = TOOL_HANDLERS[tool_name]

    try:
        return await handler(arguments, clients)
    except McpError:
        raise
    except ValidationError as e:
        raise McpError(
            ErrorData(
                code=-32602,  # Invalid params
                message=f"Validation error: {str(e)}",
            )
        )
    except NotFoundError as e:
        raise McpError(
            ErrorData(
                code=-32001,  # Custom error: not found
                message=str(e),
            )
        )
    except ConflictError as e:
        raise McpError(
            ErrorData(
                code=-32002,  # Custom error: conflict
                message=str(e),
            )
        )
    except LimitExceededError as e:
        raise McpError(
            ErrorData(
                code=-32003,  # Custom error: limit exceeded
                message=str(e),
            )
        )
    except RepositoryError as e:
        raise McpError(
            ErrorData(
                code=-32603,  # Internal error
                message=f"Repository error: {str(e)}",
            )
        )
    except ConfigurationError as e:
        raise McpError(
            ErrorData(
                code=-32603,  # Internal error
                message=f"Configuration error: {str(e)}",
            )
        )
    except Exception as e:
        logger.exception(f"Unexpected error in tool {tool_name}")
        raise McpError(
            ErrorData(
                code=-32603,  # Internal error
                message=f"Internal error: {str(e)}",
            )
        )
