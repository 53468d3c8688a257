"""MCP tool schema definitions."""

from typing import Any

# Every tool can target a project/dataset other than the configured default
TARGET_PROPERTIES = {
    "project_id": {
        "type": "string",
        "description": "Project ID (default: SANITY_PROJECT_ID)",
    },
    "dataset": {
        "type": "string",
        "description": "Dataset name (default: SANITY_DATASET)",
    },
}

ID_OR_IDS = {
    "oneOf": [
        {"type": "string"},
        {"type": "array", "items": {"type": "string"}, "minItems": 1},
    ]
}

DOCUMENT_OR_DOCUMENTS = {
    "oneOf": [
        {"type": "object"},
        {"type": "array", "items": {"type": "object"}, "minItems": 1},
    ]
}

RELEASE_ID = {
    "type": "string",
    "description": "Release ID (plain or _.releases.<id> form)",
}

RELEASE_TYPE = {
    "type": "string",
    "enum": ["asap", "scheduled", "undecided"],
    "description": "How the release is intended to be published",
}


def _tool(name: str, description: str, properties: dict[str, Any], required: list[str]) -> dict[str, Any]:
    return {
        "name": name,
        "description": description,
        "inputSchema": {
            "type": "object",
            "properties": {**properties, **TARGET_PROPERTIES},
            "required": required,
        },
    }


def _release_tool(name: str, description: str) -> dict[str, Any]:
    return _tool(name, description, {"release_id": RELEASE_ID}, ["release_id"])


def get_tool_schemas() -> dict[str, dict[str, Any]]:
    """Get all MCP tool schemas."""
    tools = [
        # Documents
        _tool(
            "query_documents",
            "Run a query against the dataset (raw perspective: drafts and versions included)",
            {
                "query": {"type": "string", "description": "Query string"},
                "params": {"type": "object", "description": "Query parameters, referenced as $name"},
            },
            ["query"],
        ),
        _tool(
            "get_document",
            "Retrieve a document by exact ID",
            {"document_id": {"type": "string", "description": "Document ID"}},
            ["document_id"],
        ),
        _tool(
            "get_documents",
            "Retrieve several documents by ID (missing IDs are omitted)",
            {"document_ids": {"type": "array", "items": {"type": "string"}, "minItems": 1}},
            ["document_ids"],
        ),
        _tool(
            "create_document",
            "Create one or more draft documents. Each document needs _type; _id is optional.",
            {
                "document": {**DOCUMENT_OR_DOCUMENTS, "description": "Document body or list of bodies"},
                "if_exists": {
                    "type": "string",
                    "enum": ["fail", "ignore"],
                    "description": "What to do when the ID already exists (default: fail)",
                },
            },
            ["document"],
        ),
        _tool(
            "edit_document",
            "Patch the draft form of one or more documents",
            {
                "document_id": {**ID_OR_IDS, "description": "Document ID or list of IDs"},
                "patch": {
                    "type": "object",
                    "description": "Patch operations",
                    "properties": {
                        "set": {"type": "object"},
                        "setIfMissing": {"type": "object"},
                        "unset": {"oneOf": [{"type": "string"}, {"type": "array", "items": {"type": "string"}}]},
                        "inc": {"type": "object"},
                        "dec": {"type": "object"},
                        "insert": {
                            "type": "object",
                            "properties": {
                                "items": {},
                                "position": {"type": "string", "enum": ["before", "after", "replace"]},
                                "at": {"type": "string"},
                            },
                        },
                        "diffMatchPatch": {"type": "object"},
                        "ifRevisionID": {"type": "string"},
                    },
                },
            },
            ["document_id", "patch"],
        ),
        _tool(
            "replace_draft_document",
            "Replace the full body of one or more drafts (_id and _type required)",
            {"document": {**DOCUMENT_OR_DOCUMENTS, "description": "Document body or list of bodies"}},
            ["document"],
        ),
        _tool(
            "delete_document",
            "Delete the published and draft forms of one or more documents",
            {
                "document_id": {**ID_OR_IDS, "description": "Document ID or list of IDs"},
                "include_drafts": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Extra IDs to delete in the same transaction",
                },
                "purge": {"type": "boolean", "description": "Purge document history (default: false)"},
            },
            ["document_id"],
        ),
        _tool(
            "publish_document",
            "Publish the draft of one or more documents",
            {"document_id": {**ID_OR_IDS, "description": "Document ID or list of IDs"}},
            ["document_id"],
        ),
        _tool(
            "unpublish_document",
            "Unpublish one or more documents, keeping their content as drafts",
            {"document_id": {**ID_OR_IDS, "description": "Document ID or list of IDs"}},
            ["document_id"],
        ),
        # Mutations
        _tool(
            "modify_documents",
            "Apply create/createOrReplace/createIfNotExists/delete/patch mutations in one atomic transaction",
            {
                "mutations": {
                    "type": "array",
                    "items": {"type": "object"},
                    "minItems": 1,
                    "description": "Mutations, each with exactly one of create, createOrReplace, "
                    "createIfNotExists, delete or patch",
                }
            },
            ["mutations"],
        ),
        _tool(
            "modify_portable_text_field",
            "Insert, replace or remove blocks in a rich-text (Portable Text) array field",
            {
                "document_id": {"type": "string", "description": "Document ID (exact)"},
                "field_path": {"type": "string", "description": "Path of the array field, e.g. body"},
                "operations": {
                    "type": "array",
                    "minItems": 1,
                    "items": {
                        "type": "object",
                        "properties": {
                            "type": {"type": "string", "enum": ["insert", "replace", "remove"]},
                            "position": {"type": "string", "enum": ["beginning", "end", "at"]},
                            "atIndex": {"type": "integer"},
                            "value": {
                                "description": "Plain text (converted to blocks) or block object(s)",
                            },
                        },
                        "required": ["type"],
                    },
                },
                "if_revision_id": {
                    "type": "string",
                    "description": "Only apply if the document is still at this revision",
                },
            },
            ["document_id", "field_path", "operations"],
        ),
        # Releases
        _tool(
            "create_release",
            "Create a new, empty content release",
            {
                "release_id": RELEASE_ID,
                "title": {"type": "string", "description": "Release title (default: Release: <id>)"},
                "description": {"type": "string"},
                "release_type": RELEASE_TYPE,
                "intended_publish_at": {
                    "type": "string",
                    "description": "ISO-8601 timestamp (required for scheduled releases)",
                },
            },
            ["release_id"],
        ),
        _release_tool("get_release", "Retrieve a release by ID"),
        _tool(
            "list_releases",
            "List releases",
            {
                "include_all": {
                    "type": "boolean",
                    "description": "Include published, archived and deleted releases (default: false)",
                }
            },
            [],
        ),
        _tool(
            "update_release",
            "Update release metadata",
            {
                "release_id": RELEASE_ID,
                "title": {"type": "string"},
                "description": {"type": "string"},
                "release_type": RELEASE_TYPE,
                "intended_publish_at": {"type": "string"},
            },
            ["release_id"],
        ),
        _tool(
            "add_document_to_release",
            "Add one or more documents to a release as versions",
            {
                "release_id": RELEASE_ID,
                "document_id": {**ID_OR_IDS, "description": "Base document ID or list of IDs"},
                "content": {
                    "type": "object",
                    "description": "Explicit version body (default: current published or draft content)",
                },
            },
            ["release_id", "document_id"],
        ),
        _tool(
            "remove_document_from_release",
            "Discard a document's version from a release",
            {
                "release_id": RELEASE_ID,
                "document_id": {"type": "string", "description": "Base document ID"},
                "purge": {"type": "boolean", "description": "Purge version history (default: false)"},
            },
            ["release_id", "document_id"],
        ),
        _tool(
            "unpublish_document_with_release",
            "Mark documents to be unpublished when their release publishes",
            {"version_id": {**ID_OR_IDS, "description": "Version ID(s): versions.<releaseId>.<documentId>"}},
            ["version_id"],
        ),
        _release_tool("list_release_documents", "List the documents in a release"),
        _release_tool("publish_release", "Publish every document in a release"),
        _tool(
            "schedule_release",
            "Schedule a release for publishing",
            {
                "release_id": RELEASE_ID,
                "publish_at": {"type": "string", "description": "ISO-8601 timestamp"},
            },
            ["release_id", "publish_at"],
        ),
        _release_tool("unschedule_release", "Cancel a scheduled release"),
        _release_tool("archive_release", "Archive a release"),
        _release_tool("unarchive_release", "Restore an archived release"),
        _release_tool("delete_release", "Delete an archived release"),
        # Subscriptions
        _tool(
            "subscribe_to_updates",
            "Listen for changes to documents matching a query",
            {
                "query": {"type": "string", "description": "Filter query, e.g. *[_type == \"post\"]"},
                "params": {"type": "object"},
            },
            ["query"],
        ),
        _tool(
            "unsubscribe_from_updates",
            "Close a change subscription",
            {"subscription_id": {"type": "string"}},
            ["subscription_id"],
        ),
        _tool("list_subscriptions", "List open change subscriptions", {}, []),
    ]
    return {tool["name"]: tool for tool in tools}
