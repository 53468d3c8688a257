"""Basic usage example for Content-Gate: stage a document in a release and publish it.

Requires SANITY_PROJECT_ID and SANITY_API_TOKEN (and optionally SANITY_DATASET)
in the environment or a .env file.
"""

import sys

from contentgate.config import configure_logging
from contentgate.exceptions import ContentGateError
from contentgate.services import DocumentService, PortableTextService, ReleaseService
from contentgate.storage import get_client, reset_clients


def main():
    """Walk through a draft edit and a release publish."""
    configure_logging()
    client = get_client()

    documents = DocumentService(client)
    releases = ReleaseService(client)
    editor = PortableTextService(client)

    # Create a draft and give it a body
    documents.create_document(
        {"_id": "example-post", "_type": "post", "title": "Hello from Content-Gate"},
        if_exists="ignore",
    )
    editor.modify_field(
        "drafts.example-post",
        "body",
        [{"type": "insert", "position": "end", "value": "First paragraph.\n\nSecond paragraph."}],
    )
    documents.publish_document("example-post")
    print("Published example-post")

    # Stage it in a release
    releases.create_release("example-release", "Example Release", release_type="asap")
    releases.add_document_to_release("example-release", "example-post")

    listing = releases.list_release_documents("example-release")
    print(f"Release {listing.release_id} has {listing.document_count} document(s):")
    for doc in listing.documents:
        print(f"  {doc.document_id} ({doc.version_id})")

    result = releases.publish_release("example-release")
    print(result.message)


if __name__ == "__main__":
    try:
        main()
    except ContentGateError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        reset_clients()
