"""Service layer for Content-Gate."""

from contentgate.services.document_service import DocumentService
from contentgate.services.formatting import ParagraphFormatter, TextFormatter
from contentgate.services.mutation_service import MutationService
from contentgate.services.portable_text_service import PortableTextService
from contentgate.services.release_service import ReleaseService
from contentgate.services.subscriptions import (
    Subscription,
    SubscriptionRegistry,
    get_subscription_registry,
)

__all__ = [
    "DocumentService",
    "MutationService",
    "ParagraphFormatter",
    "PortableTextService",
    "ReleaseService",
    "Subscription",
    "SubscriptionRegistry",
    "TextFormatter",
    "get_subscription_registry",
]
