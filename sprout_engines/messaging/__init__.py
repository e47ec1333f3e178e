"""Structured messaging: intent catalog, renderer and legacy classification."""

from sprout_engines.messaging.catalog import IntentCatalog, default_catalog
from sprout_engines.messaging.legacy import LegacyMessageClassifier, classify_legacy, classify_store
from sprout_engines.messaging.models import IntentId, MessageIntent, MessageRecord, RenderedMessage
from sprout_engines.messaging.renderer import MessageRenderer
from sprout_engines.messaging.repository import (
    InMemoryMessageRepository,
    MessageRepository,
    SqliteMessageRepository,
)

__all__ = [
    "InMemoryMessageRepository",
    "IntentCatalog",
    "IntentId",
    "LegacyMessageClassifier",
    "MessageIntent",
    "MessageRecord",
    "MessageRenderer",
    "MessageRepository",
    "RenderedMessage",
    "SqliteMessageRepository",
    "classify_legacy",
    "classify_store",
    "default_catalog",
]
