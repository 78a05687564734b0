"""
Entity type registry: maps a wire ``entity-type`` tag to an entity class.
"""

import logging
import threading
from typing import Optional

from ..objects import Document, Documents, RecordSet, User

logger = logging.getLogger(__name__)

# Wire tags as sent by the server
DOCUMENT = "document"
DOCUMENTS = "documents"
RECORDSET = "recordSet"
USER = "user"

BUILTIN_ENTITIES: dict[str, type] = {
    DOCUMENT: Document,
    DOCUMENTS: Documents,
    RECORDSET: RecordSet,
    USER: User,
}


class EntityTypeRegistry:
    """
    Thread-safe mapping from entity tag to a class exposing ``from_dict``.

    Seeded with the built-in entities. Registration is an upsert; entries are
    never removed. Lookups and registrations share one lock so a lookup never
    observes a partially updated mapping.
    """

    def __init__(self, entities: Optional[dict[str, type]] = None):
        self._lock = threading.Lock()
        self._entities: dict[str, type] = dict(BUILTIN_ENTITIES)
        if entities:
            for tag, entity_class in entities.items():
                self.register(tag, entity_class)

    def register(self, tag: str, entity_class: type) -> None:
        """Register (or replace) the class decoding ``tag``."""
        if not tag:
            raise ValueError("entity tag must be a non-empty string")
        if not callable(getattr(entity_class, "from_dict", None)):
            raise TypeError(f"{entity_class!r} has no from_dict() constructor")
        with self._lock:
            previous = self._entities.get(tag)
            self._entities[tag] = entity_class
        if previous is not None and previous is not entity_class:
            logger.debug(f"Entity tag '{tag}' remapped from {previous.__name__} to {entity_class.__name__}")

    def lookup(self, tag: Optional[str]) -> Optional[type]:
        if tag is None:
            return None
        with self._lock:
            return self._entities.get(tag)

    def tags(self) -> list[str]:
        with self._lock:
            return sorted(self._entities)

    def __contains__(self, tag: object) -> bool:
        with self._lock:
            return tag in self._entities

    def __len__(self) -> int:
        with self._lock:
            return len(self._entities)
