"""
metadata.py - Static grantee metadata lookup.

The table maps "name|ein" (with '(no EIN)' standing in for an empty EIN) to a
`GranteeMetadataEntry`. It is read-only once built and is passed explicitly to
every query; nothing here caches or reloads.
"""

from __future__ import annotations

import html
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from logging_config import get_logger
from models import GranteeMetadataEntry, validation_message
from normalize import NO_EIN

logger = get_logger(__name__)


def metadata_key(name: str, ein: str) -> str:
    """Lookup key for a grantee: decoded, trimmed name plus EIN or '(no EIN)'."""
    normalized_name = html.unescape((name or "").strip())
    normalized_ein = (ein or "").strip() or NO_EIN
    return f"{normalized_name}|{normalized_ein}"


class GranteeMetadata:
    """Read-only lookup of category, notes and flags per grantee."""

    def __init__(self, entries: Mapping[str, GranteeMetadataEntry] | None = None) -> None:
        self._entries: dict[str, GranteeMetadataEntry] = dict(entries or {})

    @classmethod
    def empty(cls) -> "GranteeMetadata":
        return cls()

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "GranteeMetadata":
        """Build the table from the parsed grantees.json object."""
        if not isinstance(raw, Mapping):
            raise ValueError(
                f"Grantee metadata must be a JSON object keyed 'name|ein', got {type(raw).__name__}"
            )

        entries: dict[str, GranteeMetadataEntry] = {}
        for key, value in raw.items():
            if isinstance(value, GranteeMetadataEntry):
                entries[str(key)] = value
            elif isinstance(value, Mapping):
                try:
                    entries[str(key)] = GranteeMetadataEntry.model_validate(dict(value))
                except ValidationError as exc:
                    logger.warning(
                        "metadata_entry_skipped | key=%r | reason=%r",
                        key,
                        validation_message(exc),
                    )
            else:
                logger.warning("metadata_entry_skipped | key=%r | reason='not an object'", key)
        logger.debug("metadata_built | entries=%s", len(entries))
        return cls(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, name: str, ein: str) -> Optional[GranteeMetadataEntry]:
        if not self._entries:
            return None
        return self._entries.get(metadata_key(name, ein))

    def category(self, name: str, ein: str) -> Optional[str]:
        entry = self.lookup(name, ein)
        return (entry.category or None) if entry else None

    def notes(self, name: str, ein: str) -> Optional[str]:
        entry = self.lookup(name, ein)
        return (entry.notes or None) if entry else None

    def international(self, name: str, ein: str) -> bool:
        """The table's international flag; False when absent."""
        entry = self.lookup(name, ein)
        return bool(entry and entry.international)

    def is_beloved(self, name: str, ein: str) -> bool:
        """The internal-operations flag. The table is the only source for it."""
        entry = self.lookup(name, ein)
        return bool(entry and entry.is_beloved)
