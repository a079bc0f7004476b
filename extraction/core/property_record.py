"""
Property Record Module

This module defines the canonical output of the extraction pipeline,
PropertyRecord, and the per-request DebugLog that travels with it.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import json
import logging

logger = logging.getLogger(__name__)

UNKNOWN_SOURCE = "Unknown"


class DebugLog:
    """
    Ordered, timestamped trace of the steps taken for one extraction request.

    A DebugLog is created per request and never shared between requests.
    Entries cannot be modified once appended; ``entries`` hands out a copy.
    """

    def __init__(self, name: str = "extraction"):
        self._entries: List[str] = []
        self._logger = logging.getLogger(f"debuglog.{name}")

    def log(self, message: str) -> str:
        """Append a timestamped entry and mirror it to the module logger."""
        timestamp = datetime.now(timezone.utc).strftime("%H:%M:%S")
        entry = f"[{timestamp}] {message}"
        self._entries.append(entry)
        self._logger.info(entry)
        return entry

    @property
    def entries(self) -> List[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(list(self._entries))


@dataclass
class PropertyRecord:
    """
    Normalized real-estate listing.

    Scalar text fields are never None; ``bedrooms``, ``bathrooms`` and ``area``
    are optional but always carried as strings when present.
    """

    title: str = ""
    price: str = ""
    location: str = ""
    bedrooms: Optional[str] = None
    bathrooms: Optional[str] = None
    area: Optional[str] = None
    description: str = ""
    features: List[str] = field(default_factory=list)
    images: List[str] = field(default_factory=list)
    source: str = UNKNOWN_SOURCE
    debug_log: List[str] = field(default_factory=list)

    def __post_init__(self):
        for name in ("title", "price", "location", "description"):
            if getattr(self, name) is None:
                setattr(self, name, "")
        for name in ("bedrooms", "bathrooms", "area"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                setattr(self, name, str(value))
        if not self.source:
            self.source = UNKNOWN_SOURCE

    @property
    def has_core_fields(self) -> bool:
        """A record without a title and without a price is not a listing."""
        return bool(self.title or self.price)

    def copy_with(self, **changes: Any) -> 'PropertyRecord':
        """Return a copy of this record with the given fields replaced."""
        record = replace(self, **changes)
        record.features = list(record.features)
        record.images = list(record.images)
        record.debug_log = list(record.debug_log)
        return record

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the record to its caller-facing dictionary.

        Optional fields that are unset are omitted; the debug log is exposed
        as ``debugLog``.
        """
        data: Dict[str, Any] = {
            "title": self.title,
            "price": self.price,
            "location": self.location,
        }
        for name in ("bedrooms", "bathrooms", "area"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        data.update({
            "description": self.description,
            "features": list(self.features),
            "images": list(self.images),
            "source": self.source,
            "debugLog": list(self.debug_log),
        })
        return data

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PropertyRecord':
        """
        Create a PropertyRecord from its dictionary form.

        Accepts both ``debugLog`` and ``debug_log`` keys.
        """
        return cls(
            title=data.get("title") or "",
            price=data.get("price") or "",
            location=data.get("location") or "",
            bedrooms=data.get("bedrooms"),
            bathrooms=data.get("bathrooms"),
            area=data.get("area"),
            description=data.get("description") or "",
            features=list(data.get("features") or []),
            images=list(data.get("images") or []),
            source=data.get("source") or UNKNOWN_SOURCE,
            debug_log=list(data.get("debugLog") or data.get("debug_log") or []),
        )
