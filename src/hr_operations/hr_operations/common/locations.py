from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Any, Optional

from ..core.exceptions import DataIntegrityError, ValidationError


@dataclass(frozen=True)
class Location:
    """Where a punch happened. Coordinates are kept as the client sent them (strings)."""

    address: Optional[str] = None
    latitude: Optional[str] = None
    longitude: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["Location"]:
        if payload is None:
            return None
        if isinstance(payload, Location):
            return payload
        if not isinstance(payload, dict):
            raise ValidationError("Location must be an object with address/latitude/longitude")

        def _text(key: str) -> Optional[str]:
            v = payload.get(key)
            return None if v is None else str(v)

        return cls(address=_text("address"), latitude=_text("latitude"), longitude=_text("longitude"))

    def to_dict(self) -> dict:
        return asdict(self)


def serialize_location(location: Optional[Location]) -> Optional[str]:
    if location is None:
        return None
    return json.dumps(location.to_dict(), ensure_ascii=False)


def parse_location(raw: Optional[str]) -> Optional[Location]:
    """Rehydrate a stored location. Malformed JSON is a data-integrity problem, not a null."""
    if raw is None or raw == "":
        return None
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise DataIntegrityError(f"Stored location is not valid JSON: {e}")
    if not isinstance(data, dict):
        raise DataIntegrityError("Stored location is not a JSON object")
    return Location(
        address=data.get("address"),
        latitude=None if data.get("latitude") is None else str(data["latitude"]),
        longitude=None if data.get("longitude") is None else str(data["longitude"]),
    )
