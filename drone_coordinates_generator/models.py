"""
Reading model and its wire representation.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict

from .error_handling import ValidationError


class ThreatLevel(str, Enum):
    """Threat classification attached to every reading."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


THREAT_LEVELS = tuple(ThreatLevel)


@dataclass(frozen=True)
class Reading:
    """One synthetic drone detection."""
    id: str
    region: str
    latitude: float
    longitude: float
    observed_at: datetime
    threat_level: ThreatLevel

    def with_id(self, new_id: str) -> 'Reading':
        """Return a copy of this reading registered under another id."""
        return replace(self, id=new_id)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the wire record published to subscribers and served over HTTP.

        Returns:
            Dictionary with keys id, city, latitude, longitude, timestamp, threatLevel
        """
        return {
            "id": self.id,
            "city": self.region,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "timestamp": format_timestamp_utc(self.observed_at),
            "threatLevel": self.threat_level.value,
        }

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> 'Reading':
        """
        Parse a wire record.

        Raises:
            ValidationError: If a field is missing or malformed
        """
        try:
            return cls(
                id=str(record["id"]),
                region=str(record["city"]),
                latitude=float(record["latitude"]),
                longitude=float(record["longitude"]),
                observed_at=parse_timestamp_utc(record["timestamp"]),
                threat_level=ThreatLevel(record["threatLevel"]),
            )
        except KeyError as e:
            raise ValidationError(f"Missing field in reading record: {e}", error_code="INVALID_READING")
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Malformed reading record: {e}", error_code="INVALID_READING")


def format_timestamp_utc(dt: datetime) -> str:
    """
    Format datetime as UTC timestamp string for JSON messages.

    Args:
        dt: Datetime object (naive values are taken as UTC)

    Returns:
        ISO format timestamp string with milliseconds
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    elif dt.tzinfo != timezone.utc:
        dt = dt.astimezone(timezone.utc)

    return dt.strftime('%Y-%m-%dT%H:%M:%S.%f')[:-3] + 'Z'


def parse_timestamp_utc(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, treating naive values as UTC."""
    if not isinstance(value, str):
        raise TypeError(f"timestamp must be a string, got {type(value).__name__}")
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
