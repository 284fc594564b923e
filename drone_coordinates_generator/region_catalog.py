"""
Geographic regions used to bound synthetic coordinate generation.

Regions are loaded once at startup and never change afterwards. Any
malformed region aborts loading with a ConfigurationError.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union
import numpy as np

from .error_handling import ConfigurationError


# Accepted spellings for the bound arrays, first match wins
_LAT_KEYS = ('lat_range', 'latRange', 'lat-range')
_LON_KEYS = ('lon_range', 'lonRange', 'lon-range')


def _parse_range(name: str, axis: str, raw: Any) -> Tuple[float, float]:
    """Validate a two-element [min, max] bound array."""
    if not isinstance(raw, (list, tuple)):
        raise ConfigurationError(
            f"Region '{name}': {axis} range must be a list of 2 values",
            error_code="INVALID_RANGE",
            context={"region": name, "axis": axis, "value": raw}
        )

    if len(raw) != 2:
        raise ConfigurationError(
            f"Region '{name}': {axis} range must contain exactly 2 values, got {len(raw)}",
            error_code="INVALID_RANGE",
            context={"region": name, "axis": axis, "value": list(raw)}
        )

    try:
        low, high = float(raw[0]), float(raw[1])
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"Region '{name}': {axis} range values must be numeric",
            error_code="INVALID_RANGE",
            context={"region": name, "axis": axis, "value": list(raw)}
        )

    if not (math.isfinite(low) and math.isfinite(high)):
        raise ConfigurationError(
            f"Region '{name}': {axis} range values must be finite, got [{low}, {high}]",
            error_code="INVALID_RANGE",
            context={"region": name, "axis": axis, "value": [low, high]}
        )

    if low > high:
        raise ConfigurationError(
            f"Region '{name}': {axis} range must be ordered (min <= max), got [{low}, {high}]",
            error_code="INVALID_RANGE",
            context={"region": name, "axis": axis, "value": [low, high]}
        )

    return low, high


@dataclass(frozen=True)
class Region:
    """A named latitude/longitude bounding box."""
    name: str
    lat_min: float
    lat_max: float
    lon_min: float
    lon_max: float

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise ConfigurationError("Region name cannot be empty", error_code="INVALID_REGION")
        # Reuse the range checks so direct construction follows the same rules
        _parse_range(self.name, "latitude", (self.lat_min, self.lat_max))
        _parse_range(self.name, "longitude", (self.lon_min, self.lon_max))

    @classmethod
    def from_dict(cls, region_dict: Dict[str, Any]) -> 'Region':
        """
        Build a Region from a configuration mapping.

        Args:
            region_dict: Mapping with ``name``, ``lat_range`` and ``lon_range``

        Returns:
            Validated Region

        Raises:
            ConfigurationError: If the mapping is malformed
        """
        if not isinstance(region_dict, dict):
            raise ConfigurationError(
                f"Region entry must be a mapping, got {type(region_dict).__name__}",
                error_code="INVALID_REGION"
            )

        name = region_dict.get('name')
        if not isinstance(name, str) or not name.strip():
            raise ConfigurationError("Region name cannot be empty", error_code="INVALID_REGION")

        lat_raw = _first_present(region_dict, _LAT_KEYS)
        lon_raw = _first_present(region_dict, _LON_KEYS)
        if lat_raw is None or lon_raw is None:
            raise ConfigurationError(
                f"Region '{name}' must define both lat_range and lon_range",
                error_code="INVALID_REGION"
            )

        lat_min, lat_max = _parse_range(name, "latitude", lat_raw)
        lon_min, lon_max = _parse_range(name, "longitude", lon_raw)
        return cls(name=name, lat_min=lat_min, lat_max=lat_max, lon_min=lon_min, lon_max=lon_max)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'lat_range': [self.lat_min, self.lat_max],
            'lon_range': [self.lon_min, self.lon_max],
        }


def _first_present(mapping: Dict[str, Any], keys: Sequence[str]) -> Optional[Any]:
    for key in keys:
        if key in mapping:
            return mapping[key]
    return None


class RegionCatalog:
    """
    Ordered, read-only collection of regions.

    An empty catalog is valid: the generator treats it as "nothing to
    generate" rather than an error.
    """

    def __init__(self, regions: Iterable[Region] = ()):
        self._regions: Tuple[Region, ...] = tuple(regions)

    @classmethod
    def from_config(cls, entries: Iterable[Union[Region, Dict[str, Any]]]) -> 'RegionCatalog':
        """
        Build a catalog from Region instances or raw configuration mappings.

        Raises:
            ConfigurationError: If any entry is malformed
        """
        regions: List[Region] = []
        for entry in entries or ():
            if isinstance(entry, Region):
                regions.append(entry)
            else:
                regions.append(Region.from_dict(entry))
        return cls(regions)

    def __len__(self) -> int:
        return len(self._regions)

    def __iter__(self) -> Iterator[Region]:
        return iter(self._regions)

    def is_empty(self) -> bool:
        return not self._regions

    def names(self) -> List[str]:
        return [region.name for region in self._regions]

    def choose(self, rng: np.random.Generator) -> Region:
        """
        Pick one region uniformly at random.

        Raises:
            IndexError: If the catalog is empty
        """
        if not self._regions:
            raise IndexError("Cannot choose from an empty region catalog")
        return self._regions[int(rng.integers(len(self._regions)))]
