"""
Core domain models for location resolution.
These are framework-agnostic and shared by the matcher, resolver and searcher.
"""
import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Tuple, Union


class CoordinateOrder(str, Enum):
    """Order of the two numeric groups captured by a pattern."""
    LAT_FIRST = "latLng"
    LNG_FIRST = "lngLat"


class RuleKind(str, Enum):
    """How a pattern rule turns its match into a coordinate."""
    DIRECT = "direct"
    INDIRECT_FETCH = "fetch"


class ContentType(str, Enum):
    """How the body fetched for an indirect rule is interpreted."""
    LAT_LNG = "latLng"
    LNG_LAT = "lngLat"
    PLACE_NAME = "googlePlace"  # wire name kept from the settings records


class SearchResultKind(str, Enum):
    """Origin of a search result."""
    PARSED_LINK = "url"
    PROVIDER_SEARCH = "searchResult"
    KNOWN_MARKER = "existingMarker"


@dataclass(frozen=True)
class GeoCoordinate:
    latitude: float
    longitude: float

    @staticmethod
    def is_valid(latitude: float, longitude: float) -> bool:
        """Return True for finite values inside the WGS84 ranges."""
        if not (math.isfinite(latitude) and math.isfinite(longitude)):
            return False
        return -90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0


@dataclass(frozen=True)
class BoundingBox:
    """A rectangular search area, e.g. the currently displayed map."""
    south: float
    west: float
    north: float
    east: float

    def center(self) -> GeoCoordinate:
        return GeoCoordinate(
            latitude=(self.south + self.north) / 2.0,
            longitude=(self.west + self.east) / 2.0,
        )


@dataclass(frozen=True)
class PatternRule:
    """
    A user-configurable rule that recognizes coordinates (or links to them) in text.

    Direct rules carry ``order``; indirect fetch rules carry ``content_pattern``
    and ``content_type``. Instances are validated when loaded from configuration,
    see ``services.url_rules.rules_from_config``.
    """
    name: str
    pattern: "re.Pattern[str]"
    kind: RuleKind
    order: Optional[CoordinateOrder] = None
    content_pattern: Optional["re.Pattern[str]"] = None
    content_type: Optional[ContentType] = None
    preset: bool = False


@dataclass(frozen=True)
class MatchResult:
    """A coordinate found in a text line, with the exact span it came from."""
    coordinate: GeoCoordinate
    source_index: int
    match_length: int
    rule_name: str
    label: Optional[str] = None

    @property
    def span(self) -> Tuple[int, int]:
        return (self.source_index, self.source_index + self.match_length)


@dataclass(frozen=True)
class PendingFetch:
    """A matched link whose coordinate still needs a network fetch."""
    url: str
    rule: PatternRule
    match_index: int
    match_length: int


@dataclass(frozen=True)
class Resolved:
    result: MatchResult


@dataclass(frozen=True)
class Pending:
    fetch: PendingFetch


LineMatch = Union[Resolved, Pending]


@dataclass
class SearchResult:
    """A single suggestion returned by a search; lives for one query only."""
    label: str
    coordinate: GeoCoordinate
    kind: SearchResultKind
    marker_ref: Optional[Any] = field(default=None, compare=False)


@dataclass(frozen=True)
class ProviderHit:
    """A raw place returned by a search provider."""
    name: str
    lat: float
    lng: float

    def to_coordinate(self) -> GeoCoordinate:
        return GeoCoordinate(latitude=self.lat, longitude=self.lng)
