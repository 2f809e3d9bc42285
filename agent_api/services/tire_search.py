"""Tire size matching and ranking over the loaded price list.

Matching rules:
  - width must be equal, always
  - the query's vehicle type is car when an aspect ratio is given, truck
    otherwise (unless the caller names one); candidates must share it
  - car, exact:  aspect ratio and diameter both equal
  - car, fuzzy:  aspect ratio absent or within ASPECT_RATIO_TOLERANCE,
                 diameter absent or equal once any "R" prefix is stripped
  - truck:       diameter absent or equal once any "R" prefix is stripped

Matches are ordered by final price, cheapest first.
"""

import logging
from collections.abc import Iterable

from agent_api.core.enums import (
    ASPECT_RATIO_TOLERANCE,
    DEFAULT_TIRE_LIMIT,
    MAX_TIRE_LIMIT,
    MIN_TIRE_LIMIT,
    VehicleType,
)
from agent_api.models.product import Product
from agent_api.models.tire import TireMatch, TireQuery, TireSearchResult, TireSpec
from agent_api.services.tire_spec import normalize_diameter, parse_tire_spec

logger = logging.getLogger(__name__)


def clamp_limit(limit: int | None) -> int:
    """Clamp a caller-supplied result limit to [1, 100]."""
    if limit is None:
        return DEFAULT_TIRE_LIMIT
    return max(MIN_TIRE_LIMIT, min(MAX_TIRE_LIMIT, limit))


def query_vehicle_type(query: TireQuery) -> VehicleType:
    if query.vehicle_type is not None:
        return query.vehicle_type
    return VehicleType.CAR if query.aspect_ratio is not None else VehicleType.TRUCK


def diameters_match(query_diameter: int | str | None, spec_diameter: int | None) -> bool:
    """R-prefix-insensitive diameter comparison; an absent query matches."""
    if query_diameter is None:
        return True
    wanted = normalize_diameter(query_diameter)
    return wanted is not None and wanted == normalize_diameter(spec_diameter)


def aspect_ratios_close(query_aspect: int | None, spec_aspect: int | None) -> bool:
    if query_aspect is None:
        return True
    if spec_aspect is None:
        return False
    return abs(query_aspect - spec_aspect) <= ASPECT_RATIO_TOLERANCE


def spec_matches(spec: TireSpec, query: TireQuery) -> bool:
    """Return True if a parsed spec satisfies the query."""
    if not spec.parseable or spec.width != query.width:
        return False

    vehicle_type = query_vehicle_type(query)
    if spec.vehicle_type != vehicle_type:
        return False

    if vehicle_type == VehicleType.TRUCK:
        return diameters_match(query.diameter, spec.diameter)

    if query.exact_match:
        wanted_diameter = normalize_diameter(query.diameter)
        return (
            query.aspect_ratio is not None
            and query.aspect_ratio == spec.aspect_ratio
            and wanted_diameter is not None
            and wanted_diameter == spec.diameter
        )

    return aspect_ratios_close(query.aspect_ratio, spec.aspect_ratio) and diameters_match(
        query.diameter, spec.diameter
    )


def search_tires(products: Iterable[Product], query: TireQuery) -> TireSearchResult:
    """Find products whose parsed tire size matches the query."""
    matches = []
    for product in products:
        spec = parse_tire_spec(product.name)
        if spec_matches(spec, query):
            matches.append(TireMatch(product=product, tire_spec=spec))

    # sorted() is stable, so equal prices keep price-list order
    matches = sorted(matches, key=lambda m: m.product.price)
    limit = clamp_limit(query.limit)

    logger.debug(
        "Tire search width=%s aspect=%s diameter=%s exact=%s -> %d matches",
        query.width,
        query.aspect_ratio,
        query.diameter,
        query.exact_match,
        len(matches),
    )
    return TireSearchResult(
        vehicle_type=query_vehicle_type(query),
        total=len(matches),
        matches=matches[:limit],
    )
