"""Plot area estimation from hand-drawn map polygons.

The estimate is a flat-Earth approximation: the Shoelace formula is applied
directly to (latitude, longitude) pairs and the result is scaled from square
degrees to square metres with a fixed 111 km per degree and a ``cos`` of the
mean latitude.  It is good enough for sub-kilometre plots as a visual aid and
is not geodesically exact.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

METERS_PER_DEGREE = 111_000.0
SQUARE_METERS_PER_HECTARE = 10_000.0


@dataclass(frozen=True, slots=True)
class MapPoint:
	latitude: float
	longitude: float


def as_map_point(raw: Any) -> MapPoint:
	"""Coerce a MapPoint, ``(lat, lon)`` pair, or ``lat``/``lng`` mapping."""
	if isinstance(raw, MapPoint):
		return raw
	if isinstance(raw, Mapping):
		lat = raw["latitude"] if "latitude" in raw else raw["lat"]
		if "longitude" in raw:
			lon = raw["longitude"]
		elif "lng" in raw:
			lon = raw["lng"]
		else:
			lon = raw["lon"]
		return MapPoint(float(lat), float(lon))
	if hasattr(raw, "latitude") and hasattr(raw, "longitude"):
		return MapPoint(float(raw.latitude), float(raw.longitude))
	lat, lon = raw
	return MapPoint(float(lat), float(lon))


def estimate_area_hectares(points: Iterable[Any]) -> float:
	"""Estimate the area in hectares of the polygon traced by ``points``.

	Fewer than three points is "not yet a closed shape" and yields ``0.0``.
	The ring is closed implicitly (last point wraps to the first).  NaN
	coordinates propagate to a NaN result instead of raising.
	"""
	ring = [as_map_point(point) for point in points]
	n = len(ring)
	if n < 3:
		return 0.0

	twice_area = 0.0
	for i in range(n):
		j = (i + 1) % n
		twice_area += ring[i].latitude * ring[j].longitude
		twice_area -= ring[j].latitude * ring[i].longitude
	raw_area = abs(twice_area) / 2.0

	mean_latitude = sum(point.latitude for point in ring) / n
	lat_factor = math.cos(math.radians(mean_latitude))
	return raw_area * METERS_PER_DEGREE * METERS_PER_DEGREE * lat_factor / SQUARE_METERS_PER_HECTARE


def points_to_wkt_polygon(points: Sequence[Any]) -> str | None:
	"""Render ``points`` as a closed WKT POLYGON in ``lon lat`` order, or None if degenerate."""
	ring = [as_map_point(point) for point in points]
	if len(ring) < 3:
		return None
	if ring[0] != ring[-1]:
		ring.append(ring[0])
	body = ", ".join(f"{point.longitude} {point.latitude}" for point in ring)
	return f"POLYGON(({body}))"
