# ------------------------------------------------------------
# ranking.py
#
# Distance computation and result ordering.
#
# Ordering rule:
#   - with a reference location: closest first
#   - without one: best rated first
# Both sorts are stable, so equal keys keep the provider's order.
# ------------------------------------------------------------

import math
from dataclasses import replace
from typing import List, Optional, Sequence

from models import CareProvider, Location


# Earth's radius in kilometers (approximate)
EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1, lon1, lat2, lon2) -> float:
    """
    Compute approximate distance between two coordinates using the Haversine formula.
    Returns distance in kilometers.
    """
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    a = (
        math.sin(dphi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    )

    # 'c' is the angular distance in radians
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def distance_between(a: Location, b: Location) -> float:
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)


def with_distances(providers: Sequence[CareProvider], reference: Location) -> List[CareProvider]:
    """Return copies of the providers with distance_km measured from reference."""
    return [replace(p, distance_km=distance_between(reference, p.location)) for p in providers]


def rank_providers(
    providers: Sequence[CareProvider],
    reference: Optional[Location] = None,
) -> List[CareProvider]:
    """
    Order providers for display.

    Missing distances sort last, missing ratings count as 0.
    """
    if reference is not None:
        return sorted(
            providers,
            key=lambda p: p.distance_km if p.distance_km is not None else math.inf,
        )
    return sorted(
        providers,
        key=lambda p: p.rating if p.rating is not None else 0.0,
        reverse=True,
    )
