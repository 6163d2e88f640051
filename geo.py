from math import atan2, cos, radians, sin, sqrt

EARTH_RADIUS_MILES = 3958.8


def distance_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in miles between two lat/long pairs (haversine)."""
    dlat = radians(lat2 - lat1)
    dlon = radians(lon2 - lon1)

    a = sin(dlat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(dlon / 2) ** 2
    # float drift can push a just outside [0, 1] near the poles and antipodes
    a = min(1.0, max(0.0, a))
    return EARTH_RADIUS_MILES * 2 * atan2(sqrt(a), sqrt(1 - a))


def round_miles(miles: float) -> float:
    return round(miles, 1)
