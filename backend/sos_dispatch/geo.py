import math

from .errors import ValidationError

EARTH_RADIUS_KM = 6371.0
MINUTES_PER_KM = 3


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points using the haversine formula."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    # rounding can push a a hair above 1
    a = min(1.0, a)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def eta_minutes(distance: float, minutes_per_km: float = MINUTES_PER_KM) -> int:
    """Travel time estimate from a fixed speed heuristic, no road network."""
    if distance < 0:
        raise ValueError(f"distance must be non-negative, got {distance}")
    return math.ceil(distance * minutes_per_km)


def format_eta(minutes: int) -> str:
    return f"{minutes} min"


def validate_coordinates(latitude: float, longitude: float) -> None:
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise ValidationError("Coordinates must be finite numbers")
    if not -90.0 <= latitude <= 90.0:
        raise ValidationError(f"Latitude {latitude} outside valid range (-90 to 90)")
    if not -180.0 <= longitude <= 180.0:
        raise ValidationError(f"Longitude {longitude} outside valid range (-180 to 180)")
