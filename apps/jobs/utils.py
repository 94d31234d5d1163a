import math

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1, lng1, lat2, lng2):
    """Great-circle distance between two points, in kilometers."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def bounding_box(lat, lng, radius_km):
    """Lat/lng window that contains every point within `radius_km`, used to prefilter in SQL."""
    d_lat = math.degrees(radius_km / EARTH_RADIUS_KM)
    cos_lat = math.cos(math.radians(lat))
    d_lng = 180.0 if cos_lat < 1e-6 else min(math.degrees(radius_km / (EARTH_RADIUS_KM * cos_lat)), 180.0)
    return lat - d_lat, lat + d_lat, lng - d_lng, lng + d_lng


def longitude_ranges(min_lng, max_lng):
    """Split a longitude window that crosses the antimeridian into ranges within [-180, 180]."""
    if max_lng - min_lng >= 360:
        return [(-180.0, 180.0)]
    if min_lng < -180:
        return [(min_lng + 360, 180.0), (-180.0, max_lng)]
    if max_lng > 180:
        return [(min_lng, 180.0), (-180.0, max_lng - 360)]
    return [(min_lng, max_lng)]


def nearest_first(jobs, lat, lng, radius_km=None):
    """Annotate each job with `distance` (km, 1 dp) and return them nearest first."""
    within = []
    for job in jobs:
        distance = haversine_km(lat, lng, job.latitude, job.longitude)
        if radius_km is not None and distance > radius_km:
            continue
        job.distance = round(distance, 1)
        within.append((distance, job))
    within.sort(key=lambda pair: pair[0])
    return [job for _, job in within]
