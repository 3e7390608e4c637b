from geoverify.core.geo import GeoPoint
from geoverify.domain.models import Zone
from geoverify.geofence.zones import zones_containing


def _zone(zone_id: str, *, lat: float, lng: float, radius: float, active: bool = True) -> Zone:
    return Zone(
        id=zone_id,
        location_id="1",
        name=f"Zone {zone_id}",
        center_lat=lat,
        center_lng=lng,
        radius_meters=radius,
        is_active=active,
    )


def test_zones_containing_keeps_input_order_and_skips_inactive():
    point = GeoPoint(lat=33.6850, lon=73.0480)
    zones = [
        _zone("a", lat=33.6846, lng=73.0480, radius=200),
        _zone("b", lat=33.6846, lng=73.0480, radius=200, active=False),
        _zone("c", lat=33.7000, lng=73.0600, radius=100),
        _zone("d", lat=33.6850, lng=73.0480, radius=0),
    ]
    assert [z.id for z in zones_containing(point, zones)] == ["a", "d"]


def test_zones_accept_legacy_camel_case_records():
    zone = Zone.model_validate(
        {
            "id": 7,
            "locationId": 3,
            "name": "Gate",
            "centerLat": 0.0,
            "centerLng": 0.0,
            "radiusMeters": 50,
            "isActive": True,
        }
    )
    assert zone.id == "7"
    assert zone.location_id == "3"
    assert zones_containing(GeoPoint(lat=0.0, lon=0.0), [zone]) == [zone]
    assert zones_containing(GeoPoint(lat=1.0, lon=1.0), [zone]) == []
