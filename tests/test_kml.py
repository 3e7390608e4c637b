import io
import math
import zipfile

import pytest

from geoverify.core.geo import distance_meters
from geoverify.geofence.kml import (
    KmlError,
    features_to_locations,
    features_to_zones,
    location_code,
    parse_coordinates,
    parse_kml,
    polygon_center_and_radius,
    read_kml_bytes,
)
from geoverify.geofence.membership import is_within_location_boundary

SITE_KML = """<?xml version="1.0" encoding="UTF-8"?>
<kml xmlns="http://www.opengis.net/kml/2.2">
  <Document>
    <name>Sites</name>
    <Placemark>
      <name>Main Site</name>
      <description>Polygon site</description>
      <Polygon>
        <outerBoundaryIs>
          <LinearRing>
            <coordinates>
              73.0,33.0,0 73.01,33.0,0 73.01,33.01,0 73.0,33.01,0
            </coordinates>
          </LinearRing>
        </outerBoundaryIs>
      </Polygon>
    </Placemark>
    <Placemark>
      <name>Gate</name>
      <Point><coordinates>73.005,33.005,0</coordinates></Point>
    </Placemark>
    <Placemark>
      <Point><coordinates>73.1,33.1</coordinates></Point>
    </Placemark>
  </Document>
</kml>
"""


def _kmz(entries: dict[str, str]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, text in entries.items():
            zf.writestr(name, text)
    return buf.getvalue()


def test_parse_coordinates_skips_bad_tuples():
    coords = parse_coordinates(" 73.0,33.0,10  73.1,33.1 bogus 1,x 73.2,33.2,\n")
    assert coords == [(73.0, 33.0, 10.0), (73.1, 33.1, 0.0), (73.2, 33.2, 0.0)]
    assert parse_coordinates("") == []


def test_polygon_center_and_radius():
    coords = [(0.0, 0.0, 0.0), (2.0, 0.0, 0.0), (2.0, 2.0, 0.0), (0.0, 2.0, 0.0)]
    center_lat, center_lng, radius = polygon_center_and_radius(coords)
    assert (center_lat, center_lng) == (1.0, 1.0)
    assert radius == math.ceil(distance_meters(1.0, 1.0, 0.0, 0.0))
    assert polygon_center_and_radius([]) is None


def test_parse_kml_polygon_and_points():
    features = parse_kml(SITE_KML)
    assert [f.type for f in features] == ["polygon", "point", "point"]

    site, gate, unnamed = features
    assert site.name == "Main Site"
    assert site.description == "Polygon site"
    # Closed explicitly: first vertex repeated at the end.
    assert len(site.boundaries) == 5
    assert site.boundaries[0] == site.boundaries[-1] == [73.0, 33.0]
    assert site.center_lat == pytest.approx(33.005)
    assert site.center_lng == pytest.approx(73.005)
    assert site.radius_meters == pytest.approx(distance_meters(site.center_lat, site.center_lng, 33.0, 73.0), abs=1)
    assert site.radius_meters == int(site.radius_meters)

    assert gate.name == "Gate"
    assert (gate.center_lat, gate.center_lng, gate.radius_meters) == (33.005, 73.005, 100.0)
    assert gate.boundaries is None

    assert unnamed.name == "Feature 3"


def test_parse_kml_point_radius_is_configurable():
    features = parse_kml(SITE_KML, point_radius_m=250)
    assert features[1].radius_meters == 250


def test_already_closed_ring_is_not_closed_twice():
    kml = SITE_KML.replace("73.0,33.01,0\n", "73.0,33.01,0 73.0,33.0,0\n")
    site = parse_kml(kml)[0]
    assert len(site.boundaries) == 5


def test_multigeometry_uses_first_polygon_only():
    ring = "<Polygon><outerBoundaryIs><LinearRing><coordinates>{}</coordinates></LinearRing></outerBoundaryIs></Polygon>"
    kml = (
        '<kml xmlns="http://www.opengis.net/kml/2.2"><Placemark><name>Campus</name><MultiGeometry>'
        + ring.format("0,0 1,0 1,1 0,0")
        + ring.format("5,5 6,5 6,6 5,5")
        + "</MultiGeometry></Placemark></kml>"
    )
    (feature,) = parse_kml(kml)
    assert feature.type == "polygon"
    assert feature.boundaries == [[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 0.0]]


def test_parse_kml_rejects_invalid_xml():
    with pytest.raises(KmlError, match="Invalid XML/KML"):
        parse_kml("<kml><Placemark>")


def test_read_kml_bytes_plain_and_kmz():
    assert read_kml_bytes(SITE_KML.encode("utf-8"), "sites.KML") == SITE_KML
    kmz = _kmz({"images/readme.txt": "x", "doc.kml": SITE_KML})
    assert read_kml_bytes(kmz, "sites.kmz") == SITE_KML


def test_read_kml_bytes_errors():
    with pytest.raises(KmlError, match="No KML file found"):
        read_kml_bytes(_kmz({"readme.txt": "x"}), "sites.kmz")
    with pytest.raises(KmlError, match="Invalid KMZ"):
        read_kml_bytes(b"not a zip", "sites.kmz")
    with pytest.raises(KmlError, match="Only KMZ and KML"):
        read_kml_bytes(b"<kml/>", "sites.geojson")


def test_location_code():
    assert location_code("Main Site", 1) == "MAIN-SITE"
    assert location_code("A very long location name here", 2) == "A-VERY-LONG-LOCATION"
    assert location_code("", 3) == "LOC-3"


def test_features_to_locations_keeps_ring_and_circle():
    locations = features_to_locations(parse_kml(SITE_KML))
    assert [loc.id for loc in locations] == ["1", "2", "3"]
    site = locations[0]
    assert site.code == "MAIN-SITE"
    assert site.boundaries is not None and len(site.boundaries) == 5
    assert locations[1].boundaries is None
    assert locations[1].radius_meters == 100

    # Imported polygon is used for verification: center inside, a point outside the ring is not.
    assert is_within_location_boundary(33.005, 73.005, site) is True
    assert is_within_location_boundary(33.02, 73.005, site) is False


def test_features_to_zones_requires_location():
    features = parse_kml(SITE_KML)
    zones = features_to_zones(features, location_id="9", start_id=100)
    assert [z.id for z in zones] == ["100", "101", "102"]
    assert {z.location_id for z in zones} == {"9"}
    with pytest.raises(ValueError, match="location_id is required"):
        features_to_zones(features, location_id="")
