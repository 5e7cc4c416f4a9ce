import pytest

from core.exceptions import ValidationError
from core.models import Coordinate, PlaceCandidate, RouteGeometry
from core.spatial import GeoFilter, GeometryService

BASE = Coordinate(-58.400, -34.600)


def test_accept_without_current_position() -> None:
    assert GeoFilter.accept(None, BASE, 10.0)
    assert GeoFilter.accept(None, BASE, 20.0)


def test_planar_distance_uses_degree_approximation() -> None:
    moved = Coordinate(-58.4002, -34.6001)

    distance = GeoFilter.planar_distance_m(BASE, moved)

    assert distance == pytest.approx(24.82, abs=0.01)


def test_manual_threshold() -> None:
    below = Coordinate(-58.40009, -34.600)  # ~9.99 m
    above = Coordinate(-58.4001, -34.600)  # ~11.1 m

    assert not GeoFilter.accept(BASE, below, 10.0)
    assert GeoFilter.accept(BASE, above, 10.0)


def test_tracking_threshold() -> None:
    below = Coordinate(-58.40015, -34.600)  # ~16.7 m
    above = Coordinate(-58.4002, -34.6001)  # ~24.8 m

    assert not GeoFilter.accept(BASE, below, 20.0)
    assert GeoFilter.accept(BASE, above, 20.0)


def test_same_position_is_rejected() -> None:
    assert not GeoFilter.accept(BASE, Coordinate(-58.400, -34.600), 10.0)


def test_bounding_box() -> None:
    bounds = GeometryService.bounding_box(
        [BASE, Coordinate(-58.3816, -34.6037), Coordinate(-58.39, -34.59)],
    )

    assert bounds == [[-58.4, -34.6037], [-58.3816, -34.59]]


def test_bounding_box_empty() -> None:
    assert GeometryService.bounding_box([]) is None


def test_coerce_coordinates_skips_malformed_points() -> None:
    points = [[-58.4, -34.6], ["x", 1], [200, 0], [-58.39], [-58.38, -34.61]]

    coords = GeometryService.coerce_coordinates(points)

    assert coords == (Coordinate(-58.4, -34.6), Coordinate(-58.38, -34.61))


def test_coordinate_validation() -> None:
    with pytest.raises(ValidationError):
        Coordinate(181, 0)
    with pytest.raises(ValidationError):
        Coordinate("west", 0)
    with pytest.raises(ValidationError):
        Coordinate.from_sequence([1.0])

    assert Coordinate("-58.4", "-34.6") == BASE


def test_candidate_from_feature_prefers_label_for_selection() -> None:
    feature = {
        "properties": {"name": "Obelisco", "label": "Obelisco, Buenos Aires"},
        "geometry": {"coordinates": [-58.3816, -34.6037]},
    }

    place = PlaceCandidate.from_feature(feature)

    assert place.display_name == "Obelisco"
    assert place.selection_label == "Obelisco, Buenos Aires"
    assert place.coordinate == Coordinate(-58.3816, -34.6037)

    unlabeled = PlaceCandidate("Obelisco", "", place.coordinate)
    assert unlabeled.selection_label == "Obelisco"


def test_route_feature_collection() -> None:
    destination = Coordinate(-58.3816, -34.6037)
    route = RouteGeometry(BASE, destination, (BASE, destination))

    collection = route.to_feature_collection()

    assert route.is_for(BASE, destination)
    assert collection["type"] == "FeatureCollection"
    feature = collection["features"][0]
    assert feature["geometry"] == {
        "type": "LineString",
        "coordinates": [[-58.4, -34.6], [-58.3816, -34.6037]],
    }
    assert feature["properties"] == {}
