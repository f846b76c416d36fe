from __future__ import annotations

import pytest

from movecar.geo import build_map_links, haversine_m, out_of_china, wgs84_to_gcj02


def test_outside_region_is_returned_unchanged() -> None:
    assert wgs84_to_gcj02(0.0, 0.0) == (0.0, 0.0)
    # Amsterdam
    assert wgs84_to_gcj02(52.3676, 4.9041) == (52.3676, 4.9041)


def test_region_edges_are_inclusive() -> None:
    assert out_of_china(30.0, 72.003) is True
    assert out_of_china(30.0, 72.004) is False
    assert out_of_china(30.0, 137.8347) is False
    assert out_of_china(30.0, 137.8348) is True
    assert out_of_china(0.8292, 110.0) is True
    assert out_of_china(55.8271, 110.0) is False
    assert out_of_china(55.8272, 110.0) is True


def test_beijing_reference_value() -> None:
    lat, lng = wgs84_to_gcj02(39.9, 116.4)

    assert lat == pytest.approx(39.901403529849404, abs=1e-9)
    assert lng == pytest.approx(116.40624278491117, abs=1e-9)
    assert (round(lat, 6), round(lng, 6)) == (39.901404, 116.406243)


def test_beijing_offset_is_a_few_hundred_meters() -> None:
    lat, lng = wgs84_to_gcj02(39.9, 116.4)
    offset = haversine_m(39.9, 116.4, lat, lng)
    assert 300.0 <= offset <= 700.0


@pytest.mark.parametrize(
    ("lat", "lng", "expected_lat", "expected_lng"),
    [
        (31.23, 121.47, 31.22806748194233, 121.47453490044272),
        (22.5431, 114.0579, 22.54038281422246, 114.06301399856547),
    ],
)
def test_other_cities_match_reference(lat: float, lng: float, expected_lat: float, expected_lng: float) -> None:
    got_lat, got_lng = wgs84_to_gcj02(lat, lng)
    assert got_lat == pytest.approx(expected_lat, abs=1e-9)
    assert got_lng == pytest.approx(expected_lng, abs=1e-9)


def test_transform_is_deterministic() -> None:
    assert wgs84_to_gcj02(31.23, 121.47) == wgs84_to_gcj02(31.23, 121.47)


def test_build_map_links_uses_gcj_for_amap_and_raw_for_apple() -> None:
    links = build_map_links(39.9, 116.4, label="Car park B")
    gcj_lat, gcj_lng = wgs84_to_gcj02(39.9, 116.4)

    assert links.amap_url == f"https://uri.amap.com/marker?position={gcj_lng},{gcj_lat}&name=Car%20park%20B"
    assert links.apple_url == "https://maps.apple.com/?ll=39.9,116.4&q=Car%20park%20B"


def test_build_map_links_outside_region_uses_input_for_both() -> None:
    links = build_map_links(48.8566, 2.3522)
    assert "position=2.3522,48.8566" in links.amap_url
    assert "ll=48.8566,2.3522" in links.apple_url


def test_haversine_zero_for_same_point() -> None:
    assert haversine_m(39.9, 116.4, 39.9, 116.4) == 0.0
