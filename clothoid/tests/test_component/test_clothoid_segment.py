import math

import numpy as np
import pytest
from scipy import integrate

from clothoid import ClothoidSegment, CurveType, ParamIndex
from clothoid.utils.math import angle_diff, get_polyline_length

SEGMENTS = dict(
    line=dict(start=(1., -2.), start_angle=0.7, length=3., curvature=0., end_curvature=0.),
    arc=dict(start=(0.5, 0.5), start_angle=-1.2, length=2., curvature=0.8, end_curvature=0.8),
    clothoid=dict(start=(1., 2.), start_angle=0.4, length=2., curvature=0.5, end_curvature=1.1),
    clothoid_reversed=dict(start=(-1., 0.5), start_angle=-2., length=3., curvature=-0.2, end_curvature=-1.4),
    clothoid_inflection=dict(start=(0.3, -0.7), start_angle=2.5, length=2.5, curvature=-0.6, end_curvature=0.65),
)

EXPECTED_TYPES = dict(
    line=CurveType.LINE,
    arc=CurveType.ARC,
    clothoid=CurveType.CLOTHOID,
    clothoid_reversed=CurveType.CLOTHOID,
    clothoid_inflection=CurveType.CLOTHOID,
)


def _sample_s(segment, num=9):
    return np.linspace(0, segment.length, num)


@pytest.mark.parametrize("name", list(SEGMENTS.keys()))
def test_curve_type(name):
    assert ClothoidSegment(**SEGMENTS[name]).curve_type == EXPECTED_TYPES[name]


@pytest.mark.parametrize("name", list(SEGMENTS.keys()))
def test_start_identity(name):
    cfg = SEGMENTS[name]
    segment = ClothoidSegment(**cfg)
    assert np.allclose(segment.position(0), cfg["start"], rtol=0, atol=1e-9)
    assert np.allclose(segment.start, cfg["start"])
    assert abs(angle_diff(segment.heading_theta_at(0), cfg["start_angle"])) < 1e-12
    assert segment.curvature_at(0) == cfg["curvature"]
    assert segment.end_curvature == pytest.approx(cfg["end_curvature"])


@pytest.mark.parametrize("name", list(SEGMENTS.keys()))
def test_closed_forms(name):
    segment = ClothoidSegment(**SEGMENTS[name])
    k, dk, theta = segment.start_curvature, segment.dcurvature, segment.start_angle
    for s in _sample_s(segment):
        heading = theta + s * k + 0.5 * s * s * dk
        assert segment.curvature_at(s) == pytest.approx(k + s * dk)
        assert segment.heading_theta_at(s) == pytest.approx(heading)
        assert np.allclose(segment.tangent(s), [math.cos(heading), math.sin(heading)])
        assert np.allclose(segment.second_derivative(s), (k + s * dk) * np.array([-math.sin(heading), math.cos(heading)]))
        pos, der, der2 = segment.eval(s)
        assert np.allclose(pos, segment.position(s))
        assert np.allclose(der, segment.tangent(s))
        assert np.allclose(der2, segment.second_derivative(s))

    # curvature is affine, heading is quadratic
    s = np.linspace(0, segment.length, 6)
    curvatures = np.array([segment.curvature_at(v) for v in s])
    headings = np.array([segment.heading_theta_at(v) for v in s])
    assert np.allclose(np.diff(curvatures, 2), 0, atol=1e-12)
    assert np.allclose(np.diff(headings, 3), 0, atol=1e-12)


@pytest.mark.parametrize("name", list(SEGMENTS.keys()))
def test_position_derivatives(name):
    """position() must be consistent with the analytic tangent and curvature vector"""
    segment = ClothoidSegment(**SEGMENTS[name])
    for s in _sample_s(segment):
        h = 1e-5
        der = (segment.position(s + h) - segment.position(s - h)) / (2 * h)
        assert np.allclose(der, segment.tangent(s), rtol=0, atol=1e-7), (s, der, segment.tangent(s))
        h = 1e-3
        der2 = (segment.position(s + h) - 2 * segment.position(s) + segment.position(s - h)) / (h * h)
        assert np.allclose(der2, segment.second_derivative(s), rtol=0, atol=1e-5)


@pytest.mark.parametrize("name", list(SEGMENTS.keys()))
def test_position_against_quadrature(name):
    segment = ClothoidSegment(**SEGMENTS[name])
    start = segment.start
    for s in _sample_s(segment, 5):
        x = integrate.quad(lambda u: math.cos(segment.heading_theta_at(u)), 0, s, epsabs=1e-13, epsrel=1e-13)[0]
        y = integrate.quad(lambda u: math.sin(segment.heading_theta_at(u)), 0, s, epsabs=1e-13, epsrel=1e-13)[0]
        assert np.allclose(segment.position(s), start + np.array([x, y]), rtol=0, atol=1e-9)


def test_straight_line():
    segment = ClothoidSegment((0, 0), 0, 1, 0, 0)
    assert segment.curve_type == CurveType.LINE
    assert np.allclose(segment.position(1), [1, 0])
    assert np.allclose(segment.end, [1, 0])
    for s in np.linspace(0, 1, 11):
        assert segment.heading_theta_at(s) == pytest.approx(0)
        assert np.allclose(segment.second_derivative(s), 0)


def test_unit_circle():
    segment = ClothoidSegment((0, 0), 0, math.pi, 1, 1)
    assert segment.curve_type == CurveType.ARC
    assert np.allclose(segment.position(math.pi / 2), [1, 1])
    assert np.allclose(segment.position(math.pi), [0, 2])
    assert segment.end_angle == pytest.approx(math.pi)
    for s in np.linspace(0, math.pi, 7):
        # every point stays on the circle of radius 1 around (0, 1)
        assert np.linalg.norm(segment.position(s) - np.array([0, 1])) == pytest.approx(1)


def test_clockwise_arc():
    segment = ClothoidSegment((0, 0), 0, math.pi, -1, -1)
    assert np.allclose(segment.position(math.pi / 2), [1, -1])
    assert np.allclose(segment.position(math.pi), [0, -2])


@pytest.mark.parametrize("curvature", [0.5, -0.3, 0.])
def test_position_continuity_across_arc_threshold(curvature):
    # dcurvature 1e-11 and 1e-13 straddle the threshold. The curves themselves are at most 1e-11 * s^3 / 6 apart,
    # so the tolerance only leaves room for rounding.
    params = np.array([1., -1., 0.3, 2., curvature, 1e-11])
    clothoid = ClothoidSegment.from_params(params)
    params[ParamIndex.DCURVATURE] = 1e-13
    degenerate = ClothoidSegment.from_params(params)
    assert clothoid.curve_type == CurveType.CLOTHOID
    assert degenerate.curve_type == (CurveType.ARC if curvature else CurveType.LINE)
    for s in np.linspace(0, 2, 9):
        assert np.allclose(clothoid.position(s), degenerate.position(s), rtol=0, atol=1e-10)
        assert clothoid.heading_theta_at(s) == pytest.approx(degenerate.heading_theta_at(s), abs=1e-10)


def test_position_continuity_across_flat_threshold():
    cfg = dict(start=(1., -1.), start_angle=0.3, length=2.)
    line = ClothoidSegment(curvature=0.99e-6, end_curvature=0.99e-6, **cfg)
    arc = ClothoidSegment(curvature=1.01e-6, end_curvature=1.01e-6, **cfg)
    assert line.curve_type == CurveType.LINE
    assert arc.curve_type == CurveType.ARC
    tangent, normal = line.tangent(0), line.second_derivative(0) / line.curvature_at(0)
    for s in np.linspace(0, 2, 9):
        # the line drops a curvature below the threshold, so the two may drift apart by the lateral offset
        # 0.5 * curvature * s^2 of a curvature just above it, and no more
        gap = np.linalg.norm(line.position(s) - arc.position(s))
        assert gap <= 0.5 * 1.01e-6 * s * s + 1e-12
        # the arc of radius ~1e6 is still evaluated to full precision, up to O(curvature^2 * s^3) terms
        expected = np.array(cfg["start"]) + s * tangent + 0.5 * 1.01e-6 * s * s * normal
        assert np.allclose(arc.position(s), expected, rtol=0, atol=1e-11)
        assert np.allclose(line.position(s), np.array(cfg["start"]) + s * tangent, rtol=0, atol=1e-12)


def test_validity():
    assert not ClothoidSegment((0, 0), 0, -1, 0, 0).is_valid()
    assert ClothoidSegment((0, 0), 0, 0, 0, 0).is_valid()
    assert ClothoidSegment((0, 0), 0, 5, 0.1, 0.3).is_valid()
    assert ClothoidSegment((0, 0), 0, 5, 0.1, 0.3).is_valid() is True


def test_zero_length():
    segment = ClothoidSegment((1, 1), 0.3, 0, 0.2, 5.0)
    assert segment.dcurvature == 0
    assert segment.curve_type == CurveType.ARC
    assert np.allclose(segment.position(0), [1, 1])
    assert np.allclose(segment.end, [1, 1])


def test_start_angle_is_wrapped():
    segment = ClothoidSegment((0, 0), 3 * math.pi, 1, 0, 0)
    assert segment.start_angle == pytest.approx(math.pi)
    assert np.allclose(segment.tangent(0), [-1, 0])
    assert np.allclose(segment.end, [-1, 0])
    assert -math.pi < ClothoidSegment((0, 0), -7.5, 1, 0, 0).start_angle <= math.pi


def test_project_placeholder():
    segment = ClothoidSegment(**SEGMENTS["clothoid"])
    assert segment.project((10., 10.)) == 0.
    assert segment.project(segment.position(1.)) == 0.


@pytest.mark.parametrize("name", list(SEGMENTS.keys()))
def test_polyline(name):
    segment = ClothoidSegment(**SEGMENTS[name])
    polyline = segment.get_polyline(0.01)
    assert np.allclose(polyline[0], segment.start)
    assert np.allclose(polyline[-1], segment.end)
    assert get_polyline_length(polyline) == pytest.approx(segment.length, abs=1e-3)

    default = segment.get_polyline()
    assert np.allclose(default[1], segment.position(segment.polyline_interval))


def test_polyline_of_zero_length_segment():
    polyline = ClothoidSegment((2, 3), 0, 0, 0, 0).get_polyline()
    assert polyline.shape == (2, 2)
    assert np.allclose(polyline, [[2, 3], [2, 3]])


def test_shapely_line():
    segment = ClothoidSegment(**SEGMENTS["clothoid"])
    line = segment.shapely_line
    assert line is segment.shapely_line
    assert line.length == pytest.approx(segment.length, abs=1e-2)
    x, y = line.coords[0]
    assert np.allclose([x, y], segment.start)

    segment.trim(0, 1)
    assert segment.shapely_line is not line
    assert segment.shapely_line.length == pytest.approx(1, abs=1e-2)


if __name__ == '__main__':
    for name in SEGMENTS:
        test_start_identity(name)
        test_closed_forms(name)
        test_position_derivatives(name)
        test_position_against_quadrature(name)
    test_straight_line()
    test_unit_circle()
    test_validity()
