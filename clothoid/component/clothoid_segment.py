import copy
import math
from collections import namedtuple
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from clothoid.component.abs_curve import AbstractCurve
from clothoid.constants import CLOTHOID_DEFAULT_CONFIG, HALF_PI, NUM_PARAMS, CurveType, ParamIndex
from clothoid.logger import get_logger
from clothoid.utils.config import Config, merge_config
from clothoid.utils.fresnel import fresnel_cs, fresnel_derivative_cs
from clothoid.utils.math import normal_vector, reflected_rotation_matrix, rotation_matrix, wrap_to_pi
from clothoid.utils.quadrature import gauss_legendre_nodes

logger = get_logger()

# below this |curvature * s| the arc Jacobian is evaluated by its series expansion
SMALL_TURN_THRESHOLD = 0.1

# A clothoid queried at s is near-arc when |tdiff * s| < NEAR_ARC_SPAN * max(1, |t1|): [0, s] covers a short piece
# of the canonical spiral far from its inflection point. The Fresnel closed forms lose digits there, roughly
# eps * |curvature / dcurvature| for positions and worse for the Jacobian, so both are integrated instead.
NEAR_ARC_SPAN = 0.1
# at most this much heading change [rad] per quadrature panel
QUADRATURE_PANEL_TURN = 0.5

# Everything derived from the parameter vector. A canonical-space point cs is taken to the world by
# shift + mat @ cs, and arc length s is taken to the canonical parameter by t = t1 + s * tdiff.
CanonicalTransform = namedtuple("CanonicalTransform", ["curve_type", "t1", "tdiff", "mat", "shift"])


class ClothoidSegment(AbstractCurve):
    """
    A piece of an Euler spiral: a curve whose curvature changes linearly with arc length,
    curvature(s) = curvature + s * dcurvature.

    Straight lines and circular arcs are the degenerate cases and are evaluated by their own closed forms, so the
    same object can represent any of the three. The defining scalars are stored in one vector indexed by
    ParamIndex, and queries are answered from a CanonicalTransform rebuilt from that vector whenever it changes.
    Clothoids that are locally almost arcs are integrated numerically instead, see NEAR_ARC_SPAN.

    Precondition of every public method: the parameter vector is well formed (finite values). Nothing is checked
    and nothing is raised; malformed input produces meaningless numbers. Use is_valid() for the length check.
    """
    def __init__(
        self,
        start: Union[np.ndarray, Sequence[float]],
        start_angle: float,
        length: float,
        curvature: float,
        end_curvature: float,
        config: Optional[Union[dict, Config]] = None
    ):
        """
        :param start: start position [m]
        :param start_angle: tangent heading at the start [rad]
        :param length: arc length of the segment [m]
        :param curvature: signed curvature at the start [1/m]
        :param end_curvature: signed curvature at the end [1/m]
        :param config: overrides of CLOTHOID_DEFAULT_CONFIG
        """
        super(ClothoidSegment, self).__init__()
        self.config = merge_config(CLOTHOID_DEFAULT_CONFIG, config, unchangeable=True)
        params = np.zeros(NUM_PARAMS)
        params[ParamIndex.X] = start[0]
        params[ParamIndex.Y] = start[1]
        params[ParamIndex.ANGLE] = wrap_to_pi(start_angle)
        params[ParamIndex.LENGTH] = length
        params[ParamIndex.CURVATURE] = curvature
        if length == 0:
            # curvature can not change over nothing
            logger.debug("Zero-length segment, curvature change {} is dropped".format(end_curvature - curvature))
            params[ParamIndex.DCURVATURE] = 0.0
        else:
            params[ParamIndex.DCURVATURE] = (end_curvature - curvature) / length
        self._params = params
        self._transform = None
        self._params_changed()

    @classmethod
    def from_params(cls, params: Union[np.ndarray, Sequence[float]], config: Optional[Union[dict, Config]] = None):
        """
        Build a segment directly from a parameter vector laid out as ParamIndex.
        """
        params = np.asarray(params, dtype=float)
        length = params[ParamIndex.LENGTH]
        curvature = params[ParamIndex.CURVATURE]
        ret = cls(
            params[:2],
            params[ParamIndex.ANGLE],
            length,
            curvature,
            curvature + length * params[ParamIndex.DCURVATURE],
            config=config
        )
        # keep dcurvature exact, the end curvature round trip may lose bits
        ret.set_params(params)
        return ret

    def _params_changed(self):
        """
        Select the evaluation regime and rebuild the canonical transform. The previous transform is replaced as a
        whole, never patched.
        """
        params = self._params
        angle = params[ParamIndex.ANGLE]
        curvature = params[ParamIndex.CURVATURE]
        dcurvature = params[ParamIndex.DCURVATURE]

        if abs(dcurvature) < self.config["arc_threshold"]:
            t1 = 0.0
            if abs(curvature) < self.config["flat_threshold"]:
                curve_type = CurveType.LINE
                tdiff = 1.0
                mat = rotation_matrix(angle)
                start_cs = np.zeros(2)
            else:
                # unit circle parametrized by angle, turned and scaled to radius 1 / curvature
                curve_type = CurveType.ARC
                tdiff = curvature
                mat = rotation_matrix(angle - HALF_PI, 1. / curvature)
                start_cs = np.array([1., 0.])
        else:
            curve_type = CurveType.CLOTHOID
            scale = math.sqrt(abs(1. / (math.pi * dcurvature)))
            t1 = curvature * scale
            tdiff = dcurvature * scale
            if tdiff > 0:
                mat = rotation_matrix(angle - t1 * t1 * HALF_PI, math.pi * scale)
            else:
                # Fresnel integrals are odd, mirror x to walk the spiral backwards
                mat = reflected_rotation_matrix(angle + t1 * t1 * HALF_PI, math.pi * scale)
            start_cs = np.array(fresnel_cs(t1))

        shift = params[:2] - mat.dot(start_cs)
        self._transform = CanonicalTransform(curve_type, t1, tdiff, mat, shift)
        self._shapely_line = None
        logger.debug("Segment rebuilt as {}, t1={}, tdiff={}".format(curve_type, t1, tdiff))

    # ===== Parameters =====
    @property
    def params(self) -> np.ndarray:
        return self._params.copy()

    def set_params(self, params: Union[np.ndarray, Sequence[float]]):
        """
        Replace the whole parameter vector, e.g. with an optimizer step, and rebuild the derived state.
        The angle is stored as given.
        """
        self._params = np.array(params, dtype=float)
        self._params_changed()
        return self

    @property
    def start(self) -> np.ndarray:
        return self._params[:2].copy()

    @property
    def start_angle(self) -> float:
        return float(self._params[ParamIndex.ANGLE])

    @property
    def length(self) -> float:
        return float(self._params[ParamIndex.LENGTH])

    @property
    def start_curvature(self) -> float:
        return float(self._params[ParamIndex.CURVATURE])

    @property
    def dcurvature(self) -> float:
        return float(self._params[ParamIndex.DCURVATURE])

    @property
    def curve_type(self) -> str:
        return self._transform.curve_type

    @property
    def polyline_interval(self) -> float:
        return self.config["polyline_interval"]

    def is_valid(self) -> bool:
        return not bool(self._params[ParamIndex.LENGTH] < 0.)

    def copy(self) -> "ClothoidSegment":
        """Independent segment with the same parameters. The unchangeable config is shared."""
        ret = copy.copy(self)
        ret._params = self._params.copy()
        return ret

    # ===== Evaluation =====
    def position(self, s: float) -> np.ndarray:
        transform = self._transform
        t = transform.t1 + s * transform.tdiff
        if transform.curve_type == CurveType.LINE:
            cs = np.array([t, 0.])
        elif transform.curve_type == CurveType.ARC:
            # cs(t) - cs(0) = (cos(t) - 1, sin(t)), taken from the start since mat grows as 1 / curvature
            half_sin = math.sin(0.5 * t)
            return self._params[:2] + transform.mat.dot([-2. * half_sin * half_sin, math.sin(t)])
        elif self._is_near_arc(s):
            nodes, weights, headings = self._quadrature(s)
            return self._params[:2] + np.array([weights.dot(np.cos(headings)), weights.dot(np.sin(headings))])
        else:
            cs = np.array(fresnel_cs(t))
        return transform.shift + transform.mat.dot(cs)

    def _is_near_arc(self, s: float) -> bool:
        transform = self._transform
        if transform.curve_type != CurveType.CLOTHOID:
            return False
        return abs(transform.tdiff * s) < NEAR_ARC_SPAN * max(1., abs(transform.t1))

    def _quadrature(self, s: float):
        """
        Composite Gauss-Legendre nodes over [0, s] with the heading at every node. The panels are short enough that
        the heading turns by at most QUADRATURE_PANEL_TURN within each of them.

        :return: nodes, weights, headings
        """
        params = self._params
        curvature = params[ParamIndex.CURVATURE]
        dcurvature = params[ParamIndex.DCURVATURE]
        # |curvature + u * dcurvature| <= |curvature| + |dcurvature * s| on [0, s]
        turn = (abs(curvature) + abs(dcurvature * s)) * abs(s)
        num_panels = max(1, int(math.ceil(turn / QUADRATURE_PANEL_TURN)))
        nodes, weights = gauss_legendre_nodes(s, num_panels)
        headings = params[ParamIndex.ANGLE] + nodes * (curvature + 0.5 * nodes * dcurvature)
        return nodes, weights, headings

    def heading_theta_at(self, s: float) -> float:
        params = self._params
        return float(
            params[ParamIndex.ANGLE] + s * (params[ParamIndex.CURVATURE] + 0.5 * s * params[ParamIndex.DCURVATURE])
        )

    def curvature_at(self, s: float) -> float:
        return float(self._params[ParamIndex.CURVATURE] + s * self._params[ParamIndex.DCURVATURE])

    def tangent(self, s: float) -> np.ndarray:
        """Unit tangent, the first derivative of position w.r.t. arc length"""
        return self.heading_at(s)

    def second_derivative(self, s: float) -> np.ndarray:
        """Curvature vector: the tangent turned left by 90 degrees, scaled by the curvature at s"""
        return self.curvature_at(s) * normal_vector(self.heading_theta_at(s))

    def eval(self, s: float) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        :return: position, tangent and second derivative at s
        """
        heading = self.heading_theta_at(s)
        tangent = np.array([math.cos(heading), math.sin(heading)])
        return self.position(s), tangent, self.curvature_at(s) * normal_vector(heading)

    def get_polyline(self, interval: Optional[float] = None, end_s: Optional[float] = None):
        interval = self.polyline_interval if interval is None else interval
        return super(ClothoidSegment, self).get_polyline(interval, end_s)

    def project(self, point: Union[np.ndarray, Sequence[float]]) -> float:
        """
        Closest-point projection is not supported yet. Always returns 0.
        """
        logger.warning("ClothoidSegment.project() is not supported, 0.0 is returned", extra={"log_once": True})
        return 0.

    # ===== Re-parametrization =====
    def trim(self, s_from: float, s_to: float) -> "ClothoidSegment":
        """
        Keep only [s_from, s_to] of this segment. The range is not checked against [0, length].
        """
        # every new value is read from the old parameters before the vector is replaced
        params = self._params.copy()
        params[:2] = self.position(s_from)
        params[ParamIndex.ANGLE] = wrap_to_pi(self.heading_theta_at(s_from))
        params[ParamIndex.CURVATURE] = self.curvature_at(s_from)
        params[ParamIndex.LENGTH] = s_to - s_from
        return self.set_params(params)

    def flip(self) -> "ClothoidSegment":
        """
        Reverse the direction of travel. The curve keeps its shape, its start becomes the old end.
        """
        length = self.length
        params = self._params.copy()
        params[:2] = self.position(length)
        params[ParamIndex.ANGLE] = wrap_to_pi(math.pi + self.heading_theta_at(length))
        # curvature changes sign with the direction, its rate of change w.r.t. the new arc length does not
        params[ParamIndex.CURVATURE] = -self.curvature_at(length)
        return self.set_params(params)

    # ===== Sensitivity =====
    def jacobian_at(self, s: float, out: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Partial derivatives of position(s) w.r.t. every parameter. Row i is d position / d params[i], so the
        LENGTH row is always zero.

        :param s: arc-length offset [m]
        :param out: optional floating point array of shape (6, 2) to write into
        :return: the (6, 2) Jacobian, out itself when it is given
        """
        if out is None:
            out = np.zeros((NUM_PARAMS, 2))
        else:
            assert out.shape == (NUM_PARAMS, 2) and np.issubdtype(out.dtype, np.floating), \
                "out should be a float array of shape ({}, 2), got {} {}".format(NUM_PARAMS, out.dtype, out.shape)
            out[...] = 0.
        out[ParamIndex.X, 0] = 1.
        out[ParamIndex.Y, 1] = 1.

        diff = self.position(s) - self._params[:2]
        out[ParamIndex.ANGLE, 0] = -diff[1]
        out[ParamIndex.ANGLE, 1] = diff[0]

        curve_type = self._transform.curve_type
        angle = self._params[ParamIndex.ANGLE]
        if curve_type == CurveType.LINE:
            normal = normal_vector(angle)
            out[ParamIndex.CURVATURE] = (0.5 * s * s) * normal
            out[ParamIndex.DCURVATURE] = (s * s * s / 6.) * normal
        elif curve_type == CurveType.ARC:
            curvature = self._params[ParamIndex.CURVATURE]
            turn = curvature * s
            if abs(turn) < SMALL_TURN_THRESHOLD:
                # Taylor series of the closed forms below in the start frame, which cancel badly for small turns
                turn_sqr = turn * turn
                rot = rotation_matrix(angle)
                out[ParamIndex.CURVATURE] = (s * s) * rot.dot(
                    [turn * (-1. / 3. + turn_sqr * (1. / 30. - turn_sqr / 840.)),
                     0.5 + turn_sqr * (-1. / 8. + turn_sqr / 144.)]
                )
                out[ParamIndex.DCURVATURE] = (s * s * s) * rot.dot(
                    [turn * (-1. / 8. + turn_sqr / 72.), 1. / 6. + turn_sqr * (-1. / 20. + turn_sqr / 336.)]
                )
                return out
            cur_angle = self.heading_theta_at(s)
            cos_cur, sin_cur = math.cos(cur_angle), math.sin(cur_angle)
            cos_start, sin_start = math.cos(angle), math.sin(angle)
            curv_s = curvature * s
            out[ParamIndex.CURVATURE] = np.array(
                [curv_s * cos_cur + sin_start - sin_cur, curv_s * sin_cur + cos_cur - cos_start]
            ) / (curvature * curvature)
            half_sqr = curv_s * curv_s * 0.5 - 1.
            out[ParamIndex.DCURVATURE] = np.array(
                [
                    cos_start + half_sqr * cos_cur - curv_s * sin_cur,
                    sin_start + half_sqr * sin_cur + curv_s * cos_cur
                ]
            ) / (curvature * curvature * curvature)
        elif self._is_near_arc(s):
            # d position / d x = int_0^s d heading(u) / d x * normal(u) du
            nodes, weights, headings = self._quadrature(s)
            normals = np.array([-np.sin(headings), np.cos(headings)])
            out[ParamIndex.CURVATURE] = normals.dot(weights * nodes)
            out[ParamIndex.DCURVATURE] = 0.5 * normals.dot(weights * nodes * nodes)
        else:
            out[ParamIndex.CURVATURE:ParamIndex.DCURVATURE + 1] = self._clothoid_jacobian(s).T
        return out

    def _clothoid_jacobian(self, s: float) -> np.ndarray:
        """
        d position / d (curvature, dcurvature) in the clothoid regime, as a 2x2 matrix with one column per parameter.

        With x standing for either parameter and cs(t) = (C(t), S(t)):
            position = shift + mat @ cs(t),  shift = start - mat @ cs(t1)
            dp/dx = dmat/dx @ (cs(t) - cs(t1)) + mat @ (cs'(t) dt/dx - cs'(t1) dt1/dx)
        where cs'(t) = (cos(pi t^2 / 2), sin(pi t^2 / 2)).
        """
        transform = self._transform
        angle = self._params[ParamIndex.ANGLE]
        curvature = self._params[ParamIndex.CURVATURE]
        dcurvature = self._params[ParamIndex.DCURVATURE]
        t1 = transform.t1
        t = t1 + s * transform.tdiff
        scale = math.sqrt(abs(1. / (math.pi * dcurvature)))

        # d scale / d dcurvature = -scale / (2 dcurvature)
        dt1_dx = np.array([scale, -curvature * scale / (2. * dcurvature)])
        dt_dx = dt1_dx + np.array([0., 0.5 * scale * s])

        cs = np.array(fresnel_cs(t))
        start_cs = np.array(fresnel_cs(t1))
        dcs = np.array(fresnel_derivative_cs(t))
        dstart_cs = np.array(fresnel_derivative_cs(t1))
        result = np.outer(transform.mat.dot(dcs), dt_dx) - np.outer(transform.mat.dot(dstart_cs), dt1_dx)

        if transform.tdiff > 0:
            angle_shift = angle - t1 * t1 * HALF_PI
        else:
            angle_shift = angle + t1 * t1 * HALF_PI
        cos_as, sin_as = math.cos(angle_shift), math.sin(angle_shift)

        dmat_dc = np.array([[sin_as, cos_as], [-cos_as, sin_as]])
        dmat_dc *= math.pi * scale * curvature / dcurvature

        curv_sqr = curvature * curvature
        diag = -dcurvature * cos_as - curv_sqr * sin_as
        off_diag = dcurvature * sin_as - curv_sqr * cos_as
        dmat_dd = np.array([[diag, off_diag], [-off_diag, diag]])
        dmat_dd *= HALF_PI * scale / (dcurvature * dcurvature)

        if transform.tdiff < 0:
            dmat_dc[:, 0] *= -1
            dmat_dd[:, 0] *= -1

        delta_cs = cs - start_cs
        result[:, 0] += dmat_dc.dot(delta_cs)
        result[:, 1] += dmat_dd.dot(delta_cs)
        return result

    def __repr__(self):
        return "ClothoidSegment({}, start={}, angle={}, length={}, curvature={}, dcurvature={})".format(
            self.curve_type, self.start.tolist(), self.start_angle, self.length, self.start_curvature,
            self.dcurvature
        )
