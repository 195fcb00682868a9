import math
from abc import ABCMeta, abstractmethod
from typing import Optional

import numpy as np
from shapely import geometry


class AbstractCurve(metaclass=ABCMeta):
    """A planar curve parametrized by arc length s in [0, length]."""

    length: float

    def __init__(self):
        self._shapely_line = None

    @abstractmethod
    def position(self, s: float) -> np.ndarray:
        """
        Point on the curve.

        :param s: arc-length offset from the start [m]
        :return: the corresponding world position [m]
        """
        raise NotImplementedError()

    @abstractmethod
    def heading_theta_at(self, s: float) -> float:
        """
        Get the tangent heading at a given arc-length offset.

        :param s: arc-length offset from the start [m]
        :return: the heading [rad]
        """
        raise NotImplementedError()

    @abstractmethod
    def curvature_at(self, s: float) -> float:
        """
        Get the signed curvature at a given arc-length offset. Positive curvature turns left.

        :param s: arc-length offset from the start [m]
        :return: curvature [1/m]
        """
        raise NotImplementedError()

    def heading_at(self, s) -> np.ndarray:
        heading_theta = self.heading_theta_at(s)
        return np.array([math.cos(heading_theta), math.sin(heading_theta)])

    @property
    def start(self) -> np.ndarray:
        return self.position(0)

    @property
    def end(self) -> np.ndarray:
        return self.position(self.length)

    @property
    def end_angle(self) -> float:
        return self.heading_theta_at(self.length)

    @property
    def end_curvature(self) -> float:
        return self.curvature_at(self.length)

    def get_polyline(self, interval: float, end_s: Optional[float] = None):
        """
        Sample the curve every `interval` meters. Both end points are always included.

        :param interval: sampling step [m]
        :param end_s: stop sampling at this arc length instead of at self.length
        :return: (N, 2) array
        """
        end_s = self.length if end_s is None else end_s
        ret = []
        for s in np.arange(0, end_s, interval):
            ret.append(self.position(s))
        if len(ret) == 0:
            ret.append(self.position(0))
        ret.append(self.position(end_s))
        return np.array(ret)

    @property
    def shapely_line(self):
        """Return the sampled curve in shapely.geometry.LineString"""
        if self._shapely_line is None:
            self._shapely_line = geometry.LineString(self.get_polyline(self.polyline_interval))
        return self._shapely_line

    @property
    def polyline_interval(self) -> float:
        raise NotImplementedError("Overwrite this property to allow building shapely_line for this curve")
