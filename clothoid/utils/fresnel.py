"""
Fresnel integrals S(t) = int_0^t sin(pi u^2 / 2) du and C(t) = int_0^t cos(pi u^2 / 2) du.

The evaluation itself is delegated to scipy.special.fresnel, which is smooth through t = 0 and odd in t.
"""
import math
from typing import Tuple

from scipy import special


def fresnel(t: float) -> Tuple[float, float]:
    """
    Evaluate the Fresnel integrals at a scalar.

    :param t: integral upper limit
    :return: (S(t), C(t)) as python floats
    """
    s, c = special.fresnel(t)
    return float(s), float(c)


def fresnel_cs(t: float) -> Tuple[float, float]:
    """
    Same as fresnel(), but ordered (C(t), S(t)), which is the canonical-space point of a clothoid.
    """
    s, c = fresnel(t)
    return c, s


def fresnel_derivative_cs(t: float) -> Tuple[float, float]:
    """
    (dC/dt, dS/dt) = (cos(pi t^2 / 2), sin(pi t^2 / 2))
    """
    phase = 0.5 * math.pi * t * t
    return math.cos(phase), math.sin(phase)
