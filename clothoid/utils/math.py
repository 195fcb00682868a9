import math

import numpy as np


def wrap_to_pi(x: float) -> float:
    """Wrap the input radian to (-pi, pi]. Note that -pi is exclusive and +pi is inclusive.

    Args:
        x (float): radian.

    Returns:
        The radian in range (-pi, pi].
    """
    angle = x % (2 * math.pi)
    if angle > math.pi:
        angle -= 2 * math.pi
    return angle


def angle_diff(a: float, b: float) -> float:
    """Signed smallest difference a - b, in (-pi, pi]"""
    return wrap_to_pi(a - b)


def rotation_matrix(angle: float, scale: float = 1.0) -> np.ndarray:
    """
    Counter-clockwise rotation by angle, uniformly scaled.

    :param angle: rotation angle [rad]
    :param scale: uniform scale applied after the rotation
    :return: 2x2 matrix
    """
    c, s = scale * math.cos(angle), scale * math.sin(angle)
    return np.array([[c, -s], [s, c]])


def reflected_rotation_matrix(angle: float, scale: float = 1.0) -> np.ndarray:
    """
    rotation_matrix(angle, scale) with its first column negated, i.e. x is mirrored before rotating.
    """
    c, s = scale * math.cos(angle), scale * math.sin(angle)
    return np.array([[-c, -s], [-s, c]])


def normal_vector(angle: float) -> np.ndarray:
    """Unit vector pointing to the left of heading angle"""
    return np.array([-math.sin(angle), math.cos(angle)])


def get_polyline_length(points_array):
    diff = np.diff(points_array, axis=0)
    distances = np.sqrt(np.sum(diff**2, axis=1))
    return np.sum(distances)
