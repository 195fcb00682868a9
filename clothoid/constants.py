import math

HALF_PI = math.pi / 2

# |dcurvature| below this is treated as a constant-curvature arc
ARC_DCURVATURE_THRESHOLD = 1e-12
# |curvature| below this (inside the arc regime) is treated as a straight line
FLAT_CURVATURE_THRESHOLD = 1e-6

NUM_PARAMS = 6


class ParamIndex:
    """
    Row/slot of every defining scalar in the parameter vector and in the Jacobian returned by
    ClothoidSegment.jacobian_at.
    """
    X = 0
    Y = 1
    ANGLE = 2
    LENGTH = 3
    CURVATURE = 4
    DCURVATURE = 5


class CurveType:
    """
    Evaluation regime of a segment. Selected from the parameter vector every time it changes.
    """
    LINE = "line"
    ARC = "arc"
    CLOTHOID = "clothoid"


CLOTHOID_DEFAULT_CONFIG = dict(
    arc_threshold=ARC_DCURVATURE_THRESHOLD,
    flat_threshold=FLAT_CURVATURE_THRESHOLD,
    # sampling step used by get_polyline() when no interval is given
    polyline_interval=0.1,
)
