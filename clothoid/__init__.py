from clothoid.component.clothoid_segment import ClothoidSegment
from clothoid.constants import CurveType, ParamIndex, CLOTHOID_DEFAULT_CONFIG
from clothoid.version import VERSION
