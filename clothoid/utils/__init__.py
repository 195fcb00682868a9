from clothoid.utils.config import Config, merge_config_with_unknown_keys, merge_config
from clothoid.utils.fresnel import fresnel, fresnel_cs
from clothoid.utils.math import wrap_to_pi, angle_diff, rotation_matrix
