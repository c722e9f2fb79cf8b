"""Parameter group expansion and algorithm parameter schemas."""

from .expander import FIT_PARAM_PREFIX, control_params, expand_parameter_groups, is_fit_param
from .schemas import FitParams, ParameterGroup, ParamSchema, ParamSpec, TrainOptions

__all__ = [
    "FIT_PARAM_PREFIX",
    "FitParams",
    "ParamSchema",
    "ParamSpec",
    "ParameterGroup",
    "TrainOptions",
    "control_params",
    "expand_parameter_groups",
    "is_fit_param",
]
