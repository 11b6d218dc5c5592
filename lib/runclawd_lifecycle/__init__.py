from .config_types import DeploymentContext, DeploymentMode, ExtractedValues
from .errors import (
    ConvergenceTimeout,
    ForeignStateConflict,
    PreconditionFailure,
    RunclawdError,
    UnsupportedEnvironment,
    UserDeclined,
)

__all__ = [
    "DeploymentContext",
    "DeploymentMode",
    "ExtractedValues",
    "RunclawdError",
    "PreconditionFailure",
    "UnsupportedEnvironment",
    "ForeignStateConflict",
    "ConvergenceTimeout",
    "UserDeclined",
]
