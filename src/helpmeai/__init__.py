from ._version import __version__
from .client import HelpMeAIError, RegistryClient, RegistryError, RegistryHTTPError
from .matcher import match_skills
from .selection import FlowState, InstallFlow, Step
from .versions import matches

__all__ = [
    "FlowState",
    "HelpMeAIError",
    "InstallFlow",
    "RegistryClient",
    "RegistryError",
    "RegistryHTTPError",
    "Step",
    "__version__",
    "match_skills",
    "matches",
]
