from .DemanglerConfig import DemanglerConfig
from .exceptions import (
    DemangleError,
    InvalidPunycode,
    OutputLimitExceeded,
    RecursionLimitReached,
    TypeNotFoundError,
    UnableToLegacyDemangle,
    UnableTov0Demangle,
    WorkLimitReached,
)
from .main import demangle, is_mangled, try_demangle, write_demangled
from .printer import RenderStyle
from .rust import ManglingType, RustDemangler
