__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'flagstaff'
__author__ = 'Eiko Reishin (影皇嶺臣)'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

from .faults import *
from .values import *
from .composites import *
from .flags import *
from .usage import *
from .flagset import *
from . import commandline

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 0, 0, "final", 0, "")

__all__ = (
    "__path__",
    "__title__",
    "__author__",
    "__license__",
    "__version__",
    "version_info",
    "commandline",
)

# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
# Load the exposed API of the values
__all__ += values.__all__  # type: ignore[attr-defined]
# Load the exposed API of the composites
__all__ += composites.__all__  # type: ignore[attr-defined]
# Load the exposed API of the flags
__all__ += flags.__all__  # type: ignore[attr-defined]
# Load the exposed API of the usage renderer
__all__ += usage.__all__  # type: ignore[attr-defined]
# Load the exposed API of the flag sets (ErrorHandling is already listed)
__all__ += ("FlagSet",)
