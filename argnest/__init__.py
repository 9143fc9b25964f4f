__title__ = 'argnest'
__author__ = 'Eiko Reishin (影皇嶺臣)'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

import logging

from .commands import *
from .faults import *
from .help import *
from .matches import *
from .schema import *
from .utils import file_stem

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

# Library logging stays silent unless the application configures it (see argnest.logs).
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = (
    "__title__",
    "__author__",
    "__license__",
    "__version__",
    "version_info",
    "file_stem",
)

# Load the exposed API of the commands
__all__ += commands.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
# Load the exposed API of the help snapshots
__all__ += help.__all__  # type: ignore[attr-defined]
# Load the exposed API of the matches
__all__ += matches.__all__  # type: ignore[attr-defined]
# Load the exposed API of the schema
__all__ += schema.__all__  # type: ignore[attr-defined]
