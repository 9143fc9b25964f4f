"""
Program metadata shown in help and version output.

Resolution order, per field
1. the value given explicitly to the Commander,
2. the installed distribution's metadata, when a distribution name was given,
3. dunders of the running script (__main__): __prog__, __version__, __author__ and the
   module docstring for the description,
4. for the name only: the basename of sys.argv[0].

Metadata is resolved every time a commander builds its schema, so changes to the
running script's dunders are always picked up.
"""
import inspect
import logging
import os.path
import sys
from importlib import metadata as importlib_metadata
from typing import NamedTuple

from .utils import Unset, coalesce

logger = logging.getLogger(__name__)


class Metadata(NamedTuple):
    name: str
    version: str | None
    descr: str | None
    author: str | None


def _distribution(name):
    if name is Unset:
        return {}
    try:
        found = importlib_metadata.metadata(name)
    except importlib_metadata.PackageNotFoundError:
        logger.debug("distribution %r is not installed; skipping its metadata", name)
        return {}
    return {
        "name": found.get("Name"),
        "version": found.get("Version"),
        "descr": found.get("Summary"),
        "author": found.get("Author") or found.get("Author-email"),
    }


def _script():
    main = sys.modules.get("__main__")
    if main is None:
        return {}
    return {
        "name": getattr(main, "__prog__", None),
        "version": getattr(main, "__version__", None),
        "descr": inspect.getdoc(main) if getattr(main, "__doc__", None) else None,
        "author": getattr(main, "__author__", None),
    }


def resolve(name=Unset, version=Unset, descr=Unset, author=Unset, *, distribution=Unset):
    """
    Resolve program metadata (see module docstring for the order).

    Returns
    - Metadata(name, version, descr, author); only name is guaranteed to be set.
    """
    explicit = {"name": name, "version": version, "descr": descr, "author": author}
    sources = (_distribution(distribution), _script())

    fields = {}
    for field, value in explicit.items():
        if value is Unset:
            value = next((source[field] for source in sources if source.get(field)), Unset)
        fields[field] = coalesce(value)

    if not fields["name"]:
        fields["name"] = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "program"
    return Metadata(**fields)


__all__ = (
    "Metadata",
    "resolve",
)
