"""
Argnest utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the schema, commands and faults layers.

Overview
- UnsetType / Unset
  • Singleton sentinel to represent “value not provided” without conflating with None.
  • Falsey (bool(Unset) is False), printable as "Unset", and non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default, but preserve legitimate falsey values like None/0/""/[].

- mirror("attr")
  • Read-only property factory exposing a private backing field (self._attr), handing out
    fresh copies of containers so public API state cannot be mutated through it.

- file_stem()
  • Stem of the calling module's file name, handy to name a command after the module defining it.

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> coalesce(None, "fallback") is None
    True
"""
import functools
import inspect
from collections.abc import Sequence, Mapping, Set
from pathlib import Path
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset" for friendly diagnostics.
    - Non-subclassable: this type is sealed; do not subclass.
    - Singleton per process: UnsetType() always yields the same instance.
    """

    def __or__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Returns the given object unless it is Unset, in which case the default is
    returned. Falsey values like None, 0, "" or [] are preserved as-is.
    """
    return object if object is not Unset else default


def _immortalize(object):
    """
    Recursively copy container values (lists for sequences, dicts for mappings, sets for sets).

    Strings and any other non-container objects are returned as-is.
    """
    if isinstance(object, Sequence) and not isinstance(object, str):
        return list(map(_immortalize, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_immortalize, object.values())))
    elif isinstance(object, Set):
        return set(map(_immortalize, object))
    else:
        return coalesce(object)


def mirror(name, /):
    """
    Define a read-only property that mirrors a private backing attribute.

    The property reads "_{name}" from the instance; Unset resolves to None and
    containers are handed out as fresh copies.

    Example
    - Given self._children, declare children = mirror("children") to expose it safely.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    getter.__name__ = getter.__qualname__ = name
    return property(getter)


def file_stem():
    """
    Return the stem of the file that called this function.

    Lets a module name its command after itself:

        # commands/deploy.py
        deploy = Command(file_stem()).description("Deploys things")

    Raises
    - RuntimeError: when the caller has no backing file (e.g. an interactive session).
    """
    frame = inspect.currentframe().f_back
    try:
        filename = frame.f_code.co_filename
    finally:
        del frame
    if not filename or filename.startswith("<"):
        raise RuntimeError("file_stem() caller is not backed by a file")
    return Path(filename).stem


Unset = UnsetType()
"""
Internal sentinel for “not provided”.

Use Unset as a default when None is a valid, user-meaningful value but you still
need to distinguish “no input” from “explicitly passed None”.
"""


__all__ = (
    # Functions
    "coalesce",
    "mirror",
    "file_stem",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
