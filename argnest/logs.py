"""
Logging setup for applications built on argnest.

argnest modules log through standard loggers under the "argnest" namespace and never
configure handlers on import (the package only attaches a NullHandler). Applications
that want to see what the dispatcher does can call install():

    from argnest import logs
    logs.install("DEBUG")

which routes the "argnest" loggers to stderr through rich's RichHandler.
"""
import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER = "argnest"


def install(level=logging.WARNING, /, *, colorful=True, logger=LOGGER):
    """
    Attach a RichHandler on stderr to the given logger (the "argnest" namespace by default).

    Calling install() again replaces the handler it installed previously instead of
    stacking a new one.

    Returns
    - the configured logging.Logger.
    """
    target = logging.getLogger(logger)
    for handler in list(target.handlers):
        if getattr(handler, "_argnest", False):
            target.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True, no_color=not colorful),
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )
    handler._argnest = True
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    target.addHandler(handler)
    target.setLevel(level)
    return target


__all__ = (
    "install",
)
