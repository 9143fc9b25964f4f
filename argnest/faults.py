"""
Argnest faults (errors and warnings) and rendering.

Scope
- ErrorKind: canonical, stable numeric identifiers for every outcome the parser layer
  can surface. Codes are grouped by domain so logs and searches stay predictable.
- CommandError and its subclasses: outcomes produced while parsing, carrying the exact
  text to show and knowing how to render themselves through rich.
- ConsistencyFault: the argument parser broke its output contract (e.g. no usage line).
  It is intentionally NOT a CommandError so it is never mistaken for a user mistake.
- CommandWarning / DiscardedCommandsWarning: builder-time warnings.
- trigger(): central entry point to surface a CommandError (raise, or print and exit).

Taxonomy
- HelpRequested / VersionRequested: the user explicitly passed -h/--help or -V/--version.
  Propagated as-is; printed on stdout with exit status 0 in shell mode.
- HelpDisplayed: invalid input, or no subcommand matched and no fallback was registered.
  The message already holds the original error (if any) plus the full contextual help;
  printed verbatim on stderr with exit status 1 in shell mode.
- ParseError: a raw parser failure. It is rewritten into HelpDisplayed by the commander
  before it ever reaches a caller.
- Errors raised by runners and fallbacks are not faults: they propagate untouched.

Integration
- The host application may provide __styles__ (palette overrides) and __codes__
  (code relabeling) mappings in __main__.
"""
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text


class ErrorKind(IntEnum):
    """
    canonical fault codes used across argnest (stable identifiers).

    grouping (by high-level domain)
    - explicit requests (101xx)
      • HELP_REQUESTED, VERSION_REQUESTED
    - rewritten outcomes (111xx)
      • HELP_DISPLAYED
    - raw parser failures (112xx)
      • PARSE_ERROR
    - warnings (121xx)
      • DISCARDED_COMMANDS
    """
    # --- explicit requests (10xxx) ---
    HELP_REQUESTED     = 10101
    VERSION_REQUESTED  = 10102

    # --- rewritten outcomes (11xxx) ---
    HELP_DISPLAYED     = 11101

    # --- raw parser failures (11xxx) ---
    PARSE_ERROR        = 11201

    # --- warnings (12xxx) ---
    DISCARDED_COMMANDS = 12101

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandError(Exception):
    """
    Base type for every outcome produced by the parsing layer.

    Attributes
    - message: the exact text to show the user.
    - options: read-only rendering/runtime options (prog, shell, colorful, fancy, ...).

    Class-level contract (overridden by subclasses)
    - __kind__: the ErrorKind of the outcome.
    - __title__: short human title shown by the fancy renderer.
    - __status__: exit status used in shell mode.
    - __stderr__: whether shell mode prints on stderr.
    """
    __kind__ = ErrorKind.PARSE_ERROR
    __title__ = "bad input"
    __status__ = 1
    __stderr__ = True

    def __init__(self, message, /, **options):
        if not isinstance(message, str):
            raise TypeError(f"{type(self).__name__} message must be a string")
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def kind(self):
        return type(self).__kind__

    def __str__(self):
        return self.message

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",

            # body
            "error-message": "#C8C8D0",
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", False)

        def text(fragment, style=""):
            return Text(str(fragment), styles[style] if colorful else "")

        message = text(self.message.rstrip("\n"), "error-message")

        if not self.options.get("fancy", False):
            return message

        header = Text.assemble(
            "[ ",
            text(self.options.get("prog", getattr(main, "__prog__", "")), "prog-name"),
            " — ",
            text(self.kind.normalize(), "code"),
            " | ",
            text(type(self).__title__.title(), "error-title"),
            " ]"
        )
        return Panel(Group(message), title=header, title_align="left")

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self
        Console(stderr=type(self).__stderr__, soft_wrap=True).print(self, highlight=False)
        sys.exit(type(self).__status__)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        replaced = type(self)(self.message, **{**self.options, **overrides})
        replaced.__cause__ = self.__cause__
        replaced.__suppress_context__ = self.__suppress_context__
        return replaced


class HelpRequested(CommandError):
    """The user explicitly asked for help (-h/--help); message is the rendered help."""
    __kind__ = ErrorKind.HELP_REQUESTED
    __title__ = "help"
    __status__ = 0
    __stderr__ = False


class VersionRequested(CommandError):
    """The user explicitly asked for the version (-V/--version)."""
    __kind__ = ErrorKind.VERSION_REQUESTED
    __title__ = "version"
    __status__ = 0
    __stderr__ = False


class HelpDisplayed(CommandError):
    """
    Contextual help is the outcome: either the input was invalid, or no subcommand matched
    and no fallback handler was registered.

    The message is complete and meant to be printed verbatim.
    """
    __kind__ = ErrorKind.HELP_DISPLAYED
    __title__ = "help displayed"


class ParseError(CommandError):
    """
    Raw failure reported by the argument parser.

    message is the parser's formatted output: the usage line(s) followed by
    "<prog>: error: <reason>". The prog and reason are also kept separately in options.
    """
    __kind__ = ErrorKind.PARSE_ERROR

    @property
    def prog(self):
        return self.options.get("prog")

    @property
    def reason(self):
        return self.options.get("reason", self.message)


class ConsistencyFault(RuntimeError):
    """
    The argument parser broke an assumption argnest relies on (output format, tree shape).

    This signals a bug or an incompatible parser version, never a user mistake.
    """


class CommandWarning(Warning):
    __kind__ = ErrorKind.DISCARDED_COMMANDS

    def __init__(self, message, /, **options):
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message


class DiscardedCommandsWarning(CommandWarning):
    """derive_context() dropped subcommands or a fallback registered for the previous context."""


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see CommandError).
    - options are merged into the fault via __replace__(**options) before triggering.
    - outside shell mode the fault is raised; in shell mode it is printed and the process exits.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    if not options.get("shell", False):
        raise fault
    fault.__replace__(**options).__trigger__()


__all__ = (
    "ErrorKind",
    "CommandError",
    "HelpRequested",
    "VersionRequested",
    "HelpDisplayed",
    "ParseError",
    "ConsistencyFault",
    "CommandWarning",
    "DiscardedCommandsWarning",
    "trigger",
)
