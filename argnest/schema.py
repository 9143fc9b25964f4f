"""
Argnest schema layer: declare parser levels, then compile them into argparse.

What this module provides
- Schema: a fluent, declarative description of one command level (identity, help
  metadata, argument declarations and child levels). Option contributors receive a
  Schema and return it, the same way they would chain calls on a parser builder.
- Parser: the argparse.ArgumentParser subclass produced by Schema.compile(). It never
  prints or exits on its own:
  • -h/--help raises HelpRequested carrying the rendered help,
  • -V/--version raises VersionRequested carrying "name version",
  • every other failure raises ParseError carrying argparse's formatted message.

Design notes
- argparse is the grammar; this module only feeds it declarations and reads back its
  rendered text. Flags and keyword arguments given to Schema.argument() are forwarded
  to ArgumentParser.add_argument() untouched.
- Each level parses into its own namespace (see _CommandsAction) so values declared at
  different levels never collide; the matched child is stored under COMMAND.
- Global options (argument(..., globally=True)) are re-declared on every descendant level
  with an "absent" default, so a value given at a deeper level is visible without erasing
  the one given higher up. Matches.from_namespace() reconciles them afterwards: counted
  and appended options add up over the levels, any other option keeps the deepest value.
  A required global option is satisfied by a value given at any level of the path.
- Options declared with argparse's own action="help" / action="version" behave like the
  automatic -h/-V: they raise instead of printing.
"""
import argparse
import logging
import sys
from types import MappingProxyType

from .faults import HelpRequested, VersionRequested, ParseError
from .utils import Unset, coalesce, mirror

logger = logging.getLogger(__name__)

# Namespace attribute holding the (name, namespace) pair of the matched child level.
COMMAND = "__command__"


class _HelpAction(argparse.Action):
    """-h/--help (or any action="help" option): raise HelpRequested with the level's full help."""

    def __init__(self, option_strings, dest=argparse.SUPPRESS, default=argparse.SUPPRESS, help=None, **options):
        super().__init__(option_strings=option_strings, dest=dest, default=default, nargs=0, help=help, **options)

    def __call__(self, parser, namespace, values, option_string=None):
        raise HelpRequested(parser.format_help(), prog=parser.prog)


class _VersionAction(argparse.Action):
    """
    -V/--version (or any action="version" option): raise VersionRequested.

    Like argparse's own version action, "%(prog)s" in the version string is replaced
    with the level's program name; without a version string the program name is shown.
    """

    def __init__(
            self,
            option_strings,
            version=None,
            dest=argparse.SUPPRESS,
            default=argparse.SUPPRESS,
            help=None,
            **options,
    ):
        super().__init__(option_strings=option_strings, dest=dest, default=default, nargs=0, help=help, **options)
        self.version = version

    def __call__(self, parser, namespace, values, option_string=None):
        version = self.version or parser.prog
        if "%(prog)" in version:
            version = version % {"prog": parser.prog}
        raise VersionRequested(f"{version}\n", prog=parser.prog)


def _count(values):
    return sum(value or 0 for value in values)


def _concatenate(values):
    if all(value is None for value in values):
        return None
    return [item for value in values if value for item in value]


# Global options whose occurrences add up across levels instead of the deepest one winning.
_ACCUMULATORS = (
    (argparse._CountAction, _count),
    (argparse._AppendAction, _concatenate),
    (argparse._AppendConstAction, _concatenate),
    (argparse._ExtendAction, _concatenate),
)


def _accumulator(action):
    return next((merge for kind, merge in _ACCUMULATORS if isinstance(action, kind)), None)


class _CommandsAction(argparse._SubParsersAction):
    """
    Subcommand action that parses the selected child into a namespace of its own.

    Leftover tokens are reported by the child parser itself so the error (and its
    usage line) names the deepest level reached.
    """

    def __call__(self, parser, namespace, values, option_string=None):
        name, *tokens = values
        try:
            subparser = self._name_parser_map[name]
        except KeyError:
            raise argparse.ArgumentError(
                self, f"unknown command {name!r} (choose from {', '.join(self._name_parser_map)})"
            ) from None

        subnamespace, extras = subparser.parse_known_args(tokens, None)
        if extras:
            subparser.error("unrecognized arguments: %s" % " ".join(extras))
        setattr(namespace, self.dest, (name, subnamespace))


class Parser(argparse.ArgumentParser):
    """
    ArgumentParser that raises instead of printing and exiting.

    Extras over argparse
    - banner: text printed above argparse's help ("name version" and the author line).
    - commands: read-only mapping of child name -> child Parser.
    - globals: global options declared anywhere in the tree (root only), as a read-only
      mapping of dest -> merge function for options whose occurrences accumulate across
      levels (count, append, extend), or None when the deepest value wins.
    - mandatory: required global options (root only), as dest -> option strings. They are
      checked once over the whole matched path, so they may be given at any level.
    """

    def __init__(self, *args, banner=Unset, **kwargs):
        kwargs.setdefault("formatter_class", argparse.RawDescriptionHelpFormatter)
        if sys.version_info >= (3, 14):
            # usage lines are parsed back by argnest.help; they must stay plain text
            kwargs.setdefault("color", False)
        super().__init__(*args, add_help=False, allow_abbrev=False, **kwargs)
        self.register("action", "parsers", _CommandsAction)
        self.register("action", "help", _HelpAction)
        self.register("action", "version", _VersionAction)
        self.banner = coalesce(banner)
        self.globals = MappingProxyType({})
        self.mandatory = MappingProxyType({})
        self._commands = None

    @property
    def commands(self):
        if self._commands is None:
            return MappingProxyType({})
        return MappingProxyType(self._commands._name_parser_map)

    def add_subparsers(self, **kwargs):
        self._commands = super().add_subparsers(**kwargs)
        return self._commands

    def parse_known_args(self, args=None, namespace=None):
        namespace, extras = super().parse_known_args(args, namespace)
        if self.mandatory:
            self._check_mandatory(namespace)
        return namespace, extras

    def _check_mandatory(self, namespace):
        parser, levels = self, [namespace]
        while (command := getattr(levels[-1], COMMAND, None)) is not None:
            name, subnamespace = command
            parser = parser.commands[name]
            levels.append(subnamespace)

        missing = [
            "/".join(flags) for dest, flags in self.mandatory.items()
            if not any(hasattr(level, dest) for level in levels)
        ]
        if missing:
            # reported by the deepest level reached so its help is the one shown
            parser.error("the following arguments are required: %s" % ", ".join(missing))

    def format_help(self):
        help = super().format_help()
        if not self.banner:
            return help
        return f"{self.banner}\n\n{help}"

    def error(self, message):
        reason = f"{self.prog}: error: {message}"
        raise ParseError(f"{self.format_usage()}{reason}\n", prog=self.prog, reason=reason)

    def exit(self, status=0, message=None):
        # Reaching this means an argparse action tried to terminate the process by itself.
        raise ParseError(coalesce(message, "") or f"{self.prog}: exited with status {status}\n", prog=self.prog)


class Schema:
    """
    Declarative description of one command level.

    Fields (read-only properties; set through the fluent methods)
    - name: level name (the program name at the root, the subcommand name below it).
    - prog: displayed program name at the root; defaults to name.
    - descr, version, author: help metadata.
    - arguments: declared arguments as (flags, options, globally) triples.
    - children: child schemas in declaration order.

    Every fluent method mutates the schema and returns it, so contributors can be
    written as `lambda schema: schema.argument(...).argument(...)`.
    """

    name = mirror("name")
    prog = mirror("prog")
    descr = mirror("descr")
    version = mirror("version")
    author = mirror("author")
    arguments = mirror("arguments")
    children = mirror("children")

    def __init__(self, name, /, descr=Unset, version=Unset, author=Unset):
        if not isinstance(name, str):
            raise TypeError("schema 'name' must be a string")
        elif not (name := name.strip()):
            raise ValueError("schema 'name' cannot be empty")
        self._name = name
        self._prog = Unset
        self._descr = descr
        self._version = version
        self._author = author
        self._arguments = []
        self._children = []

    def __repr__(self):
        return f"schema(name={self.name!r}, children={[child.name for child in self._children]!r})"

    def __rich_repr__(self):
        yield "name", self.name
        yield "descr", self.descr
        yield "version", self.version
        yield "author", self.author
        yield "children", self._children

    @property
    def banner(self):
        lines = [" ".join(str(part) for part in (self._name, coalesce(self._version)) if part)]
        if author := coalesce(self._author):
            lines.append(str(author))
        return "\n".join(lines)

    def rename(self, name, /):
        if not isinstance(name, str) or not name.strip():
            raise ValueError("schema 'name' must be a non-empty string")
        self._name = name.strip()
        return self

    def program(self, prog, /):
        if not isinstance(prog, str) or not prog.strip():
            raise ValueError("schema 'prog' must be a non-empty string")
        self._prog = prog.strip()
        return self

    def description(self, descr, /):
        self._descr = descr
        return self

    def versioned(self, version, /):
        self._version = version
        return self

    def authored(self, author, /):
        self._author = author
        return self

    def argument(self, *flags, globally=False, **options):
        """
        Declare an argument; flags and options are forwarded to argparse's add_argument().

        globally=True makes an option available on every descendant level as well.
        Only options (flags starting with '-') can be global.
        """
        if globally and not all(isinstance(flag, str) and flag.startswith("-") for flag in flags):
            raise ValueError(f"schema {self._name!r} only options can be declared globally")
        self._arguments.append((flags, options, bool(globally)))
        return self

    def subcommand(self, schema, /):
        if not isinstance(schema, Schema):
            raise TypeError(f"schema {self._name!r} subcommand must be a schema")
        self._children.append(schema)
        return self

    def propagate(self, **fields):
        """
        Copy metadata fields (author, version) onto every descendant level.

        argparse does not share metadata between nested parsers, so the root pushes
        its own values down before compiling. Unset values are skipped.
        """
        for name, value in fields.items():
            if name not in ("author", "version"):
                raise TypeError(f"propagate() got an unexpected field {name!r}")
        for child in self._children:
            for name, value in fields.items():
                if value is not Unset and value is not None:
                    setattr(child, "_" + name, value)
            child.propagate(**fields)
        return self

    def compile(self):
        """
        Build the argparse parser tree for this schema (this level becomes the root).

        Returns
        - Parser whose `commands` mirror this schema's children, recursively, and whose
          `globals` and `mandatory` describe every global option declared in the tree.
        """
        parser = Parser(prog=coalesce(self._prog, self._name), **self._parser_options())
        dests, mandatory = {}, {}
        self._populate(parser, (), dests, mandatory)
        parser.globals = MappingProxyType(dests)
        parser.mandatory = MappingProxyType(mandatory)
        logger.debug("compiled parser %r (globals: %s)", parser.prog, sorted(dests))
        return parser

    def _parser_options(self):
        return {
            "description": coalesce(self._descr),
            "banner": self.banner,
        }

    def _populate(self, parser, inherited, dests, mandatory):
        declared = {flag for flags, _, _ in self._arguments for flag in flags}
        for flags, options in inherited:
            declared.update(flags)

        if not declared & {"-h", "--help"}:
            parser.add_argument("-h", "--help", action=_HelpAction, help="show this help message and exit")
        if coalesce(self._version) and not declared & {"-V", "--version"}:
            parser.add_argument(
                "-V", "--version",
                action=_VersionAction,
                version=f"{self._name} {self._version}",
                help="show version information and exit",
            )

        # Inherited globals never require anything: the root checks required ones once.
        for flags, options in inherited:
            parser.add_argument(*flags, **{**options, "default": argparse.SUPPRESS, "required": False})

        shared = []
        for flags, options, globally in self._arguments:
            if globally and options.get("required"):
                action = parser.add_argument(*flags, **{**options, "default": argparse.SUPPRESS, "required": False})
                mandatory[action.dest] = tuple(action.option_strings)
            else:
                action = parser.add_argument(*flags, **options)
            if globally:
                shared.append((flags, options))
                dests[action.dest] = _accumulator(action)

        if not self._children:
            return

        commands = parser.add_subparsers(title="commands", dest=COMMAND, metavar="COMMAND")
        for child in self._children:
            subparser = commands.add_parser(
                child.name,
                prog=f"{parser.prog} {child.name}",
                help=coalesce(child.descr),
                **child._parser_options(),
            )
            child._populate(subparser, (*inherited, *shared), dests, mandatory)


__all__ = (
    "Schema",
    "Parser",
)
