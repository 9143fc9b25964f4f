"""
Argnest command layer: define subcommands together with what they do, then dispatch.

What this module provides
- Command: a single runnable subcommand (name, description, option contributor, runner).
- Commander: an ordered group of subcommands sharing one option contributor chain, one
  context deriver and one fallback for “no subcommand matched”. A top-level Commander
  is the program entry point (run / run_with_args).
- MultiCommand: a Commander converted into a single named entry, so groups nest to any depth.

Core ideas
- Definition and behavior live together: no separate “match on the parsed command and
  call the right function” block.
- Context flows down: every Commander derives the value its children receive from the
  value its parent received and its own parsed arguments. Nesting composes derivations.
- Help on errors: invalid input shows the error followed by the complete help of the
  deepest command the user reached, instead of a bare usage line.

Quick start
    from argnest import Command, Commander

    foo = (
        Command("foo")
        .description("Shows foo")
        .options(lambda schema: schema.argument("-d", "--debug", action="store_true"))
        .runner(lambda env, matches: print(f"foo in {env}, debug={matches['debug']}"))
    )

    (
        Commander()
        .options(lambda schema: schema.argument("-e", "--env", default="dev", globally=True))
        .derive_context(lambda _, matches: matches["env"])
        .add_command(foo)
        .run()
    )

Entry protocol
- Anything registered through Commander.add_command() must expose `name`, `schema()`
  and `__dispatch__(context, matches, snapshot)`. Command and MultiCommand do.
"""
import logging
import os.path
import sys
import warnings
from collections.abc import Iterable

from .faults import (
    HelpDisplayed,
    HelpRequested,
    VersionRequested,
    ParseError,
    DiscardedCommandsWarning,
    trigger,
)
from .help import HelpSnapshot, usage_path
from .matches import Matches
from .metadata import resolve
from .schema import Schema
from .utils import Unset, coalesce, mirror

logger = logging.getLogger(__name__)


def _identity(context, matches, /):
    return context


def _contribute(contributor, schema):
    """Apply an option contributor; a contributor returning None keeps the schema it was given."""
    result = contributor(schema)
    if result is None:
        return schema
    if not isinstance(result, Schema):
        raise TypeError(f"option contributor {contributor!r} must return a schema")
    return result


def _check_name(owner, name):
    if not isinstance(name, str):
        raise TypeError(f"{owner} 'name' must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{owner} 'name' cannot be empty")
    return name


def _check_callable(owner, what, object):
    if not callable(object):
        raise TypeError(f"{owner} {what} must be callable")
    return object


class Command:
    """
    A single, directly runnable subcommand.

    Fluent construction
        Command("build").description("Builds it").options(contributor).runner(fn)

    - description(text): shown in the parent's command list and in this command's help.
    - options(contributor): callable receiving this command's Schema and returning it
      (or None), typically declaring arguments with schema.argument(...).
    - runner(fn): callable receiving (context, matches); its return value is handed back
      to the caller of run/run_with_args and anything it raises propagates unchanged.
    """

    name = mirror("name")
    descr = mirror("descr")

    def __init__(self, name, /):
        self._name = _check_name("command", name)
        self._descr = Unset
        self._contributor = Unset
        self._runner = Unset

    def __repr__(self):
        return f"command(name={self.name!r}, descr={self.descr!r})"

    def __rich_repr__(self):
        yield "name", self.name
        yield "descr", self.descr

    def description(self, descr, /):
        if not isinstance(descr, str):
            raise TypeError("command description must be a string")
        self._descr = descr
        return self

    def options(self, contributor, /):
        self._contributor = _check_callable("command", "option contributor", contributor)
        return self

    def runner(self, runner, /):
        self._runner = _check_callable("command", "runner", runner)
        return self

    def schema(self):
        schema = Schema(self._name)
        if self._descr is not Unset:
            schema.description(self._descr)
        if self._contributor is not Unset:
            schema = _contribute(self._contributor, schema)
        return schema

    def execute(self, context, matches, /):
        if self._runner is Unset:
            return None
        return self._runner(context, matches)

    def __dispatch__(self, context, matches, snapshot, /):
        logger.debug("running command %r", self._name)
        return self.execute(context, matches)


class Commander:
    """
    An ordered group of subcommands, runnable on its own or nested into another group.

    Parameters
    - name, version, descr, author: program metadata overrides (see argnest.metadata
      for how missing values are resolved).
    - distribution: installed distribution to read metadata from.
    - shell: when True, run/run_with_args print help/version/help-on-error outcomes and
      exit the process instead of raising them.
    - colorful, fancy: rendering options used in shell mode.

    Lifecycle
    - options(...) adds contributors for this level's own arguments.
    - derive_context(fn) fixes what children receive; it returns a fresh Commander, so
      call it before adding children (children added earlier are discarded).
    - add_command(...) / on_unmatched(...) register children and the fallback.
    - run() / run_with_args(args) parse and dispatch; into_command(name) nests the group.
    """

    children = mirror("children")
    shell = mirror("shell")
    colorful = mirror("colorful")
    fancy = mirror("fancy")

    def __init__(
            self,
            name=Unset,
            version=Unset,
            descr=Unset,
            author=Unset,
            *,
            distribution=Unset,
            shell=False,
            colorful=False,
            fancy=False,
    ):
        self._metadata = {"name": name, "version": version, "descr": descr, "author": author}
        self._distribution = distribution
        self._shell = bool(shell)
        self._colorful = bool(colorful)
        self._fancy = bool(fancy)
        self._contributors = []
        self._deriver = _identity
        self._children = []
        self._fallback = Unset

    def __repr__(self):
        return f"commander(children={[child.name for child in self._children]!r})"

    def __rich_repr__(self):
        yield "children", self._children
        yield "fallback", coalesce(self._fallback)
        yield "shell", self._shell

    def options(self, contributor, /):
        self._contributors.append(_check_callable("commander", "option contributor", contributor))
        return self

    def derive_context(self, deriver, /):
        """
        Return a Commander whose children receive deriver(parent_context, matches).

        Metadata, option contributors and runtime flags carry over. Children and the
        fallback do not: they were written for the previous context.
        """
        _check_callable("commander", "context deriver", deriver)
        if self._children or self._fallback is not Unset:
            warnings.warn(DiscardedCommandsWarning(
                "derive_context() discards %d subcommand(s)%s registered for the previous context" % (
                    len(self._children), " and the fallback" if self._fallback is not Unset else ""
                ),
                discarded=tuple(child.name for child in self._children),
            ), stacklevel=2)

        commander = Commander(
            **self._metadata,
            distribution=self._distribution,
            shell=self._shell,
            colorful=self._colorful,
            fancy=self._fancy,
        )
        commander._contributors = list(self._contributors)
        commander._deriver = deriver
        return commander

    def add_command(self, entry, /):
        if not all((
            isinstance(getattr(entry, "name", None), str),
            callable(getattr(entry, "schema", None)),
            callable(getattr(entry, "__dispatch__", None)),
        )):
            raise TypeError("commander entries must provide name, schema() and __dispatch__()")
        if any(child.name == entry.name for child in self._children):
            raise ValueError(f"commander command name {entry.name!r} is already in use")
        self._children.append(entry)
        return self

    def on_unmatched(self, fallback, /):
        self._fallback = _check_callable("commander", "fallback", fallback)
        return self

    def into_command(self, name, /):
        return MultiCommand(name, self)

    def schema(self):
        metadata = resolve(**self._metadata, distribution=self._distribution)
        schema = Schema(metadata.name, metadata.descr or Unset, metadata.version or Unset, metadata.author or Unset)
        for contributor in self._contributors:
            schema = _contribute(contributor, schema)
        for child in self._children:
            schema.subcommand(child.schema())
        return schema

    def dispatch(self, parent, matches, snapshot, /):
        """
        Route parsed arguments to the matching child, the fallback, or contextual help.

        Steps
        1. context = deriver(parent, matches)
        2. first child named by the matched subcommand: child.__dispatch__(context,
           sub-matches, snapshot of that child)
        3. no child matched: fallback(context, matches) when registered, otherwise
           HelpDisplayed carrying this level's help text.
        """
        context = self._deriver(parent, matches)

        for child in self._children:
            if (submatches := matches.subcommand_matches(child.name)) is not None:
                return child.__dispatch__(context, submatches, snapshot.child(child.name))

        if self._fallback is not Unset:
            logger.debug("no subcommand matched; running the fallback")
            return self._fallback(context, matches)

        logger.debug("no subcommand matched and no fallback; displaying help")
        raise HelpDisplayed(snapshot.text)

    def prepare(self, args=(), /):
        """
        Build the parser tree and its help snapshot for one run.

        - The displayed program name is inferred from args[0]'s file name unless a
          contributor set one explicitly (schema.program(...)).
        - Author and version are propagated to every nested level.

        Returns
        - (parser, snapshot)
        """
        schema = self.schema()
        if args and schema.prog is None:
            schema.program(os.path.basename(str(args[0])) or schema.name)
        schema.propagate(author=schema.author, version=schema.version)
        parser = schema.compile()
        return parser, HelpSnapshot.capture(parser)

    def run(self):
        return self.run_with_args(sys.argv)

    def run_with_args(self, args, /):
        """
        Parse args (args[0] being the program path) and dispatch.

        Returns
        - whatever the selected runner or fallback returned.

        Raises
        - HelpRequested / VersionRequested: the user asked for help or the version.
        - HelpDisplayed: invalid input, or no subcommand matched without a fallback; the
          message is the complete text to show.
        - ConsistencyFault: the parser's error output could not be understood.
        - anything raised by a runner or fallback, unchanged.

        In shell mode, the CommandErrors above are printed and the process exits instead.
        """
        if isinstance(args, str) or not isinstance(args, Iterable):
            raise TypeError("run_with_args() argument must be an iterable of strings")
        args = list(args)
        if not all(isinstance(arg, str) for arg in args):
            raise TypeError("run_with_args() argument must be an iterable of strings")

        parser, snapshot = self.prepare(args)
        options = {"prog": parser.prog, "shell": self._shell, "colorful": self._colorful, "fancy": self._fancy}

        # trigger() raises outside shell mode and exits inside it; it never returns.
        try:
            namespace = parser.parse_args(args[1:])
        except (HelpRequested, VersionRequested) as fault:
            return trigger(fault, **options)
        except ParseError as fault:
            path = usage_path(fault.message, parser.prog)
            logger.debug("parse error at %r; showing help for %r", fault.prog, path)
            rewritten = HelpDisplayed(f"{fault.reason}\n\n{snapshot.resolve(path).text}")
            rewritten.__cause__ = fault
            return trigger(rewritten, **options)

        matches = Matches.from_namespace(namespace, parser.globals)
        try:
            return self.dispatch(None, matches, snapshot)
        except HelpDisplayed as fault:
            return trigger(fault, **options)


class MultiCommand:
    """
    A Commander registered as a single named entry of an outer Commander.

    Its schema is the inner commander's schema renamed (and re-described when
    description() was called); dispatching hands the outer context to the inner
    commander as its parent context, so derivations compose level by level.
    """

    name = mirror("name")
    descr = mirror("descr")

    def __init__(self, name, commander, /):
        if not isinstance(commander, Commander):
            raise TypeError("multi-command must wrap a commander")
        self._name = _check_name("multi-command", name)
        self._descr = Unset
        self._commander = commander

    def __repr__(self):
        return f"multi-command(name={self.name!r}, commander={self._commander!r})"

    def __rich_repr__(self):
        yield "name", self.name
        yield "descr", self.descr
        yield "commander", self._commander

    def description(self, descr, /):
        if not isinstance(descr, str):
            raise TypeError("multi-command description must be a string")
        self._descr = descr
        return self

    def schema(self):
        schema = self._commander.schema().rename(self._name)
        if self._descr is not Unset:
            schema.description(self._descr)
        return schema

    def __dispatch__(self, context, matches, snapshot, /):
        logger.debug("entering command group %r", self._name)
        return self._commander.dispatch(context, matches, snapshot)


__all__ = (
    "Command",
    "Commander",
    "MultiCommand",
)
