"""
Help snapshots: rendered help for every level of a parser tree, indexed by path.

Why snapshots
- When parsing fails, the commander wants to show the full help of the command the
  user was typing. The snapshot is captured right after the parser tree is compiled,
  so no rendering happens while an error is being handled.
- The snapshot mirrors the parser tree exactly: same child names, same nesting.

Path resolution
- argparse error messages start with a "usage: <prog> <sub> <sub> [options...]" line.
  usage_path() extracts the subcommand path from that line: the tokens following the
  program name, up to the first bracketed (optional) marker.
"""
import re
from types import MappingProxyType

from .faults import ConsistencyFault

_USAGE = re.compile(r"^usage: (?P<usage>.*)$", re.MULTILINE)


class HelpSnapshot:
    """
    Immutable tree of rendered help texts.

    Attributes
    - text: the level's complete help, exactly as it is shown to users.
    - children: read-only mapping of child name -> HelpSnapshot.
    """
    __slots__ = ("_text", "_children")

    def __init__(self, text, children=(), /):
        if not isinstance(text, str):
            raise TypeError("help snapshot 'text' must be a string")
        self._text = text
        self._children = MappingProxyType(dict(children))

    @classmethod
    def capture(cls, parser, /):
        """Render parser's help and recurse into its subcommand parsers."""
        return cls(
            parser.format_help(),
            {name: cls.capture(subparser) for name, subparser in parser.commands.items()},
        )

    @property
    def text(self):
        return self._text

    @property
    def children(self):
        return self._children

    def __repr__(self):
        return f"help-snapshot(children={list(self._children)!r})"

    def child(self, name, /):
        """
        Return the snapshot of a direct child.

        Raises
        - ConsistencyFault: the snapshot does not mirror the dispatch tree.
        """
        try:
            return self._children[name]
        except KeyError:
            raise ConsistencyFault(f"help snapshot has no entry for command {name!r}") from None

    def resolve(self, path, /):
        """
        Walk path as far as it resolves and return the deepest snapshot reached.

        An empty path, or a first segment that matches nothing, resolves to this snapshot.
        """
        snapshot = self
        for segment in path:
            if segment not in snapshot._children:
                break
            snapshot = snapshot._children[segment]
        return snapshot


def usage_path(message, /, prog=None):
    """
    Extract the subcommand path named by the usage line of a parser error message.

    Parameters
    - message: the parser's formatted error (usage line followed by the error line).
    - prog: root program name; when given and the usage starts with it, it is stripped
      as a whole (program names may contain spaces), otherwise the first token is dropped.

    Returns
    - list[str]: subcommand names, possibly empty (the root itself).

    Raises
    - ConsistencyFault: when the message has no usage line or the usage line is empty.
    """
    if not (match := _USAGE.search(message)):
        raise ConsistencyFault("the parser error message is missing a usage section")

    usage = match.group("usage").split("[", 1)[0].strip()
    if not usage:
        raise ConsistencyFault("the parser usage line does not name a program")

    if prog and (usage == prog or usage.startswith(prog + " ")):
        return usage[len(prog):].split()
    return usage.split()[1:]


__all__ = (
    "HelpSnapshot",
    "usage_path",
)
