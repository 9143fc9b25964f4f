"""
Parsed arguments, one level at a time.

A Matches object holds the values parsed for a single command level plus, when a
subcommand was selected, that subcommand's name and its own Matches. Runners and
context derivers receive the Matches of the level they belong to.

Lookups
- matches["name"] / matches.get("name", default) / matches.value_of("name")
- "name" in matches
- matches.subcommand -> (name, Matches) | None
- matches.subcommand_name -> str | None
- matches.subcommand_matches("name") -> Matches | None
"""
from collections.abc import Mapping

from .schema import COMMAND


class Matches(Mapping):
    __slots__ = ("_values", "_subcommand")

    def __init__(self, values=(), subcommand=None, /):
        self._values = dict(values)
        if subcommand is not None:
            name, matches = subcommand
            if not isinstance(name, str) or not isinstance(matches, Matches):
                raise TypeError("matches 'subcommand' must be a (name, matches) pair")
            subcommand = (name, matches)
        self._subcommand = subcommand

    @classmethod
    def from_namespace(cls, namespace, globals=(), /):
        """
        Build the Matches chain out of a namespace produced by a compiled Parser.

        Global options end up on every level of the matched path: the value given at the
        deepest level wins, otherwise the value (or default) known at the root is kept.

        globals is either an iterable of dests, or a mapping of dest -> merge function
        (None for "deepest wins") as found on Parser.globals; a merge function receives the
        values present on the path, root first, and returns the combined value.
        """
        merges = globals if isinstance(globals, Mapping) else dict.fromkeys(globals)
        levels = []
        while namespace is not None:
            values = dict(vars(namespace))
            command = values.pop(COMMAND, None)
            name, namespace = command if command is not None else (None, None)
            levels.append((values, name))

        for dest, merge in merges.items():
            present = [values[dest] for values, _ in levels if dest in values]
            if not present:
                continue
            value = merge(present) if merge is not None else present[-1]
            for values, _ in levels:
                values[dest] = value

        matches = None
        for values, name in reversed(levels):
            matches = cls(values, (name, matches) if name is not None else None)
        return matches

    def __getitem__(self, name):
        return self._values[name]

    def __iter__(self):
        return iter(self._values)

    def __len__(self):
        return len(self._values)

    def __repr__(self):
        subcommand = f", subcommand={self._subcommand[0]!r}" if self._subcommand else ""
        return f"matches({self._values!r}{subcommand})"

    def __rich_repr__(self):
        yield "values", self._values
        yield "subcommand", self._subcommand

    def value_of(self, name, default=None, /):
        return self._values.get(name, default)

    @property
    def subcommand(self):
        return self._subcommand

    @property
    def subcommand_name(self):
        return self._subcommand[0] if self._subcommand else None

    def subcommand_matches(self, name, /):
        if self._subcommand and self._subcommand[0] == name:
            return self._subcommand[1]
        return None


__all__ = (
    "Matches",
)
