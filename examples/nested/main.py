"""
Nested command groups sharing an environment.

    python main.py --env prod tools foo -d
    python main.py tools bar
    python main.py
"""
__prog__ = "nested"
__version__ = "0.1.0"
__author__ = "Eiko Reishin (影皇嶺臣)"

import bar
import foo
from argnest import Commander, logs

if __name__ == '__main__':
    logs.install("DEBUG")

    tools = (
        Commander(descr="Groups foo and bar")
        .derive_context(lambda env, matches: env.upper())
        .add_command(foo.command())
        .add_command(bar.command())
    )

    (
        Commander(shell=True, fancy=True, colorful=True)
        .options(lambda schema: schema.argument(
            "-e", "--env",
            metavar="STRING",
            default="dev",
            globally=True,
            help='sets an environment value, defaults to "dev"',
        ))
        .derive_context(lambda _, matches: matches["env"])
        .add_command(tools.into_command("tools"))
        .on_unmatched(lambda env, matches: print("No subcommand matched"))
        .run()
    )
