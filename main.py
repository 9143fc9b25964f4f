"""Runs foo or bar in the environment chosen with --env."""
__prog__ = "environment"
__version__ = "0.1.0"

from rich.pretty import pprint

from argnest import *


foo = (
    Command("foo")
    .description("Shows foo")
    .options(lambda schema: schema.argument("-d", "--debug", action="store_true", help="print debug information"))
    .runner(lambda env, matches: print(f"Running \"foo\" in <{env}> (debug={matches['debug']})"))
)

bar = (
    Command("bar")
    .description("Shows bar")
    .options(lambda schema: schema.argument("rest", nargs="*", help="anything else"))
    .runner(lambda env, matches: pprint({"command": "bar", "env": env, "rest": matches["rest"]}))
)


if __name__ == '__main__':
    (
        Commander(shell=True, colorful=True)
        .options(lambda schema: schema.argument(
            "-e", "--env",
            choices=["dev", "prod"],
            default="dev",
            globally=True,
            help="environment to run in",
        ))
        .derive_context(lambda _, matches: matches["env"])
        .add_command(foo)
        .add_command(bar)
        .run()
    )
