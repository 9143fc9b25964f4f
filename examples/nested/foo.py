from argnest import Command, file_stem


def command():
    return (
        Command(file_stem())
        .description("Shows foo")
        .options(lambda schema: schema.argument("-d", "--debug", action="store_true", help="print debug information"))
        .runner(lambda env, matches: print(f"Running foo, env = {env}, debug = {matches['debug']}"))
    )
