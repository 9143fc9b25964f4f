from argnest import Command, file_stem


def command():
    return (
        Command(file_stem())
        .description("Shows bar")
        .runner(lambda env, matches: print(f"Running bar, env = {env}"))
    )
