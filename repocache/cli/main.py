"""repocache CLI"""

import click

from repocache import __version__
from repocache.cli.cache import cache

from .debug import add_debug_option


@click.group()
@click.version_option(__version__, prog_name="repocache")
@click.pass_context
def cli(ctx):
    """
    Cached access to files in remote git repositories.
    """
    ctx.ensure_object(dict)


cli.add_command(cache)

add_debug_option(cli)
for command in cache.commands.values():
    add_debug_option(command)

if __name__ == "__main__":
    cli(obj={})
