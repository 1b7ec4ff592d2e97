import click

from .utils.logging import configure_logging


def _set_debug(ctx, param, value: bool):
    """Callback of the debug flag; once enabled anywhere, debug stays on."""
    root_ctx = ctx.find_root()
    root_ctx.ensure_object(dict)
    root_ctx.obj["DEBUG"] = bool(value) or root_ctx.obj.get("DEBUG", False)
    configure_logging(root_ctx.obj["DEBUG"])
    return root_ctx.obj["DEBUG"]


def add_debug_option(cmd: click.Command) -> click.Command:
    """Add a --debug/--no-debug option to an existing command or group"""
    if not any(param.name == "debug" for param in cmd.params):
        cmd.params.insert(
            0,
            click.Option(
                ["--debug/--no-debug"],
                is_eager=True,
                expose_value=False,
                callback=_set_debug,
                help="Enable debug mode",
            ),
        )
    return cmd
