"""quotesync command line."""

import click

from cli.commands import (
    add,
    conflicts,
    daemon,
    export_cmd,
    import_cmd,
    last,
    list_categories,
    list_records,
    random,
    reset,
    sync_now,
)
from cli.config import load_config_model
from cli.logging_config import setup_logging


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """quotesync - keep a local quote collection in step with a remote store."""
    config = load_config_model()
    level = "DEBUG" if verbose else config.logging.level
    setup_logging(json_mode=config.logging.json_mode, level=level, log_file=config.paths.log_file)


for command in (
    add,
    list_records,
    list_categories,
    random,
    last,
    export_cmd,
    import_cmd,
    reset,
    sync_now,
    daemon,
    conflicts,
):
    cli.add_command(command)


if __name__ == "__main__":
    cli()
