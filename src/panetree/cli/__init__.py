#!/usr/bin/env python3
"""Main CLI entry point for panetree."""
import logging
import os

import click

from ..config import generate_env_var_name

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR']


def setup_logging(level: str):
    """Configure stderr logging for controller commands."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler()],
    )
    logging.getLogger('panetree').setLevel(getattr(logging, level.upper(), logging.WARNING))


@click.group()
@click.option('--log-level', default=None, type=click.Choice(LOG_LEVELS),
              help='Set logging level')
@click.version_option(package_name='panetree')
@click.pass_context
def cli(ctx, log_level):
    """Live file tree in a tmux side pane."""
    if log_level:
        # The view reads its level from config; pass it on through the environment
        os.environ[generate_env_var_name('logging', 'level')] = log_level
    if ctx.invoked_subcommand != 'show':
        # The view owns its terminal and logs to a file instead
        setup_logging(log_level or 'WARNING')


from .config import config  # noqa: E402
from .control import cd, ping, refresh  # noqa: E402
from .pane import close, show, spawn, toggle  # noqa: E402

for command in (show, toggle, spawn, close, refresh, ping, cd, config):
    cli.add_command(command)


if __name__ == "__main__":
    cli()
